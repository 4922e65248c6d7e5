from __future__ import annotations

import hashlib
import logging
from typing import Any, Dict, Iterable, List, Optional

from django.core.cache import cache as default_cache

from apps.mikro.client import MikroClient
from apps.mikro.exceptions import MikroQueryError
from apps.mikro.models import PendingMikroOrder

from .dto import ReservationDTO, ReservationLookupDTO
from .normalizer import OrderNormalizer, build_line_key
from .settings import WorkflowSettings
from .utils import non_negative, normalize_code, to_int

logger = logging.getLogger(__name__)

SOURCE_LIVE = "live"
SOURCE_CACHE = "cache"

ACTIVE_RESERVATIONS_SQL = """
    SELECT
        s.sip_evrakno_seri AS series,
        s.sip_evrakno_sira AS sequence,
        s.sip_satirno AS line_no,
        s.sip_stok_kod AS product_code,
        s.sip_musteri_kod AS customer_code,
        c.cari_unvan1 AS customer_name,
        s.sip_rezervasyon_miktari AS reserved_qty,
        s.sip_rezerveden_teslim_edilen AS reserved_delivered_qty
    FROM SIPARISLER s
    LEFT JOIN CARI_HESAPLAR c ON c.cari_kod = s.sip_musteri_kod
    WHERE s.sip_tip = 0
      AND COALESCE(s.sip_iptal, 0) = 0
      AND COALESCE(s.sip_kapat_fl, 0) = 0
      AND s.sip_stok_kod IN ({codes})
      AND COALESCE(s.sip_rezervasyon_miktari, 0) - COALESCE(s.sip_rezerveden_teslim_edilen, 0) > 0
    ORDER BY s.sip_stok_kod, s.sip_evrakno_seri, s.sip_evrakno_sira, s.sip_satirno
"""


class ReservationTracker:
    """Active stock reservations of open Mikro orders, grouped by product."""

    def __init__(
        self,
        client: Optional[MikroClient] = None,
        settings: Optional[WorkflowSettings] = None,
        cache=None,
    ) -> None:
        self.settings = settings or WorkflowSettings()
        self.client = client or MikroClient(self.settings.mikro_alias)
        self.cache = cache if cache is not None else default_cache
        self.normalizer = OrderNormalizer()

    def for_products(
        self,
        product_codes: Iterable[str],
        *,
        current_order_number: str = "",
        current_line_key: str = "",
    ) -> ReservationLookupDTO:
        codes = sorted({normalize_code(code) for code in product_codes if normalize_code(code)})
        if not codes:
            return ReservationLookupDTO(source=SOURCE_LIVE)

        try:
            rows = self._live_rows(codes)
            source = SOURCE_LIVE
        except MikroQueryError as exc:
            logger.warning(
                "[WAREHOUSE] Live reservation lookup failed (%s); using pending-order cache for %s products.",
                exc,
                len(codes),
            )
            rows = self._cached_rows(codes)
            source = SOURCE_CACHE

        lookup = ReservationLookupDTO(source=source)
        for row in rows:
            reservation = self._to_dto(row)
            reservation.is_current_order = bool(current_order_number) and reservation.order_number == current_order_number
            reservation.is_current_line = reservation.is_current_order and reservation.line_key == current_line_key
            lookup.by_product.setdefault(reservation.product_code, []).append(reservation)
        return lookup

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------
    def _live_rows(self, codes: List[str]) -> List[Dict[str, Any]]:
        key = self._cache_key(codes)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        rows = self.client.execute_query(
            ACTIVE_RESERVATIONS_SQL.format(codes=MikroClient.placeholders(codes)),
            codes,
        )
        ttl = self.settings.reservation_cache_ttl
        if ttl:
            self.cache.set(key, rows, ttl)
        return rows

    def _cached_rows(self, codes: List[str]) -> List[Dict[str, Any]]:
        wanted = set(codes)
        rows: List[Dict[str, Any]] = []
        for pending in PendingMikroOrder.objects.all().order_by("order_series", "order_sequence"):
            for line in self.normalizer.parse_lines(
                pending.items,
                include_non_remaining=True,
                order_number=pending.mikro_order_number,
            ):
                if line.product_code not in wanted or line.active_reservation <= 0:
                    continue
                rows.append(
                    {
                        "series": pending.order_series,
                        "sequence": pending.order_sequence,
                        "line_no": line.row_number,
                        "product_code": line.product_code,
                        "customer_code": pending.customer_code,
                        "customer_name": pending.customer_name,
                        "reserved_qty": line.reserved_qty,
                        "reserved_delivered_qty": line.reserved_delivered_qty,
                    }
                )
        rows.sort(key=lambda row: (row["product_code"], row["series"], row["sequence"], row["line_no"]))
        return rows

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _cache_key(codes: List[str]) -> str:
        digest = hashlib.sha1(",".join(codes).encode("utf-8")).hexdigest()
        return f"warehouse:reservations:{digest}"

    @staticmethod
    def _to_dto(row: Dict[str, Any]) -> ReservationDTO:
        series = normalize_code(row.get("series"))
        sequence = to_int(row.get("sequence")) or 0
        row_number = to_int(row.get("line_no")) or 0
        product_code = normalize_code(row.get("product_code"))
        return ReservationDTO(
            order_number=f"{series}-{sequence}",
            series=series,
            sequence=sequence,
            row_number=row_number,
            line_key=build_line_key(product_code, row_number, 0),
            product_code=product_code,
            customer_code=normalize_code(row.get("customer_code")),
            customer_name=normalize_code(row.get("customer_name")),
            reserved_qty=non_negative(row.get("reserved_qty")),
            reserved_delivered_qty=non_negative(row.get("reserved_delivered_qty")),
        )

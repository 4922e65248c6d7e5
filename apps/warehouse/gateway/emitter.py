from __future__ import annotations

import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional, Tuple

from apps.mikro.client import MikroClient
from apps.warehouse.exceptions import WorkflowNotFoundError, WorkflowStateError
from apps.warehouse.models import OrderWorkflow

from .dto import DispatchLineDTO, DispatchLineResultDTO, DispatchResult, TransportInfoDTO
from .sequence import DeliverySequenceAllocator
from .settings import WorkflowSettings
from .utils import ZERO, mikro_now, non_negative, normalize_code, to_decimal, to_int

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

SOURCE_LINE_SQL = """
    SELECT
        sip_Guid AS guid,
        sip_musteri_kod AS customer_code,
        sip_stok_kod AS product_code,
        sip_miktar AS quantity,
        sip_teslim_miktar AS delivered_qty,
        sip_b_fiyat AS unit_price,
        sip_tutar AS amount,
        sip_vergi AS vat_amount,
        sip_vergi_pntr AS vat_code,
        sip_depono AS warehouse_no,
        sip_rezervasyon_miktari AS reserved_qty,
        sip_rezerveden_teslim_edilen AS reserved_delivered_qty
    FROM SIPARISLER
    WHERE sip_evrakno_seri = %s
      AND sip_evrakno_sira = %s
      AND sip_stok_kod = %s
      AND sip_satirno = %s
      AND COALESCE(sip_iptal, 0) = 0
"""

MOVEMENT_VAT_EVIDENCE_SQL = """
    SELECT sth_vergi AS vat_amount, sth_tutar AS amount
    FROM STOK_HAREKETLERI
    WHERE sth_sip_uid = %s AND sth_tutar > 0 AND sth_vergi > 0
    ORDER BY sth_create_date DESC
"""

PRODUCT_VAT_CODE_SQL = "SELECT sto_toptan_vergi AS vat_code FROM STOKLAR WHERE sto_kod = %s"

INSERT_MOVEMENT_SQL = """
    INSERT INTO STOK_HAREKETLERI (
        sth_Guid, sth_tarih, sth_tip, sth_cins, sth_normal_iade, sth_evraktip,
        sth_evrakno_seri, sth_evrakno_sira, sth_satirno, sth_belge_no,
        sth_stok_kod, sth_cari_kodu, sth_miktar, sth_tutar, sth_vergi, sth_vergi_pntr,
        sth_cikis_depo_no, sth_sip_uid, sth_aciklama, sth_create_date, sth_lastup_date
    ) VALUES (%s, %s, 1, 0, 0, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
"""

UPDATE_ORDER_LINE_SQL = """
    UPDATE SIPARISLER
    SET sip_teslim_miktar = %s,
        sip_rezerveden_teslim_edilen = %s,
        sip_kapat_fl = %s,
        sip_lastup_date = %s
    WHERE sip_Guid = %s
"""

UPDATE_TRANSPORT_SQL = """
    UPDATE E_IRSALIYE_DETAYLARI
    SET eir_sofor_adi = %s, eir_sofor_soyadi = %s, eir_sofor_tckn = %s,
        eir_arac_adi = %s, eir_arac_plaka = %s, eir_lastup_date = %s
    WHERE eir_evrak_tip = %s AND eir_evrakno_seri = %s AND eir_evrakno_sira = %s
"""

INSERT_TRANSPORT_SQL = """
    INSERT INTO E_IRSALIYE_DETAYLARI (
        eir_Guid, eir_evrak_tip, eir_evrakno_seri, eir_evrakno_sira,
        eir_sofor_adi, eir_sofor_soyadi, eir_sofor_tckn, eir_arac_adi, eir_arac_plaka, eir_lastup_date
    ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
"""

PlannedLine = Tuple[DispatchLineDTO, Dict[str, Any], Decimal]


class DispatchEmitter:
    """Write a delivery note (irsaliye) for picked quantities into Mikro.

    Every Mikro statement of one dispatch runs in a single Mikro transaction.
    The caller must hold an atomic block on the default database, which keeps
    the delivery-sequence row locked until the local bookkeeping is done.
    """

    def __init__(
        self,
        client: Optional[MikroClient] = None,
        settings: Optional[WorkflowSettings] = None,
        allocator: Optional[DeliverySequenceAllocator] = None,
    ) -> None:
        self.settings = settings or WorkflowSettings()
        self.client = client or MikroClient(self.settings.mikro_alias)
        self.allocator = allocator or DeliverySequenceAllocator(self.client, self.settings)

    def emit(
        self,
        *,
        workflow: OrderWorkflow,
        series: str,
        lines: List[DispatchLineDTO],
        transport: TransportInfoDTO,
    ) -> DispatchResult:
        document_type = self.settings.delivery_document_type
        with self.client.atomic():
            planned = self._plan(workflow, lines)
            if not planned:
                raise WorkflowStateError(
                    f"{workflow.mikro_order_number} siparişinde Mikro'ya göre sevk edilecek miktar kalmadı.",
                    error_code="nothing_to_dispatch",
                )

            sequence = self.allocator.allocate(series)
            document_no = f"{series}-{sequence}"
            now = mikro_now()
            description = transport.describe()[:255]

            results: List[DispatchLineResultDTO] = []
            for position, (line, source, quantity) in enumerate(planned, start=1):
                results.append(
                    self._write_line(
                        workflow=workflow,
                        line=line,
                        source=source,
                        quantity=quantity,
                        series=series,
                        sequence=sequence,
                        position=position,
                        description=description,
                        now=now,
                    )
                )
            self._upsert_transport(document_type, series, sequence, transport, now)

        logger.info(
            "[DISPATCH] Wrote delivery note %s for order %s with %s lines",
            document_no,
            workflow.mikro_order_number,
            len(results),
        )
        return DispatchResult(document_no=document_no, series=series, sequence=sequence, lines=results)

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------
    def _plan(self, workflow: OrderWorkflow, lines: List[DispatchLineDTO]) -> List[PlannedLine]:
        planned: List[PlannedLine] = []
        for line in lines:
            source = self._load_source_line(workflow, line)
            outstanding = max(non_negative(source.get("quantity")) - non_negative(source.get("delivered_qty")), ZERO)
            quantity = min(non_negative(line.deliver_qty), outstanding)
            if quantity <= 0:
                logger.info(
                    "[DISPATCH] Line %s of %s already delivered in Mikro; skipping.",
                    line.line_key,
                    workflow.mikro_order_number,
                )
                continue
            if quantity < line.deliver_qty:
                logger.warning(
                    "[DISPATCH] Line %s of %s clamped from %s to Mikro outstanding %s",
                    line.line_key,
                    workflow.mikro_order_number,
                    line.deliver_qty,
                    quantity,
                )
            planned.append((line, source, quantity))
        return planned

    def _load_source_line(self, workflow: OrderWorkflow, line: DispatchLineDTO) -> Dict[str, Any]:
        rows = self.client.execute_query(
            SOURCE_LINE_SQL,
            [workflow.order_series, workflow.order_sequence, line.product_code, line.row_number],
        )
        if not rows:
            raise WorkflowNotFoundError(
                f"{workflow.mikro_order_number} siparişinin {line.line_key} satırı Mikro'da bulunamadı.",
                error_code="source_line_missing",
            )
        return rows[0]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def _write_line(
        self,
        *,
        workflow: OrderWorkflow,
        line: DispatchLineDTO,
        source: Dict[str, Any],
        quantity: Decimal,
        series: str,
        sequence: int,
        position: int,
        description: str,
        now,
    ) -> DispatchLineResultDTO:
        source_guid = normalize_code(source.get("guid"))
        unit_price = to_decimal(source.get("unit_price"))
        vat_rate = self.resolve_vat_rate(source, line.product_code)
        vat_code = self.settings.vat_code_for_rate(vat_rate, preferred=source.get("vat_code"))
        if vat_code is None:
            vat_code = to_int(source.get("vat_code")) or 0
        amount = (quantity * unit_price).quantize(CENT, rounding=ROUND_HALF_UP)
        vat_amount = (amount * vat_rate).quantize(CENT, rounding=ROUND_HALF_UP)
        movement_guid = str(uuid.uuid4())

        self.client.execute(
            INSERT_MOVEMENT_SQL,
            [
                movement_guid,
                now,
                self.settings.delivery_document_type,
                series,
                sequence,
                position,
                workflow.mikro_order_number,
                line.product_code,
                normalize_code(source.get("customer_code")) or workflow.customer_code,
                quantity,
                amount,
                vat_amount,
                vat_code,
                to_int(source.get("warehouse_no")) or 1,
                source_guid,
                description,
                now,
                now,
            ],
        )

        ordered = non_negative(source.get("quantity"))
        delivered = min(non_negative(source.get("delivered_qty")) + quantity, ordered)
        reserved = non_negative(source.get("reserved_qty"))
        reserved_delivered = non_negative(source.get("reserved_delivered_qty"))
        reserved_delivered += min(quantity, max(reserved - reserved_delivered, ZERO))
        closed = 1 if delivered >= ordered else 0
        self.client.execute(
            UPDATE_ORDER_LINE_SQL,
            [delivered, reserved_delivered, closed, now, source_guid],
        )

        return DispatchLineResultDTO(
            line_key=line.line_key,
            product_code=line.product_code,
            row_number=line.row_number,
            quantity=quantity,
            source_guid=source_guid,
            movement_guid=movement_guid,
            unit_price=unit_price,
            amount=amount,
            vat_rate=vat_rate,
            vat_amount=vat_amount,
        )

    def _upsert_transport(
        self,
        document_type: int,
        series: str,
        sequence: int,
        transport: TransportInfoDTO,
        now,
    ) -> None:
        values = [
            transport.driver_first_name,
            transport.driver_last_name,
            transport.driver_tc_no,
            transport.vehicle_name,
            transport.vehicle_plate,
            now,
        ]
        updated = self.client.execute(UPDATE_TRANSPORT_SQL, values + [document_type, series, sequence])
        if updated:
            return
        self.client.execute(
            INSERT_TRANSPORT_SQL,
            [str(uuid.uuid4()), document_type, series, sequence] + values,
        )

    # ------------------------------------------------------------------
    # VAT
    # ------------------------------------------------------------------
    def resolve_vat_rate(self, source: Dict[str, Any], product_code: str) -> Decimal:
        """Pointer rate, then evidence on the order line, then earlier movements, then the product class."""
        rate = self.settings.vat_rate_for_code(source.get("vat_code"))
        if rate is not None and rate > 0:
            return rate

        evidence = self._rate_from_amounts(source.get("vat_amount"), source.get("amount"))
        if evidence is not None:
            return evidence

        source_guid = normalize_code(source.get("guid"))
        if source_guid:
            for row in self.client.execute_query(MOVEMENT_VAT_EVIDENCE_SQL, [source_guid]):
                evidence = self._rate_from_amounts(row.get("vat_amount"), row.get("amount"))
                if evidence is not None:
                    return evidence

        rows = self.client.execute_query(PRODUCT_VAT_CODE_SQL, [product_code])
        if rows:
            product_rate = self.settings.vat_rate_for_code(rows[0].get("vat_code"))
            if product_rate is not None:
                return product_rate
        return rate if rate is not None else ZERO

    @staticmethod
    def _rate_from_amounts(vat_amount: Any, amount: Any) -> Optional[Decimal]:
        vat = to_decimal(vat_amount)
        base = to_decimal(amount)
        if vat <= 0 or base <= 0:
            return None
        return (vat / base).quantize(CENT, rounding=ROUND_HALF_UP)

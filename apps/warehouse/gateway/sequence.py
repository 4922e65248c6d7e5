from __future__ import annotations

import logging

from django.db import transaction
from django.db.transaction import TransactionManagementError

from apps.mikro.client import MikroClient
from apps.warehouse.models import DeliverySequence

from .settings import WorkflowSettings
from .utils import to_int

logger = logging.getLogger(__name__)

MAX_DOCUMENT_SEQUENCE_SQL = """
    SELECT COALESCE(MAX(sth_evrakno_sira), 0) AS max_sequence
    FROM STOK_HAREKETLERI
    WHERE sth_evrakno_seri = %s AND sth_evraktip = %s
"""


class DeliverySequenceAllocator:
    """Allocate delivery-note numbers per series.

    The ``DeliverySequence`` row stays locked until the caller's transaction on
    the default database ends, so concurrent dispatches of one series are
    serialized. Mikro's own maximum is consulted as well, which covers numbers
    written by Mikro users or by a dispatch whose local transaction rolled back.
    """

    def __init__(self, client: MikroClient, settings: WorkflowSettings) -> None:
        self.client = client
        self.settings = settings

    def allocate(self, series: str) -> int:
        if not transaction.get_connection().in_atomic_block:
            raise TransactionManagementError("Delivery sequence allocation requires an atomic block.")

        DeliverySequence.objects.get_or_create(series=series)
        counter = DeliverySequence.objects.select_for_update().get(series=series)

        rows = self.client.execute_query(
            MAX_DOCUMENT_SEQUENCE_SQL,
            [series, self.settings.delivery_document_type],
        )
        mikro_max = to_int(rows[0].get("max_sequence")) if rows else None
        next_sequence = max(counter.last_sequence, mikro_max or 0) + 1

        counter.last_sequence = next_sequence
        counter.save(update_fields=["last_sequence", "updated_at"])
        logger.info("[DISPATCH] Allocated delivery sequence %s-%s", series, next_sequence)
        return next_sequence

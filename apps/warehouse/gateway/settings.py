from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from django.conf import settings as django_settings

from apps.mikro.routers import mikro_alias

from apps.warehouse.exceptions import WorkflowConfigurationError


class WorkflowSettings:
    """Wrapper around ``settings.WAREHOUSE_WORKFLOW`` for the workflow engine."""

    def __init__(self, raw: Optional[Dict[str, Any]] = None):
        self.raw = raw if raw is not None else getattr(django_settings, "WAREHOUSE_WORKFLOW", {})
        if not isinstance(self.raw, dict):
            raise WorkflowConfigurationError("WAREHOUSE_WORKFLOW bir sözlük olmalıdır.")

    @property
    def mikro_alias(self) -> str:
        return str(self.raw.get("mikro_alias") or mikro_alias())

    @property
    def excluded_sector_prefix(self) -> str:
        return str(self.raw.get("excluded_sector_prefix") or "").strip()

    @property
    def stock_warehouses(self) -> List[str]:
        warehouses = self.raw.get("stock_warehouses") or []
        if isinstance(warehouses, str):
            warehouses = warehouses.split(",")
        return [str(code).strip() for code in warehouses if str(code).strip()]

    @property
    def delivery_document_type(self) -> int:
        try:
            return int(self.raw.get("delivery_document_type") or 1)
        except (TypeError, ValueError):
            return 1

    @property
    def reservation_cache_ttl(self) -> int:
        try:
            return max(int(self.raw.get("reservation_cache_ttl", 30)), 0)
        except (TypeError, ValueError):
            return 30

    @property
    def vat_code_map(self) -> Dict[int, Decimal]:
        mapping = self.raw.get("vat_code_map") or {}
        if not isinstance(mapping, dict):
            raise WorkflowConfigurationError("WAREHOUSE_WORKFLOW.vat_code_map bir sözlük olmalıdır.")
        result: Dict[int, Decimal] = {}
        for code, rate in mapping.items():
            try:
                result[int(code)] = Decimal(str(rate))
            except (TypeError, ValueError, InvalidOperation) as exc:
                raise WorkflowConfigurationError(
                    f"Geçersiz KDV oranı tanımı: {code} → {rate}"
                ) from exc
        return result

    def vat_rate_for_code(self, code: Any) -> Optional[Decimal]:
        try:
            return self.vat_code_map.get(int(code))
        except (TypeError, ValueError):
            return None

    def vat_code_for_rate(self, rate: Decimal, preferred: Any = None) -> Optional[int]:
        """Pointer code for a rate; ``preferred`` wins when it already maps to that rate."""
        mapping = self.vat_code_map
        try:
            preferred_code = int(preferred) if preferred is not None else None
        except (TypeError, ValueError):
            preferred_code = None
        if preferred_code is not None and mapping.get(preferred_code) == rate:
            return preferred_code
        for code in sorted(mapping):
            if mapping[code] == rate:
                return code
        return None

"""Product → shelf directory, independent of any order."""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from .models import ShelfLocation

logger = logging.getLogger(__name__)


def set_shelf(product_code: str, shelf_code: Optional[str], *, user_id: str = "") -> Optional[ShelfLocation]:
    """Upsert the shelf of a product; an empty ``shelf_code`` removes it."""
    product_code = (product_code or "").strip()
    shelf_code = (shelf_code or "").strip()
    if not product_code:
        return None
    if not shelf_code:
        deleted, _ = ShelfLocation.objects.filter(product_code=product_code).delete()
        if deleted:
            logger.info("[WAREHOUSE] Shelf removed for %s by %s", product_code, user_id or "-")
        return None
    location, _ = ShelfLocation.objects.update_or_create(
        product_code=product_code,
        defaults={"shelf_code": shelf_code, "updated_by_user_id": user_id or ""},
    )
    logger.info("[WAREHOUSE] Shelf of %s set to %s by %s", product_code, shelf_code, user_id or "-")
    return location


def shelf_map(product_codes: Iterable[str]) -> Dict[str, str]:
    codes = {(code or "").strip() for code in product_codes if (code or "").strip()}
    if not codes:
        return {}
    return dict(
        ShelfLocation.objects.filter(product_code__in=codes).values_list("product_code", "shelf_code")
    )

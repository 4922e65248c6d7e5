from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from django.db import DatabaseError, connections, transaction

from .exceptions import MikroQueryError
from .routers import mikro_alias

logger = logging.getLogger(__name__)


class MikroClient:
    """Synchronous, parameterized SQL access to the Mikro ERP database.

    Statements use ``%s`` placeholders only; values are always bound by the
    driver. Any database error or timeout surfaces as ``MikroQueryError``.
    """

    def __init__(self, alias: Optional[str] = None) -> None:
        self.alias = alias or mikro_alias()

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    @property
    def connection(self):
        return connections[self.alias]

    def atomic(self):
        """Transaction on the Mikro alias; all writes of one dispatch share it."""
        return transaction.atomic(using=self.alias)

    def execute_query(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        started_at = time.monotonic()
        try:
            with self.connection.cursor() as cursor:
                cursor.execute(sql, list(params or []))
                columns = [column[0] for column in cursor.description or []]
                rows = [dict(zip(columns, row)) for row in cursor.fetchall()]
        except DatabaseError as exc:
            self._raise(exc, sql)
        logger.debug(
            "[MIKRO] Query returned %s rows in %.1f ms",
            len(rows),
            (time.monotonic() - started_at) * 1000,
        )
        return rows

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        try:
            with self.connection.cursor() as cursor:
                cursor.execute(sql, list(params or []))
                rowcount = cursor.rowcount
        except DatabaseError as exc:
            self._raise(exc, sql)
        logger.debug("[MIKRO] Statement affected %s rows", rowcount)
        return rowcount

    @staticmethod
    def placeholders(values: Sequence[Any]) -> str:
        """``%s, %s, ...`` for an ``IN (...)`` list; never empty."""
        if not values:
            raise ValueError("IN list requires at least one value.")
        return ", ".join(["%s"] * len(values))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _raise(self, exc: DatabaseError, sql: str) -> None:
        statement = " ".join(sql.split())[:120]
        logger.error("[MIKRO] Statement failed on alias %s: %s (%s)", self.alias, exc, statement)
        raise MikroQueryError(f"Mikro veritabanı hatası: {exc}") from exc

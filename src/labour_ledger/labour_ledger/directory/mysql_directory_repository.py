from __future__ import annotations

from ..core.enums import LabourerStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .repository import DirectoryRepository


class MySQLDirectoryRepository(DirectoryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def count_active_labourers(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS total FROM labourers WHERE status=%s",
                (LabourerStatus.ACTIVE.value,),
            )
            row = fetchone(cur)
            return int(row["total"]) if row else 0

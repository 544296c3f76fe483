# faq/sqlite_access.py
"""
SQLite storage for questions and answers.
Each operation opens its own connection so the backend can be shared
between request threads without extra locking.
"""

import logging
import os
import sqlite3
from typing import List, Optional

from faq.data_access import DataAccess
from faq.models import QARecord

logger = logging.getLogger(__name__)

SELECT_COLUMNS = "SELECT rowid, question, answer, asked_at, answered_at, validated FROM faq"


class SqliteDataAccess(DataAccess):
    def __init__(self, database: str):
        self.database = database

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.database, timeout=10)
        conn.row_factory = sqlite3.Row
        return conn

    def init_schema(self) -> None:
        """Create the faq table if it does not exist yet."""
        directory = os.path.dirname(self.database)
        if directory:
            os.makedirs(directory, exist_ok=True)
        conn = self._connect()
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS faq (
                    question TEXT NOT NULL,
                    answer TEXT NOT NULL DEFAULT '',
                    asked_at TEXT,
                    answered_at TEXT,
                    validated INTEGER NOT NULL DEFAULT 0
                )
            """)
            conn.commit()
        finally:
            conn.close()

    def _execute(self, action: str, sql: str, params: tuple) -> bool:
        try:
            conn = self._connect()
            try:
                cur = conn.execute(sql, params)
                conn.commit()
                changed = cur.rowcount
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error("SQLite %s failed: %s", action, e)
            return False
        if changed == 0:
            logger.info("SQLite %s matched no row", action)
            return False
        return True

    def create_entry(self, question: str, order_hint: int = 0) -> bool:
        # order_hint only matters to the spreadsheet backend
        return self._execute(
            "create",
            "INSERT INTO faq (question, answer, asked_at, answered_at, validated) "
            "VALUES (?, '', datetime('now'), NULL, 0)",
            (question,),
        )

    def update_entry(self, id: int, answer: str, validated: bool) -> bool:
        return self._execute(
            "update",
            "UPDATE faq SET answer = ?, validated = ?, answered_at = datetime('now') WHERE rowid = ?",
            (answer, 1 if validated else 0, id),
        )

    def delete_entry(self, id: int) -> bool:
        return self._execute("delete", "DELETE FROM faq WHERE rowid = ?", (id,))

    def list_validated(self) -> Optional[List[QARecord]]:
        return self._fetch(SELECT_COLUMNS + " WHERE validated = 1 ORDER BY rowid")

    def list_all(self) -> Optional[List[QARecord]]:
        return self._fetch(SELECT_COLUMNS + " ORDER BY rowid")

    def _fetch(self, sql: str) -> Optional[List[QARecord]]:
        try:
            conn = self._connect()
            try:
                rows = conn.execute(sql).fetchall()
            finally:
                conn.close()
            return [
                QARecord(
                    id=row["rowid"],
                    question=row["question"],
                    answer=row["answer"] or "",
                    asked_at=row["asked_at"],
                    answered_at=row["answered_at"],
                    validated=row["validated"] == 1,
                )
                for row in rows
            ]
        except (sqlite3.Error, ValueError) as e:
            logger.error("SQLite query failed: %s", e)
            return None

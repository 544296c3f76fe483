# faq/data_access.py
"""
Storage contract shared by the SQLite and Google Sheets backends.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from faq.models import QARecord


class DataAccess(ABC):
    """Question/answer storage.

    Writes report success as a bool and listings return None when the
    backend could not be read, so an empty FAQ ([]) and a failed query
    (None) stay distinguishable. No method raises on backend failure.
    """

    supports_moderation = True

    @abstractmethod
    def create_entry(self, question: str, order_hint: int = 0) -> bool:
        ...

    @abstractmethod
    def update_entry(self, id: int, answer: str, validated: bool) -> bool:
        ...

    @abstractmethod
    def delete_entry(self, id: int) -> bool:
        ...

    @abstractmethod
    def list_validated(self) -> Optional[List[QARecord]]:
        ...

    @abstractmethod
    def list_all(self) -> Optional[List[QARecord]]:
        ...


def build_data_access(settings, clock=None) -> DataAccess:
    """Pick the backend named by `settings.backend`."""
    if settings.backend == "sheet":
        from faq.sheet_access import GoogleSheetDataAccess

        return GoogleSheetDataAccess(
            spreadsheet_id=settings.spreadsheet_id,
            api_key=settings.api_key,
            tab=settings.tab,
            fields=settings.fields,
            service_account=settings.service_account,
            private_key=settings.private_key,
            timeout=settings.http_timeout,
            clock=clock,
        )

    from faq.sqlite_access import SqliteDataAccess

    access = SqliteDataAccess(settings.database)
    access.init_schema()
    return access

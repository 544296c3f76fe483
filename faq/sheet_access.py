# faq/sheet_access.py
"""
Google Sheets storage.

Reads go through the public values API with an API key. Writes need an
OAuth2 access token obtained from a service account: AccessTokenManager
signs a JWT assertion with the account's private key and exchanges it at
the token endpoint, caching the result for 30 minutes. Moderation is done in
the spreadsheet itself, so updates and deletes are refused here.
"""

import logging
import re
import threading
from typing import List, Optional
from urllib.parse import unquote

import httpx
import jwt

from faq.data_access import DataAccess
from faq.models import BearerCredential, QARecord
from faq.tools import Clock, jwt_assertion

logger = logging.getLogger(__name__)

SHEETS_API = "https://sheets.googleapis.com/v4/spreadsheets"
TOKEN_URL = "https://oauth2.googleapis.com/token"
SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
TOKEN_MINUTES = 30

VALIDATED_STATUS = "Validé"
DRAFT_STATUS = "Rédaction"
WEBSITE_SOURCE = "Question issue du site"


class AccessTokenManager:
    """Single-slot cache for the service account's bearer token."""

    def __init__(
        self,
        service_account: str,
        private_key: str,
        http_client: httpx.Client,
        clock: Optional[Clock] = None,
        scope: str = SHEETS_SCOPE,
        token_url: str = TOKEN_URL,
    ):
        self.service_account = service_account
        self._private_key = private_key
        self._http = http_client
        self._clock = clock or Clock()
        self.scope = scope
        self.token_url = token_url
        self._credential: Optional[BearerCredential] = None
        self._lock = threading.Lock()

    @property
    def credential(self) -> Optional[BearerCredential]:
        """The cached credential, or None once it has expired."""
        credential = self._credential
        if credential is None or self._clock.now() >= credential.expires_at:
            return None
        return credential

    def ensure_fresh_token(self) -> Optional[BearerCredential]:
        # Held across the refresh so concurrent writers trigger a single exchange
        with self._lock:
            credential = self.credential
            if credential is not None:
                return credential
            self._credential = self._refresh()
            return self._credential

    def _refresh(self) -> Optional[BearerCredential]:
        now = self._clock.now()
        try:
            assertion = jwt_assertion(
                self.service_account, self.scope, self.token_url, self._private_key, issued_at=now
            )
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            logger.error("Unable to sign token assertion: %s", e)
            return None

        try:
            res = self._http.post(
                self.token_url,
                params={"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
            )
            if res.status_code != 200 or not res.content:
                logger.warning("Token endpoint returned HTTP %s", res.status_code)
                return None
            access_token = res.json().get("access_token")
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.warning("Token refresh failed: %s", e)
            return None

        if not isinstance(access_token, str) or not access_token:
            logger.warning("Token endpoint response carried no access_token")
            return None
        logger.info("Spreadsheet access token refreshed")
        return BearerCredential(value=access_token, expires_at=self._clock.after(TOKEN_MINUTES))


class GoogleSheetDataAccess(DataAccess):
    supports_moderation = False

    def __init__(
        self,
        spreadsheet_id: str,
        api_key: str,
        tab: str,
        fields: str,
        service_account: str,
        private_key: str,
        http_client: Optional[httpx.Client] = None,
        clock: Optional[Clock] = None,
        timeout: float = 10.0,
    ):
        self.spreadsheet_id = spreadsheet_id
        self._api_key = api_key
        # Config files may carry the tab name URL-encoded ("Feuille%201")
        self.tab = unquote(tab)
        self.fields = fields
        self._http = http_client or httpx.Client(timeout=timeout)
        self.tokens = AccessTokenManager(service_account, private_key, self._http, clock=clock)

    @property
    def range(self) -> str:
        return f"{self.tab}!{self.fields}"

    def create_entry(self, question: str, order_hint: int = 0) -> bool:
        credential = self.tokens.ensure_fresh_token()
        if credential is None:
            logger.error("No spreadsheet access token, question not appended")
            return False

        body = {
            "range": self.range,
            "majorDimension": "ROWS",
            "values": [[order_hint, question, "", DRAFT_STATUS, WEBSITE_SOURCE, ""]],
        }
        try:
            res = self._http.post(
                f"{SHEETS_API}/{self.spreadsheet_id}/values/{self.range}:append",
                params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
                headers={"Authorization": f"Bearer {credential.value}"},
                json=body,
            )
        except httpx.HTTPError as e:
            logger.error("Spreadsheet append failed: %s", e)
            return False
        if res.status_code != 200:
            logger.error("Spreadsheet append returned HTTP %s", res.status_code)
            return False
        return True

    def update_entry(self, id: int, answer: str, validated: bool) -> bool:
        return False

    def delete_entry(self, id: int) -> bool:
        return False

    def list_validated(self) -> Optional[List[QARecord]]:
        records = self.list_all()
        if records is None:
            return None
        return [r for r in records if r.validated]

    def list_all(self) -> Optional[List[QARecord]]:
        try:
            res = self._http.get(
                f"{SHEETS_API}/{self.spreadsheet_id}/values:batchGet",
                params={"ranges": self.tab, "key": self._api_key},
            )
            if res.status_code != 200 or not res.content:
                logger.error("Spreadsheet read returned HTTP %s", res.status_code)
                return None
            value_ranges = res.json().get("valueRanges") or [{}]
            lines = value_ranges[0].get("values") or []
        except (httpx.HTTPError, ValueError, AttributeError, IndexError, KeyError, TypeError) as e:
            logger.error("Spreadsheet read failed: %s", e)
            return None
        if not isinstance(lines, list):
            logger.error("Spreadsheet read returned no row list")
            return None

        records = []
        # First line holds the column titles
        for number, line in enumerate(lines[1:], start=2):
            record = parse_row(line)
            if record is None:
                logger.debug("Skipping spreadsheet row %d without numeric id", number)
                continue
            records.append(record)
        return records


def parse_row(line) -> Optional[QARecord]:
    """Map one sheet row to a QARecord, or None when its id is not an integer."""
    if not isinstance(line, list) or not line:
        return None
    # The API trims trailing empty cells
    cells = [str(c) for c in line] + [""] * max(0, 4 - len(line))
    if not re.fullmatch(r"[0-9]+", cells[0]):
        return None
    row_id = int(cells[0])
    return QARecord(
        id=row_id,
        question=cells[1],
        answer=cells[2],
        validated=cells[3] == VALIDATED_STATUS,
    )

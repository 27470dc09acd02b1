"""
Google Sheets order ledger.

Orders live in one tab (``STATUS DO PEDIDO`` by default), one row per
order, columns A..N as laid out in LedgerOrder.COLUMNS. The restaurant
edits the status column by hand; the bot reads it back and writes the
notified marker in column J.

Talks to the Sheets REST v4 API with an httpx.AsyncClient. Bearer tokens
come from a google-auth service account, refreshed off the event loop.
"""

import asyncio
import logging
import re
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import quote

import httpx
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from order_agent.config import settings
from order_agent.schemas.order_schema import LedgerOrder, OrderStatus
from order_agent.tools.ledger import LedgerError, latest_matching, needs_notification

logger = logging.getLogger(__name__)

SHEETS_API = "https://sheets.googleapis.com/v4/spreadsheets"
SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

FIRST_DATA_ROW = 2
LAST_COLUMN = "N"
NOTIFIED_COLUMN = "J"
STATUS_COLUMN_INDEX = LedgerOrder.COLUMNS.index("status")
STATUS_CHOICES = (
    OrderStatus.PENDING.value,
    OrderStatus.ACCEPTED.value,
    OrderStatus.OUT_FOR_DELIVERY.value,
)

# e.g. "'STATUS DO PEDIDO'!A23:N23"
_APPENDED_ROW = re.compile(r"![A-Z]+(\d+):")

TokenProvider = Callable[[], Awaitable[str]]


class ServiceAccountTokenProvider:
    """Yields a valid OAuth access token from a service-account key file."""

    def __init__(self, credentials_file: Optional[str] = None) -> None:
        self._credentials_file = credentials_file or settings.ledger.credentials_file
        self._credentials: Optional[service_account.Credentials] = None

    def _refresh(self) -> str:
        if self._credentials is None:
            self._credentials = service_account.Credentials.from_service_account_file(
                self._credentials_file, scopes=SCOPES
            )
        if not self._credentials.valid:
            self._credentials.refresh(Request())
        return self._credentials.token

    async def __call__(self) -> str:
        return await asyncio.to_thread(self._refresh)


class GoogleSheetsLedger:
    """Ledger backed by a Google Sheets tab."""

    def __init__(
        self,
        spreadsheet_id: Optional[str] = None,
        sheet_name: Optional[str] = None,
        token_provider: Optional[TokenProvider] = None,
        client: Optional[httpx.AsyncClient] = None,
        max_rows: Optional[int] = None,
    ) -> None:
        self.spreadsheet_id = spreadsheet_id or settings.ledger.spreadsheet_id
        self.sheet_name = sheet_name or settings.ledger.sheet_name
        self.max_rows = max_rows or settings.ledger.max_rows
        self._token = token_provider or ServiceAccountTokenProvider()
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.ledger.request_timeout_sec)
        )
        self._sheet_id: Optional[int] = None

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------ #
    # HTTP plumbing
    # ------------------------------------------------------------------ #

    def _a1(self, cells: str) -> str:
        return f"'{self.sheet_name}'!{cells}"

    def _values_url(self, a1_range: str) -> str:
        return f"{SHEETS_API}/{self.spreadsheet_id}/values/{quote(a1_range, safe='')}"

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        token = await self._token()
        response = await self._client.request(
            method, url, headers={"Authorization": f"Bearer {token}"}, **kwargs
        )
        response.raise_for_status()
        return response.json() if response.content else {}

    async def _read_orders(self) -> list[LedgerOrder]:
        data = await self._request(
            "GET", self._values_url(self._a1(f"A{FIRST_DATA_ROW}:{LAST_COLUMN}{self.max_rows}"))
        )
        rows = data.get("values", [])
        return [
            LedgerOrder.from_row(row, FIRST_DATA_ROW + index)
            for index, row in enumerate(rows)
        ]

    async def _get_sheet_id(self) -> int:
        if self._sheet_id is not None:
            return self._sheet_id
        data = await self._request(
            "GET",
            f"{SHEETS_API}/{self.spreadsheet_id}",
            params={"fields": "sheets.properties"},
        )
        for sheet in data.get("sheets", []):
            props = sheet.get("properties", {})
            if props.get("title") == self.sheet_name:
                self._sheet_id = int(props["sheetId"])
                return self._sheet_id
        raise LedgerError(
            f"Sheet '{self.sheet_name}' not found in spreadsheet {self.spreadsheet_id}"
        )

    # ------------------------------------------------------------------ #
    # Ledger operations
    # ------------------------------------------------------------------ #

    async def append(self, order: LedgerOrder) -> Optional[int]:
        """Append an order row and give its status cell the dropdown and format."""
        data = await self._request(
            "POST",
            self._values_url(self._a1(f"A:{LAST_COLUMN}")) + ":append",
            params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
            json={"values": [order.to_row()]},
        )
        updated_range = data.get("updates", {}).get("updatedRange", "")
        match = _APPENDED_ROW.search(updated_range)
        if not match:
            logger.warning("Order %s appended but row unknown (%r)", order.order_id, updated_range)
            return None

        row_number = int(match.group(1))
        logger.info("Order %s appended at row %d", order.order_id, row_number)
        try:
            await self._format_status_cell(row_number)
        except (httpx.HTTPError, LedgerError) as exc:
            logger.warning("Could not format status cell of row %d: %s", row_number, exc)
        return row_number

    async def _format_status_cell(self, row_number: int) -> None:
        """Copy the status format from row 2 and attach the status dropdown."""
        sheet_id = await self._get_sheet_id()
        target = {
            "sheetId": sheet_id,
            "startRowIndex": row_number - 1,
            "endRowIndex": row_number,
            "startColumnIndex": STATUS_COLUMN_INDEX,
            "endColumnIndex": STATUS_COLUMN_INDEX + 1,
        }
        requests = [
            {
                "copyPaste": {
                    "source": {
                        "sheetId": sheet_id,
                        "startRowIndex": FIRST_DATA_ROW - 1,
                        "endRowIndex": FIRST_DATA_ROW,
                        "startColumnIndex": STATUS_COLUMN_INDEX,
                        "endColumnIndex": STATUS_COLUMN_INDEX + 1,
                    },
                    "destination": target,
                    "pasteType": "PASTE_FORMAT",
                    "pasteOrientation": "NORMAL",
                }
            },
            {
                "setDataValidation": {
                    "range": target,
                    "rule": {
                        "condition": {
                            "type": "ONE_OF_LIST",
                            "values": [{"userEnteredValue": v} for v in STATUS_CHOICES],
                        },
                        "strict": True,
                        "showCustomUi": True,
                    },
                }
            },
        ]
        await self._request(
            "POST",
            f"{SHEETS_API}/{self.spreadsheet_id}:batchUpdate",
            json={"requests": requests},
        )

    async def find_latest_by_phone(self, phone: str) -> Optional[LedgerOrder]:
        return latest_matching(await self._read_orders(), phone)

    async def find_pending_notifications(self) -> list[LedgerOrder]:
        return [
            order for order in await self._read_orders()
            if needs_notification(order) is not None
        ]

    async def mark_notified(self, row_number: int, status: str) -> None:
        await self._request(
            "PUT",
            self._values_url(self._a1(f"{NOTIFIED_COLUMN}{row_number}")),
            params={"valueInputOption": "USER_ENTERED"},
            json={"values": [[status]]},
        )
        logger.debug("Row %d marked as notified for %s", row_number, status)

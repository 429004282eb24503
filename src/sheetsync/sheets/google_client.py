"""
Google Sheets reader implementation.
"""

import asyncio
import logging
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp

from .base import SheetColumnsResult, SheetReader
from ..columns.headers import column_letter
from ..config import GoogleSheetsConfig
from ..exceptions import (
    APITimeoutError,
    SheetAccessError,
    SheetAuthError,
    SheetNotFoundError,
    RateLimitError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def parse_retry_after(value: Optional[str], default: float) -> float:
    """
    Parse a Retry-After header given as delay-seconds or an HTTP-date.

    Returns ``default`` when the header is missing or unparseable.
    """
    if not value:
        return default

    value = value.strip()
    try:
        return max(float(int(value)), 0.0)
    except ValueError:
        pass

    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return default
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)

    return max((retry_at - datetime.now(timezone.utc)).total_seconds(), 0.0)


class GoogleSheetsReader(SheetReader):
    """
    Sheet reader backed by the Google Sheets v4 values API.

    Uses a bearer token from configuration; obtaining and refreshing that
    token is the caller's job.
    """

    def __init__(self, config: GoogleSheetsConfig):
        super().__init__(max_samples=config.max_samples)

        if not config.access_token:
            raise ValidationError("Google Sheets access token is required")

        self.config = config
        self.access_token = config.access_token
        self.base_url = config.base_url.rstrip("/")

        # Session for connection reuse
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout)
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers={
                    "Authorization": f"Bearer {self.access_token}",
                    "Accept": "application/json",
                    "User-Agent": "sheetsync/1.0",
                },
            )
        return self._session

    def _a1_range(self, cells: str, tab: Optional[str]) -> str:
        if tab:
            escaped = tab.replace("'", "''")
            cells = f"'{escaped}'!{cells}"
        return quote(cells, safe=":!'")

    def _values_url(self, sheet_id: str, cells: str, tab: Optional[str]) -> str:
        return (
            f"{self.base_url}/spreadsheets/{quote(sheet_id, safe='')}"
            f"/values/{self._a1_range(cells, tab)}"
        )

    @property
    def header_cells(self) -> str:
        return f"A1:{self.config.last_column}1"

    @property
    def sample_cells(self) -> str:
        last_row = 1 + self.config.sample_rows
        return f"A2:{self.config.last_column}{last_row}"

    async def _request(
        self,
        method: str,
        url: str,
        sheet_id: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Send a request with retries on rate limits, server and network errors."""
        session = await self._get_session()
        retry_count = 0
        last_error: Optional[Exception] = None

        while retry_count <= self.config.max_retries:
            try:
                async with session.request(method, url, json=payload) as response:
                    if response.status == 200:
                        return await response.json()

                    body = await response.text()

                    if response.status in (401, 403):
                        raise SheetAuthError(
                            "Google Sheets rejected the access token",
                            status_code=response.status,
                            response_body=body,
                            sheet_id=sheet_id,
                        )

                    if response.status == 404:
                        raise SheetNotFoundError(
                            f"Spreadsheet {sheet_id} not found",
                            status_code=404,
                            response_body=body,
                            sheet_id=sheet_id,
                        )

                    if response.status == 429:
                        retry_after = parse_retry_after(
                            response.headers.get("retry-after"),
                            default=self.config.retry_delay * (2 ** retry_count),
                        )
                        if retry_count < self.config.max_retries:
                            logger.warning(
                                f"Rate limit hit, retrying after {retry_after}s "
                                f"(attempt {retry_count + 1})"
                            )
                            await asyncio.sleep(retry_after)
                            retry_count += 1
                            continue
                        raise RateLimitError(retry_after=retry_after, sheet_id=sheet_id)

                    last_error = SheetAccessError(
                        f"Google Sheets API error: HTTP {response.status}",
                        status_code=response.status,
                        response_body=body,
                        sheet_id=sheet_id,
                    )
                    if response.status < 500:
                        raise last_error

            except aiohttp.ClientError as e:
                last_error = SheetAccessError(f"Network error: {e}", sheet_id=sheet_id)
            except asyncio.TimeoutError:
                last_error = APITimeoutError(
                    timeout_duration=self.config.timeout, sheet_id=sheet_id
                )

            if retry_count >= self.config.max_retries:
                raise last_error

            delay = self.config.retry_delay * (2 ** retry_count)
            logger.warning(
                f"Request to Sheets API failed, retrying in {delay}s "
                f"(attempt {retry_count + 1}): {last_error}"
            )
            await asyncio.sleep(delay)
            retry_count += 1

        raise last_error or SheetAccessError("Sheets API request failed", sheet_id=sheet_id)

    async def _get_values(
        self, sheet_id: str, cells: str, tab: Optional[str]
    ) -> List[List[Any]]:
        data = await self._request("GET", self._values_url(sheet_id, cells, tab), sheet_id)
        return data.get("values") or []

    async def read_header_row(
        self, sheet_id: str, tab: Optional[str] = None
    ) -> List[str]:
        """Read the raw header row."""
        rows = await self._get_values(sheet_id, self.header_cells, tab)
        return [str(cell) for cell in rows[0]] if rows else []

    async def read_columns(
        self, sheet_id: str, tab: Optional[str] = None
    ) -> SheetColumnsResult:
        """Read headers plus sample rows and infer a type per column."""
        headers = await self.read_header_row(sheet_id, tab)
        if not any(h.strip() for h in headers):
            logger.info(f"Sheet {sheet_id} has no header row")
            return SheetColumnsResult(columns=[], is_empty=True)

        try:
            sample_rows = await self._get_values(sheet_id, self.sample_cells, tab)
        except SheetAccessError as e:
            logger.warning(
                f"Could not read sample rows for {sheet_id}, "
                f"continuing with headers only: {e}"
            )
            sample_rows = None

        result = self.build_columns(headers, sample_rows)
        logger.debug(f"Read {len(result.columns)} columns from sheet {sheet_id}")
        return result

    async def write_header_row(
        self, sheet_id: str, headers: List[str], tab: Optional[str] = None
    ) -> Dict[str, Any]:
        """Write the header row using USER_ENTERED value input."""
        if not headers:
            raise ValidationError("Cannot write an empty header row")

        cells = f"A1:{column_letter(len(headers))}1"
        url = f"{self._values_url(sheet_id, cells, tab)}?valueInputOption=USER_ENTERED"
        data = await self._request("PUT", url, sheet_id, payload={"values": [headers]})

        logger.info(
            f"Wrote {len(headers)} headers to sheet {sheet_id} "
            f"({data.get('updatedRange', cells)})"
        )
        return {
            "updated_range": data.get("updatedRange"),
            "updated_rows": data.get("updatedRows"),
            "updated_columns": data.get("updatedColumns"),
        }

    async def get_sheet_info(self, sheet_id: str) -> Dict[str, Any]:
        """Fetch spreadsheet title and tab names."""
        url = (
            f"{self.base_url}/spreadsheets/{quote(sheet_id, safe='')}"
            f"?fields=spreadsheetId,properties.title,sheets.properties.title"
        )
        data = await self._request("GET", url, sheet_id)
        return {
            "sheet_id": data.get("spreadsheetId", sheet_id),
            "title": data.get("properties", {}).get("title"),
            "tabs": [
                s.get("properties", {}).get("title")
                for s in data.get("sheets", [])
            ],
        }

    async def health_check(self, sheet_id: Optional[str] = None) -> Dict[str, Any]:
        """Check the Sheets API by reading spreadsheet metadata."""
        if not sheet_id:
            return {
                "status": "unknown",
                "provider": "google_sheets",
                "error": "No spreadsheet id to check against",
            }

        start_time = asyncio.get_event_loop().time()

        try:
            info = await self.get_sheet_info(sheet_id)
            response_time = (asyncio.get_event_loop().time() - start_time) * 1000

            return {
                "status": "healthy",
                "provider": "google_sheets",
                "title": info["title"],
                "tabs": info["tabs"],
                "response_time_ms": round(response_time, 2),
            }

        except Exception as e:
            response_time = (asyncio.get_event_loop().time() - start_time) * 1000

            return {
                "status": "unhealthy",
                "provider": "google_sheets",
                "error": str(e),
                "response_time_ms": round(response_time, 2),
            }

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

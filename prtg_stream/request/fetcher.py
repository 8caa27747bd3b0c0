# ==============================================
# PageFetcher
# ==============================================
#
# PURPOSE:
#   Issues ONE bounded query against the PRTG table API and
#   returns ONE Page: the raw rows plus the server's total.
#
# WHY THIS CLASS EXISTS:
#   Every stream pulls through this seam. It is the only place
#   that knows about HTTP, authentication parameters and the
#   JSON envelope, and the only place that translates requests'
#   exceptions into TransportError / ProtocolError.
#
# CLASS: PageFetcher
# ------------------
#   Stateful: holds a requests.Session.
#
#   Constructor:
#   ------------
#   - __init__(server, username, passhash, timeout=30.0, session=None)
#
#   Methods:
#   --------
#   - fetch(query: Query) -> Page
#       GET <server>/api/table.json?<query params>&username=..&passhash=..
#       Response body:
#         {"prtg-version": "...", "treesize": 1600, "sensors": [{...}, ...]}
#       Raises:
#         TransportError  → timeout, connection failure, broken
#                           transfer, HTTP 5xx
#         ProtocolError   → HTTP 4xx, redirect loop, non-JSON body,
#                           missing keys, non-object rows,
#                           more rows than requested
#
#   - close() -> None
#
#   NO RETRY LOGIC LIVES HERE. See retry.py.
#
# ==============================================

import logging
from typing import Any, Dict, Optional

import requests

from prtg_stream.errors import ProtocolError, TransportError
from prtg_stream.request.query import Page, Query

logger = logging.getLogger(__name__)

TABLE_ENDPOINT = "api/table.json"


class PageFetcher:
    """
    Fetches a single page of rows from the PRTG table API.
    """

    def __init__(
        self,
        server: str,
        username: str,
        passhash: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize the fetcher.

        Args:
            server: Server address. HTTPS is assumed when no scheme is given.
            username: PRTG username
            passhash: PRTG passhash for the user
            timeout: Per-request timeout in seconds
            session: Optional requests.Session (mainly for tests)
        """
        if "://" not in server:
            server = f"https://{server}"
        self.server = server.rstrip("/")
        self.username = username
        self.passhash = passhash
        self.timeout = timeout
        self._session = session or requests.Session()

    @property
    def url(self) -> str:
        return f"{self.server}/{TABLE_ENDPOINT}"

    def fetch(self, query: Query) -> Page:
        """
        Execute one query and parse its page.

        Args:
            query: The query to execute

        Returns:
            Page with the rows and the server-reported total
        """
        params = query.to_params()
        params.append(("username", self.username))
        params.append(("passhash", self.passhash))

        logger.debug("GET %s content=%s start=%s count=%s",
                     self.url, query.content.value, query.start, query.count)

        try:
            response = self._session.get(self.url, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as exc:
            raise TransportError(f"Request timed out after {self.timeout}s", url=self.url) from exc
        except requests.exceptions.ConnectionError as exc:
            raise TransportError(f"Could not connect to {self.server}: {exc}", url=self.url) from exc
        except requests.exceptions.TooManyRedirects as exc:
            raise ProtocolError(f"Too many redirects from {self.server}", url=self.url) from exc
        except requests.exceptions.RequestException as exc:
            raise TransportError(f"Request to {self.server} failed: {exc}", url=self.url) from exc

        if response.status_code >= 500:
            raise TransportError(
                f"Server responded with HTTP {response.status_code}", url=self.url
            )
        if response.status_code >= 400:
            raise ProtocolError(
                f"Server rejected the request with HTTP {response.status_code}: "
                f"{self._error_text(response)}",
                url=self.url,
                status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise ProtocolError("Response body is not valid JSON", url=self.url,
                                status_code=response.status_code) from exc

        return self._parse_page(query, body)

    def _parse_page(self, query: Query, body: Any) -> Page:
        if not isinstance(body, dict):
            raise ProtocolError("Response body is not a JSON object", url=self.url)

        key = query.content.value
        rows = body.get(key)
        if not isinstance(rows, list):
            raise ProtocolError(f"Response is missing the '{key}' list", url=self.url)
        if not all(isinstance(row, dict) for row in rows):
            raise ProtocolError(f"Every '{key}' row must be a JSON object", url=self.url)

        total = body.get("treesize")
        if total is None:
            raise ProtocolError("Response is missing 'treesize'", url=self.url)
        try:
            total = int(total)
        except (TypeError, ValueError) as exc:
            raise ProtocolError(f"Invalid treesize {total!r}", url=self.url) from exc

        if isinstance(query.count, int) and len(rows) > query.count:
            raise ProtocolError(
                f"Requested {query.count} rows but received {len(rows)}", url=self.url
            )

        return Page(records=rows, total=total)

    @staticmethod
    def _error_text(response: requests.Response) -> str:
        # PRTG puts the reason in {"error": "..."} for JSON endpoints
        try:
            body: Dict[str, Any] = response.json()
            if isinstance(body, dict) and body.get("error"):
                return str(body["error"])
        except ValueError:
            pass
        return response.text[:200]

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

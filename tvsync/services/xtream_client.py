"""
Xtream Codes API client

Builds player_api.php requests from a stored credential, performs single
GET requests against the server and classifies their outcome into the sync
error taxonomy. No retries are performed here.
"""
import logging
from urllib.parse import quote

import httpx

from tvsync.services.errors import EmptyResponseError, InvalidURLError, NetworkError, ServerError
from tvsync.services.sync_types import CredentialPayload, ReachabilityResult
from tvsync.utils.logging_helpers import sanitize_url_for_logging


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


class XtreamClient:
    """Client for one server credential."""

    def __init__(
        self,
        credential: CredentialPayload,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.credential = credential
        self._timeout = timeout or DEFAULT_TIMEOUT
        self._transport = transport

    def _create_client(self) -> httpx.AsyncClient:
        """Create configured HTTP client."""
        return httpx.AsyncClient(
            timeout=self._timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    def base_url(self) -> str:
        """
        Validated server URL without trailing slash.

        Raises:
            InvalidURLError: If the URL has no http(s) scheme or no host
        """
        raw = self.credential.server_url.strip().rstrip("/")
        try:
            url = httpx.URL(raw)
        except httpx.InvalidURL as exc:
            raise InvalidURLError() from exc

        if url.scheme not in ("http", "https") or not url.host:
            raise InvalidURLError()
        return raw

    def build_api_url(self, action: str) -> httpx.URL:
        """Build the authenticated player_api.php URL for an action."""
        try:
            return httpx.URL(
                f"{self.base_url()}/player_api.php",
                params={
                    "username": self.credential.username,
                    "password": self.credential.password,
                    "action": action,
                },
            )
        except httpx.InvalidURL as exc:
            raise InvalidURLError() from exc

    def build_stream_url(self, stream_id: int) -> str:
        """Build the HLS playback URL handed to the media player."""
        username = quote(self.credential.username, safe="")
        password = quote(self.credential.password, safe="")
        return f"{self.base_url()}/live/{username}/{password}/{stream_id}.m3u8"

    async def fetch_action(self, action: str) -> bytes:
        """
        Issue one GET for a player_api.php action.

        Args:
            action: API action, e.g. get_live_streams

        Returns:
            Raw response body

        Raises:
            InvalidURLError: If the request URL cannot be built
            NetworkError: On transport failure
            ServerError: On non-2xx status
            EmptyResponseError: On a 2xx response without body
        """
        url = self.build_api_url(action)
        logger.info("Fetching %s from %s", action, sanitize_url_for_logging(url))

        async with self._create_client() as client:
            try:
                response = await client.get(url)
            except httpx.RequestError as exc:
                detail = str(exc) or type(exc).__name__
                logger.error("Network error fetching %s: %s", action, detail)
                raise NetworkError(detail) from exc

        logger.info("Received HTTP response with status code: %s", response.status_code)
        logger.debug("Response headers: %s", dict(response.headers))

        if not response.is_success:
            raise ServerError(response.status_code)

        if not response.content:
            raise EmptyResponseError()

        logger.info("Received %s bytes of data", len(response.content))
        return response.content

    async def check_reachability(self) -> ReachabilityResult:
        """Probe the server root; any 2xx status counts as reachable."""
        logger.info("Checking API reachability")
        try:
            url = f"{self.base_url()}/"
        except InvalidURLError:
            logger.error("Invalid base URL for reachability check")
            return ReachabilityResult(reachable=False, detail="Invalid base URL")

        async with self._create_client() as client:
            try:
                response = await client.get(url)
            except httpx.RequestError as exc:
                detail = str(exc) or type(exc).__name__
                logger.error("API reachability check failed: %s", detail)
                return ReachabilityResult(reachable=False, detail=f"Network error: {detail}")

        status_code = response.status_code
        logger.info("API reachability check returned status code: %s", status_code)
        if response.is_success:
            return ReachabilityResult(reachable=True, detail=None)
        return ReachabilityResult(
            reachable=False,
            detail=f"Server returned status code: {status_code}",
        )

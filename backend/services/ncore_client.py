"""nCore profile page client.

Fetches one account's profile page with the configured cookie credentials.
Read-only: only profile pages are requested. No retries here; a failed
account is simply picked up again on the next fetch cycle.
"""

import logging

import httpx
from bs4 import BeautifulSoup

from exceptions import SourceFetchError
from models.account import Account

logger = logging.getLogger(__name__)

NCORE_PROFILE_URL = "https://ncore.pro/profile.php?id="
DEFAULT_TIMEOUT = 30.0


class NcoreClient:
    """Async client for nCore profile pages."""

    def __init__(
        self,
        nick: str,
        password: str,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: str = NCORE_PROFILE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"Cookie": f"nick={nick}; pass={password}"},
            transport=transport,
        )

    def profile_url(self, profile_id: str) -> str:
        return f"{self.base_url}{profile_id}"

    async def fetch_profile(self, account: Account) -> BeautifulSoup:
        """Fetch and parse the profile page for a single account.

        Raises:
            SourceFetchError: On network failure or a non-200 response
        """
        url = self.profile_url(account.profile_id)
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            raise SourceFetchError(
                account.display_name, f"error performing request: {e}"
            ) from e

        if response.status_code != 200:
            raise SourceFetchError(
                account.display_name,
                "received non-200 status code",
                status_code=response.status_code,
            )

        logger.debug(f"Fetched profile page for {account.display_name} ({len(response.content)} bytes)")
        return BeautifulSoup(response.content, "html.parser")

    async def aclose(self) -> None:
        await self._client.aclose()

"""HTTP client for the Polymarket wallet profile statistics endpoint."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from polymarket_watcher.profiler.models import ProfileStats

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_API_URL = "https://polymarket.com/api/profile/stats"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class ProfileStatsError(Exception):
    """Raised when wallet statistics cannot be fetched or understood."""

    def __init__(self, message: str, *, address: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.address = address
        self.status_code = status_code


class ProfileStatsClient:
    """Looks up a wallet's historical trade count.

    Example:
        ```python
        async with ProfileStatsClient() as client:
            stats = await client.fetch("0xabc...")
            print(stats.trades)
        ```
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_PROFILE_API_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        user_agent: str = DEFAULT_USER_AGENT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds, connect=min(timeout_seconds, 5.0)),
            headers={"Accept": "application/json", "User-Agent": user_agent},
        )

    async def fetch(self, address: str) -> ProfileStats:
        """Fetch statistics for one wallet.

        Raises:
            ProfileStatsError: On transport errors, non-200 responses or a
                body without a usable ``trades`` count.
        """
        try:
            resp = await self._client.get(self._base_url, params={"proxyAddress": address})
        except httpx.HTTPError as e:
            raise ProfileStatsError(f"profile request failed: {e}", address=address) from e

        if resp.status_code != httpx.codes.OK:
            raise ProfileStatsError(
                f"profile endpoint returned HTTP {resp.status_code}",
                address=address,
                status_code=resp.status_code,
            )

        try:
            payload: Any = resp.json()
        except ValueError as e:
            raise ProfileStatsError("profile response is not JSON", address=address) from e

        return _parse_stats(payload, address)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> ProfileStatsClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()


def _parse_stats(payload: Any, address: str) -> ProfileStats:
    if not isinstance(payload, dict):
        raise ProfileStatsError("profile response is not an object", address=address)

    trades = payload.get("trades")
    if isinstance(trades, bool) or not isinstance(trades, (int, float)) or trades < 0:
        raise ProfileStatsError(f"invalid trades value: {trades!r}", address=address)

    largest_win = payload.get("largestWin") or 0
    views = payload.get("views") or 0
    return ProfileStats(
        trades=int(trades),
        join_date=str(payload.get("joinDate") or ""),
        largest_win=float(largest_win) if isinstance(largest_win, (int, float)) else 0.0,
        views=int(views) if isinstance(views, (int, float)) else 0,
    )

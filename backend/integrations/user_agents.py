"""Rotating User-Agent pool shared by the market data HTTP clients."""

import random
from typing import Optional, Sequence

DEFAULT_USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.2 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)


class UserAgentPool:
    """Picks a User-Agent per outbound request.

    One pool is created by the market data service at startup and handed
    to every adapter, so rotation state is never module-global.
    """

    def __init__(
        self,
        user_agents: Sequence[str] = DEFAULT_USER_AGENTS,
        rng: Optional[random.Random] = None,
    ):
        if not user_agents:
            raise ValueError("UserAgentPool needs at least one user agent")
        self._user_agents = tuple(user_agents)
        self._rng = rng or random.Random()

    def __len__(self) -> int:
        return len(self._user_agents)

    def next(self) -> str:
        """Return a randomly chosen User-Agent string."""
        return self._rng.choice(self._user_agents)

    def headers(self) -> dict[str, str]:
        """Request headers carrying a freshly picked User-Agent."""
        return {"User-Agent": self.next()}

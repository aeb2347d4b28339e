"""Session cookie captured from upstream responses."""

import logging
from typing import Iterable, Optional

logger = logging.getLogger(__name__)


class SessionAuthCache:
    """Holds the most recently observed session cookie for one upstream target.

    Last write wins and there is no locking: concurrent calls that set or read
    the cookie race with each other.
    """

    def __init__(self, cookie: Optional[str] = None):
        self._cookie = cookie

    @property
    def cookie(self) -> Optional[str]:
        return self._cookie

    def set(self, cookie: Optional[str]):
        self._cookie = cookie

    def clear(self):
        self._cookie = None

    def capture(self, set_cookie_headers: Iterable[str]) -> bool:
        """Store the name=value pairs of a response's Set-Cookie headers.

        Args:
            set_cookie_headers: Raw Set-Cookie header values

        Returns:
            True if a cookie was stored
        """
        pairs = []
        for header in set_cookie_headers:
            pair = header.split(";", 1)[0].strip()
            if pair:
                pairs.append(pair)

        if not pairs:
            return False

        self._cookie = "; ".join(pairs)
        logger.debug(f"Captured session cookie ({len(pairs)} value(s))")
        return True

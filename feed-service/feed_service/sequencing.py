"""
Request tickets for discarding out-of-order responses
"""
from .exceptions import StaleResponseError


class RequestSequencer:
    """Issues monotonically increasing tickets; only the latest is current"""

    def __init__(self):
        self._latest = 0

    def issue(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, ticket: int) -> bool:
        return ticket == self._latest

    def ensure_current(self, ticket: int) -> None:
        """Raise StaleResponseError when a newer ticket has been issued"""
        if ticket != self._latest:
            raise StaleResponseError(ticket, self._latest)

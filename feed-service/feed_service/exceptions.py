"""
Exception hierarchy for Feed Service
"""
from typing import Any, Dict, List, Optional


class FeedServiceError(Exception):
    """Base exception for all feed service errors"""
    pass


class BackendUnavailableError(FeedServiceError):
    """Transport failure or non-2xx status from the backend"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BackendQueryError(FeedServiceError):
    """The backend answered but reported query errors"""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class RelationshipUnsupportedError(BackendQueryError):
    """The backend cannot resolve the post → profile relationship"""
    pass


class StaleResponseError(FeedServiceError):
    """A response arrived for a request that is no longer current"""

    def __init__(self, sequence: int, current: int):
        super().__init__(f"Response #{sequence} superseded by #{current}")
        self.sequence = sequence
        self.current = current

"""
HTTP client for the managed backend (GraphQL + PostgREST)
"""
import httpx
from typing import Optional, List, Dict, Any
import logging

from .config import settings
from .exceptions import BackendUnavailableError, BackendQueryError
from .queries import PROFILE_COLUMNS

logger = logging.getLogger(__name__)


class ServiceClient:
    """HTTP client for the structured-query backend"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        anon_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.SUPABASE_URL).rstrip("/")
        self.anon_key = anon_key if anon_key is not None else settings.SUPABASE_ANON_KEY
        self.timeout = httpx.Timeout(settings.HTTP_TIMEOUT, connect=settings.HTTP_CONNECT_TIMEOUT)
        self.transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    async def start(self):
        """Initialize HTTP client"""
        self.client = httpx.AsyncClient(timeout=self.timeout, transport=self.transport)
        logger.info("Service client initialized")

    async def stop(self):
        """Close HTTP client"""
        if self.client:
            await self.client.aclose()
            self.client = None
            logger.info("Service client closed")

    def _headers(self, token: Optional[str]) -> Dict[str, str]:
        """Per-request credentials; the anon key stands in for anonymous readers"""
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {token or self.anon_key}",
        }

    async def _make_request(
        self,
        method: str,
        url: str,
        token: Optional[str] = None,
        **kwargs
    ) -> Any:
        """Make HTTP request to the backend"""
        if not self.client:
            raise BackendUnavailableError("Service client not initialized")

        try:
            response = await self.client.request(
                method,
                url,
                headers=self._headers(token),
                **kwargs
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error {e.response.status_code} for {url}: {e}")
            raise BackendUnavailableError(str(e), status_code=e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.error(f"Request failed for {url}: {e}")
            raise BackendUnavailableError(str(e)) from e
        except ValueError as e:
            logger.error(f"Invalid JSON from {url}: {e}")
            raise BackendUnavailableError(f"Invalid JSON from {url}") from e

    # GraphQL API
    async def graphql(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None
    ) -> Dict[str, Any]:
        """Run a GraphQL document and return its `data` payload"""
        url = f"{self.base_url}/graphql/v1"
        payload = await self._make_request(
            "POST",
            url,
            token,
            json={"query": query, "variables": variables or {}},
        )

        errors = payload.get("errors") if isinstance(payload, dict) else None
        if errors:
            message = "; ".join(str(err.get("message", err)) for err in errors)
            logger.error(f"GraphQL error: {message}")
            raise BackendQueryError(message, errors)

        data = payload.get("data") if isinstance(payload, dict) else None
        if data is None:
            raise BackendQueryError("GraphQL response carried no data")
        return data

    # REST API
    async def get_profiles(
        self,
        profile_ids: List[str],
        token: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Batch lookup of profiles by id (one request for the whole set)"""
        url = f"{self.base_url}/rest/v1/profiles"
        params = {
            "select": PROFILE_COLUMNS,
            "id": f"in.({','.join(profile_ids)})",
        }

        response = await self._make_request("GET", url, token, params=params)
        if not isinstance(response, list):
            raise BackendQueryError("Profile lookup did not return a list")

        logger.debug(f"Fetched {len(response)} of {len(profile_ids)} profiles")
        return response


# Global service client instance
service_client = ServiceClient()

import logging
from typing import Optional
import httpx

logger = logging.getLogger(__name__)

class DataStoreError(Exception):
    """Supabase answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

class SupabaseClient:
    """Read-only client for the Supabase REST (PostgREST) API."""

    def __init__(self, base_url: Optional[str], service_key: Optional[str],
                 client: Optional[httpx.Client] = None, timeout: Optional[float] = None):
        self.base_url = (base_url or "").rstrip("/")
        self._service_key = service_key or ""
        # Own the client only if we created it
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    def _headers(self) -> dict:
        return {
            "apikey": self._service_key,
            "Authorization": f"Bearer {self._service_key}",
            "Content-Type": "application/json",
        }

    def query(self, table: str, filters: Optional[dict] = None) -> list:
        """
        GET /rest/v1/{table} with each filter as a query parameter.
        Filter values are PostgREST operator expressions like "eq.true" and are passed verbatim.
        """
        url = f"{self.base_url}/rest/v1/{table}"
        params = list((filters or {}).items())
        logger.debug("Supabase query %s params=%s", table, params)

        response = self._client.get(url, params=params, headers=self._headers())

        if not response.is_success:
            raise DataStoreError(
                f"Supabase query failed: {response.reason_phrase}",
                status_code=response.status_code,
            )
        return response.json()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

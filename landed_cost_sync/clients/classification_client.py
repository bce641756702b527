import logging
from typing import Any, Dict, Optional

import httpx

from landed_cost_sync.core.config import Settings
from landed_cost_sync.core.exceptions import ConnectionTimeoutError, ExternalAPIError, RateLimitError
from landed_cost_sync.schemas.classification import (
    ClassificationRequest,
    ClassificationResponse,
    HSItem,
)

logger = logging.getLogger("classification_client")

SERVICE_NAME = "classification"

CLASSIFICATION_API_URLS = {
    "production": "https://api.classification.avalara.net/api/v2",
    "development": "https://api-sandbox.classification.avalara.net/api/v2",
}
ITEMS_API_URLS = {
    "production": "https://rest.avatax.com/api/v2",
    "development": "https://sandbox-rest.avatax.com/api/v2",
}

# Synthesized when the service rejects credentials without an error body
HTTP_AUTH_ERROR_CODE = "AuthenticationException"


class ClassificationClient:
    """Synchronous client for the HS classification and items APIs."""

    def __init__(self, settings: Settings, transport: Optional[httpx.BaseTransport] = None) -> None:
        environment = "production" if settings.is_production else "development"
        self._base_url = (settings.classification_api_url or CLASSIFICATION_API_URLS[environment]).rstrip("/")
        self._items_url = (settings.items_api_url or ITEMS_API_URLS[environment]).rstrip("/")
        self._company_id = settings.classification_company_id
        self._auth = (
            settings.classification_api_username or "",
            settings.classification_api_password or "",
        )
        self._timeout = settings.classification_api_timeout
        self._transport = transport
        logger.info(f"ClassificationClient initialized: env={environment} base_url={self._base_url}")

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        url: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        logger.info("classification request method=%s url=%s", method, url)
        try:
            with httpx.Client(timeout=self._timeout, auth=self._auth, transport=self._transport) as client:
                resp = client.request(
                    method=method,
                    url=url,
                    json=json,
                    params=params,
                    headers={"Accept": "application/json"},
                )
        except httpx.TimeoutException as e:
            raise ConnectionTimeoutError(f"{SERVICE_NAME} request timed out: {e}") from e
        except httpx.TransportError as e:
            raise ConnectionTimeoutError(f"{SERVICE_NAME} connection failed: {e}") from e

        logger.info("classification response status=%s url=%s", resp.status_code, url)

        if resp.status_code == 429:
            retry_after = resp.headers.get("Retry-After", "60")
            raise RateLimitError(SERVICE_NAME, retry_after=int(retry_after) if retry_after.isdigit() else 60)
        if resp.status_code >= 500:
            raise ExternalAPIError(SERVICE_NAME, resp.text[:500], status_code=resp.status_code)
        return resp

    def _to_response(self, resp: httpx.Response) -> ClassificationResponse:
        try:
            data = resp.json() if resp.content else {}
        except ValueError:
            data = {}

        if resp.status_code in (401, 403) and not (data or {}).get("error"):
            return ClassificationResponse.from_error(HTTP_AUTH_ERROR_CODE, f"HTTP {resp.status_code}")
        if resp.status_code >= 400 and not (data or {}).get("error"):
            return ClassificationResponse.from_error(f"HTTP{resp.status_code}", resp.text[:500])
        return ClassificationResponse.from_api(data)

    def _classifications_url(self, classification_id: Optional[str] = None) -> str:
        url = f"{self._base_url}/companies/{self._company_id}/classifications/hs"
        return f"{url}/{classification_id}" if classification_id else url

    # ------------------------------------------------------------------
    # Classification API
    # ------------------------------------------------------------------

    def create_or_update(self, request: ClassificationRequest) -> ClassificationResponse:
        """
        Create or refresh a classification.

        The service keys classifications by item and destination country, so
        posting again for a known item updates it in place.
        """
        resp = self._request("POST", self._classifications_url(), json=request.to_api_params())
        return self._to_response(resp)

    def get(self, request: ClassificationRequest) -> ClassificationResponse:
        """Fetch the current state of a previously created classification."""
        classification_id = request.classification_id or (
            f"{self._company_id}-{request.item.item_code}-{request.country_of_destination}"
        )
        return self._to_response(self._request("GET", self._classifications_url(classification_id)))

    def can_connect(self) -> bool:
        """
        Check the credentials with a lookup that is expected to 404.

        An authentication error or a failed request means we can't connect.
        Any other answer, "not found" included, proves the credentials work.
        """
        if not all(self._auth):
            return False

        check = ClassificationRequest(
            country_of_destination="US",
            item=HSItem(company_id=self._company_id, item_code="connection-test", summary="connection test"),
        )
        try:
            response = self.get(check)
        except (ConnectionTimeoutError, ExternalAPIError, RateLimitError) as e:
            logger.warning(f"Classification API credential check failed: {e}")
            return False
        return not response.has_auth_error

    # ------------------------------------------------------------------
    # Items API
    # ------------------------------------------------------------------

    def query_item(self, item_code: str) -> Optional[Dict[str, Any]]:
        """
        Look up an item, including its existing classifications.

        Returns None when the item is unknown or the lookup failed.
        """
        params = {
            "$filter": f"itemCode eq '{item_code}'",
            "$include": "classifications",
            "$top": 1,
        }
        try:
            resp = self._request("GET", f"{self._items_url}/companies/{self._company_id}/items", params=params)
        except (ConnectionTimeoutError, ExternalAPIError, RateLimitError) as e:
            logger.warning(f"Item lookup failed for {item_code}: {e}")
            return None
        if resp.status_code >= 400:
            logger.warning(f"Item lookup for {item_code} returned HTTP {resp.status_code}")
            return None

        items = (resp.json() or {}).get("value") or []
        return items[0] if items else None

"""
Backend API Client

HTTP client for the cafe backend: catalog, purchases, holds and the
GCash payment endpoints. Every request carries the operator's bearer
credential.
"""

import logging
from typing import Optional, Any

import httpx

from ..models import (
    BuyMenuItemRequest,
    HoldResponse,
    ManualCompletionResponse,
    PaymentIntent,
    PaymentIntentRequest,
    PaymentStatusResponse,
    PendingPayment,
    Product,
    PurchaseResponse,
    QRCodeRequest,
    QRCodeResponse,
)

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = "Network error. Please check your connection."


class BackendError(Exception):
    """Base exception for backend client errors"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class SessionExpiredError(BackendError):
    """The bearer credential was rejected"""
    pass


class PermissionDeniedError(BackendError):
    """The operator may not access the resource"""
    pass


def _error_message(response: httpx.Response) -> str:
    """Extract a readable message from an error response"""
    try:
        data = response.json()
    except ValueError:
        return f"HTTP error! status: {response.status_code}"

    if isinstance(data, dict):
        message = data.get("message") or data.get("detail")
        if isinstance(message, str) and message:
            return message
    return f"HTTP error! status: {response.status_code}"


class BackendClient:
    """
    Client for the cafe backend.

    Usage:
        client = BackendClient(settings.backend_base_url, token=settings.api_token)
        menu = await client.fetch_menu(branch_id=1)
        await client.close()
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize backend client.

        Args:
            base_url: Base URL of the backend API
            token: Bearer credential of the signed-in operator
            timeout: Request timeout in seconds
            transport: Optional httpx transport (in-process apps, tests)
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._http_client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )
        if not token:
            logger.warning("No API token provided - requests will not be authenticated")

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> Any:
        """Make an authenticated request and return the decoded JSON body"""
        try:
            response = await self._http_client.request(
                method,
                path,
                headers=self._headers(),
                json=body,
                params=params,
            )
        except httpx.HTTPError as e:
            logger.error(f"Network error on {method} {path}: {e}")
            raise BackendError(NETWORK_ERROR_MESSAGE) from e

        if response.status_code == 401:
            logger.error("Unauthorized: Invalid or expired token")
            raise SessionExpiredError("Session expired. Please login again.", 401)

        if response.status_code == 403:
            logger.error("Forbidden: Insufficient permissions")
            raise PermissionDeniedError(
                "You do not have permission to access this resource.", 403
            )

        if response.status_code >= 400:
            message = _error_message(response)
            logger.error(f"Request failed: {response.status_code} - {message}")
            raise BackendError(message, response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return {"message": response.text}

    # ==================== Catalog APIs ====================

    async def fetch_menu(self, branch_id: Optional[int] = None) -> list[Product]:
        """Fetch all menu items, with sizes, for a branch"""
        params = {"branchId": branch_id} if branch_id is not None else None
        data = await self._request("GET", "/api/menu", params=params)
        return [Product.model_validate(item) for item in data or []]

    # ==================== Purchase APIs ====================

    async def buy(self, request: BuyMenuItemRequest) -> PurchaseResponse:
        """Submit one completed purchase line"""
        data = await self._request("POST", "/api/buy", body=request.to_payload())
        return PurchaseResponse.model_validate(data or {})

    async def hold(self, request: BuyMenuItemRequest) -> HoldResponse:
        """Create one held transaction record"""
        data = await self._request("POST", "/api/buy/hold", body=request.to_payload())
        return HoldResponse.model_validate(data)

    async def resume_hold(self, hold_id: int) -> str:
        """Finalize a held transaction; the backend deducts stock"""
        data = await self._request("POST", f"/api/buy/hold/{hold_id}/resume")
        return (data or {}).get("message", "")

    async def cancel_hold(self, hold_id: int) -> str:
        """Cancel a held transaction"""
        data = await self._request("POST", f"/api/buy/hold/{hold_id}/cancel")
        return (data or {}).get("message", "")

    # ==================== GCash APIs ====================

    async def create_payment_intent(
        self,
        request: PaymentIntentRequest,
    ) -> PaymentIntent:
        """Create a QR / checkout-link payment intent"""
        data = await self._request(
            "POST",
            "/api/gcash/intent",
            body=request.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        return PaymentIntent.model_validate(data)

    async def get_qr_code(self, checkout_url: str) -> str:
        """Render a scannable image for a checkout URL"""
        data = await self._request(
            "POST",
            "/api/gcash/qr",
            body=QRCodeRequest(checkout_url=checkout_url).model_dump(by_alias=True),
        )
        return QRCodeResponse.model_validate(data).qr_image

    async def get_payment_status(self, reference_id: str) -> PaymentStatusResponse:
        """Query payment status by reference id"""
        data = await self._request("GET", f"/api/gcash/status/{reference_id}")
        return PaymentStatusResponse.model_validate(data)

    async def complete_payment(self, reference_id: str) -> ManualCompletionResponse:
        """Force-complete a payment. Safe to call more than once."""
        data = await self._request("POST", f"/api/gcash/complete/{reference_id}")
        return ManualCompletionResponse.model_validate(data or {})

    async def save_pending_payment(self, snapshot: PendingPayment) -> None:
        """Persist a pending payment for the provider webhook"""
        await self._request(
            "POST",
            "/api/gcash/pending",
            body=snapshot.model_dump(mode="json", by_alias=True),
        )

"""Async client for the Cake Out invoicing REST backend."""

import logging
from typing import Any

import httpx

from cakeout.config import settings
from cakeout.errors import APIError, AuthError, NetworkError, NotFoundError
from cakeout.schemas import AuthResult, Customer, Invoice, InvoiceStatus

logger = logging.getLogger(__name__)


class CakeOutClient:
    """Async client for the invoicing backend.

    Sends the session token as a Bearer header on every request and maps
    transport and status failures onto the invoicing error taxonomy.
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: Session token from a previous login, if any.
            base_url: API base URL. Defaults to settings.
            timeout: Request timeout in seconds. Defaults to settings.
            transport: Optional httpx transport (used by tests).
        """
        self.token = token
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.api_timeout
        self._transport = transport
        self._http_client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "CakeOutClient":
        """Enter async context manager."""
        self._http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=True,
            transport=self._transport,
            headers={"Accept": "application/json"},
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Exit async context manager."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    @property
    def _client(self) -> httpx.AsyncClient:
        """Get the HTTP client, raising if not in context manager."""
        if self._http_client is None:
            raise RuntimeError("CakeOutClient must be used as an async context manager")
        return self._http_client

    def _headers(self) -> dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json_data: dict[str, Any] | None = None,
    ) -> Any:
        """Make an authenticated API request.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path (without base URL)
            params: Optional query parameters
            json_data: Optional JSON body

        Returns:
            Parsed JSON response, or None for empty bodies.

        Raises:
            AuthError: On 401 responses.
            NotFoundError: On 404 responses.
            NetworkError: On any other failure.
        """
        url = f"{self.base_url}{endpoint}"

        try:
            response = await self._client.request(
                method,
                url,
                headers=self._headers(),
                params=params,
                json=json_data,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.error(
                "Invoicing API error: %s %s - %s %s",
                method,
                endpoint,
                status_code,
                e.response.text,
            )
            if status_code == 401:
                raise AuthError("Session expired or credentials rejected") from e
            if status_code == 404:
                raise NotFoundError(f"Resource not found: {endpoint}") from e
            raise NetworkError(f"API call failed: {status_code} - {_error_message(e.response)}") from e
        except httpx.RequestError as e:
            logger.error("Invoicing request error: %s %s - %s", method, endpoint, e)
            raise NetworkError(f"Request failed: {e}") from e

        if not response.content:
            return None
        return response.json()

    # --- Authentication ---

    async def login(self, email: str, password: str) -> AuthResult:
        """Sign in and remember the returned token on this client.

        Raises:
            AuthError: If the credentials are rejected.
            NetworkError: If the call fails for any other reason.
        """
        try:
            data = await self._request(
                "POST", "/login", json_data={"email": email, "password": password}
            )
        except AuthError as e:
            raise AuthError(
                "Invalid credentials. Please check your email and password."
            ) from e
        result = AuthResult.model_validate(data)
        self.token = result.access_token
        logger.info("Signed in as %s", result.user.email)
        return result

    async def logout(self) -> None:
        """Invalidate the session token on the server."""
        await self._request("POST", "/logout")
        self.token = None

    # --- Customers ---

    async def search_customers(self, query: str) -> list[Customer]:
        """Find customers whose name matches a query (server-side match)."""
        data = await self._request("GET", "/customers/search", params={"q": query})
        return [Customer.model_validate(row) for row in _unwrap_list(data)]

    async def list_customers(self) -> list[Customer]:
        data = await self._request("GET", "/customers")
        return [Customer.model_validate(row) for row in _unwrap_list(data)]

    async def get_customer(self, customer_id: int) -> Customer:
        data = await self._request("GET", f"/customers/{customer_id}")
        return Customer.model_validate(_unwrap(data))

    async def create_customer(
        self,
        name: str,
        phone: str | None = None,
        address: str | None = None,
        email: str | None = None,
    ) -> Customer:
        """Create a customer explicitly.

        Invoice submission normally creates customers implicitly from a
        draft name; this is for callers that need the record up front.
        """
        body: dict[str, Any] = {"name": name}
        if phone:
            body["phone"] = phone
        if address:
            body["address"] = address
        if email:
            body["email"] = email
        data = await self._request("POST", "/customers", json_data=body)
        return Customer.model_validate(_unwrap(data))

    # --- Invoices ---

    async def list_invoices(self, status: InvoiceStatus | None = None) -> list[Invoice]:
        """List invoices, optionally filtered by lifecycle status."""
        params = {"status": status.value} if status else None
        data = await self._request("GET", "/invoices", params=params)
        return [Invoice.model_validate(row) for row in _unwrap_list(data)]

    async def get_invoice(self, invoice_id: int) -> Invoice:
        """Fetch one invoice.

        Raises:
            NotFoundError: If the invoice does not exist.
        """
        data = await self._request("GET", f"/invoices/{invoice_id}")
        return Invoice.model_validate(_unwrap(data))

    async def create_invoice(self, payload: dict[str, Any]) -> Invoice:
        """Create an invoice from a draft payload."""
        data = await self._request("POST", "/invoices", json_data=payload)
        return Invoice.model_validate(_unwrap(data))

    async def update_invoice(self, invoice_id: int, payload: dict[str, Any]) -> Invoice:
        data = await self._request("PUT", f"/invoices/{invoice_id}", json_data=payload)
        return Invoice.model_validate(_unwrap(data))

    async def delete_invoice(self, invoice_id: int) -> None:
        await self._request("DELETE", f"/invoices/{invoice_id}")


def _unwrap(data: Any) -> Any:
    """Accept both bare records and {"data": record} envelopes."""
    if isinstance(data, dict) and "data" in data and isinstance(data["data"], (dict, list)):
        return data["data"]
    return data


def _unwrap_list(data: Any) -> list[dict[str, Any]]:
    data = _unwrap(data)
    if data is None:
        return []
    if not isinstance(data, list):
        raise APIError(f"Expected a list response, got {type(data).__name__}")
    return data


def _error_message(response: httpx.Response) -> str:
    """Pull a human message out of an error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)

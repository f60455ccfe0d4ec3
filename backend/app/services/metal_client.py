"""Metal token registry HTTP client"""
from typing import Optional, List, Dict, Any
import httpx
import structlog

from app.config import get_settings
from app.services.errors import RegistryUnavailableError

logger = structlog.get_logger()
settings = get_settings()


class MetalClient:
    """Async client for the Metal token-issuance API.

    Every call is a single request authenticated with the static API key.
    Transport failures and non-2xx responses raise RegistryUnavailableError;
    callers decide whether that is fatal for their request.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.metal_api_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.metal_api_key
        self.timeout = timeout or settings.metal_timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def connect(self) -> None:
        """Open the underlying HTTP connection pool"""
        if self._client is None:
            if not self.api_key:
                logger.warning("METAL_API_KEY is not configured")
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Content-Type": "application/json", "x-api-key": self.api_key},
                timeout=self.timeout,
                transport=self._transport,
            )
            logger.info("Connected to Metal API", url=self.base_url)

    async def disconnect(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Disconnected from Metal API")

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Metal client not connected. Call connect() first.")
        return self._client

    async def _request(self, method: str, path: str, operation: str, json: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = await self.client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.error("Metal API request failed", operation=operation, error=str(e))
            raise RegistryUnavailableError(operation) from e

        if not response.is_success:
            logger.error(
                "Metal API error",
                operation=operation,
                status=response.status_code,
                body=response.text[:500],
            )
            raise RegistryUnavailableError(operation, response.status_code, response.text)

        try:
            return response.json()
        except ValueError as e:
            raise RegistryUnavailableError(operation, response.status_code, response.text) from e

    async def create_token(
        self,
        name: str,
        symbol: str,
        merchant_address: str,
        can_distribute: bool = True,
        can_lp: bool = True,
    ) -> Dict[str, Any]:
        """Submit a token creation job. The response carries the job id."""
        return await self._request(
            "POST",
            "/merchant/create-token",
            "create_token",
            json={
                "name": name,
                "symbol": symbol,
                "merchantAddress": merchant_address,
                "canDistribute": can_distribute,
                "canLP": can_lp,
            },
        )

    async def get_job_status(self, job_id: str) -> Dict[str, Any]:
        """Get the status of a creation job: pending, completed or failed"""
        return await self._request("GET", f"/merchant/create-token/status/{job_id}", "get_job_status")

    async def get_token(self, address: str) -> Dict[str, Any]:
        """Get full token details (price, supply, holders, ...)"""
        return await self._request("GET", f"/token/{address}", "get_token")

    async def list_tokens(self) -> Dict[str, Any]:
        """List every token created by this merchant"""
        data = await self._request("GET", "/merchant/all-tokens", "list_tokens")
        if isinstance(data, list):
            return {"tokens": data}
        return data

    async def create_liquidity(self, address: str) -> Dict[str, Any]:
        return await self._request("POST", f"/token/{address}/liquidity", "create_liquidity")

    async def get_or_create_holder(self, user_id: str) -> Dict[str, Any]:
        """Provision (or fetch) the custodial wallet for a user"""
        return await self._request("PUT", f"/holder/{user_id}", "get_or_create_holder")

    async def distribute(self, address: str, send_to: str, amount: float) -> Dict[str, Any]:
        """Send tokens from the merchant's app supply to a holder address"""
        return await self._request(
            "POST",
            f"/token/{address}/distribute",
            "distribute",
            json={"sendTo": send_to, "amount": amount},
        )


# Singleton instance
_metal_client: Optional[MetalClient] = None


async def get_metal_client() -> MetalClient:
    """Get or create Metal client singleton"""
    global _metal_client
    if _metal_client is None:
        _metal_client = MetalClient()
        await _metal_client.connect()
    return _metal_client


async def close_metal_client() -> None:
    """Close Metal client singleton"""
    global _metal_client
    if _metal_client is not None:
        await _metal_client.disconnect()
        _metal_client = None

"""
Selly (selly.gg) API v2 client.

Read access to products, orders, coupons and support queries, plus coupon
creation. Every call is: build request → HTTP → decode JSON → typed model or
SellyError. No retries: a failed call raises and the caller decides.

Authentication is HTTP basic auth (account email as user, API token as
password). Error bodies have the shape
    {"message": "...", "errors": {"title": ["..."]}}
and surface as SellyAPIError.

Also defines SellyWebhook, the payload Selly POSTs to our /webhook endpoint.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

logger = logging.getLogger(__name__)

SELLY_API_URL = "https://selly.gg/api/v2"
DEFAULT_USER_AGENT = "sellynotify/1.0"
DEFAULT_TIMEOUT = 30.0


class SellyError(Exception):
    """Base class for Selly API errors"""
    pass


class SellyTransportError(SellyError):
    """Network failure or timeout talking to the Selly API"""
    pass


class SellyDecodeError(SellyError):
    """Response body is not the documented JSON shape"""
    pass


class SellyAPIError(SellyError):
    """Selly answered with its error document"""

    def __init__(self, message: str, titles: Optional[List[str]] = None, status_code: Optional[int] = None):
        self.message = message
        self.titles = list(titles or [])
        self.status_code = status_code
        super().__init__(str(self))

    def __str__(self) -> str:
        if not self.titles:
            return self.message
        return f"{self.message}: {', '.join(self.titles)}"


# ====================================================================================
# Wire models
# ====================================================================================

class SellyModel(BaseModel):
    """Lenient base: unknown keys are ignored and JSON nulls fall back to defaults."""
    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class ErrorDetails(SellyModel):
    title: List[str] = Field(default_factory=list)


class SellyErrorResponse(SellyModel):
    message: str = ""
    errors: ErrorDetails = Field(default_factory=ErrorDetails)


class Product(SellyModel):
    id: str = ""
    title: str = ""
    description: str = ""
    stock: int = 0
    price: str = ""
    currency: str = ""
    product_type: int = 0
    bitcoin: bool = False
    paypal: bool = False
    stripe: bool = False
    litecoin: bool = False
    dash: bool = False
    ethereum: bool = False
    perfect_money: bool = False
    bitcoin_cash: bool = False
    ripple: bool = False
    private: bool = False
    unlisted: bool = False
    seller_note: str = ""
    maximum_quantity: Any = None
    minimum_quantity: int = 0
    custom: Any = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Order(SellyModel):
    id: str = ""
    product_id: str = ""
    email: str = ""
    ip_address: str = ""
    country_code: str = ""
    user_agent: str = ""
    value: str = ""
    currency: str = ""
    gateway: str = ""
    risk_level: int = 0
    status: int = 0
    delivered: str = ""
    crypto_value: Any = None
    crypto_address: Any = None
    referral: Any = None
    usd_value: str = ""
    exchange_rate: str = ""
    custom: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Coupon(SellyModel):
    id: int = 0
    code: str = ""
    discount: int = 0
    max_uses: Any = None
    product_ids: List[str] = Field(default_factory=list)
    uses: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Query(SellyModel):
    """Customer support query"""
    id: str = ""
    secret: str = ""
    title: str = ""
    email: str = ""
    message: str = ""
    status: int = 0
    country_code: str = ""
    ip_address: str = ""
    avatar_url: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SellyWebhook(SellyModel):
    """Order notification posted by Selly. Missing fields stay zero-valued."""
    id: str = ""
    product_id: str = ""
    email: str = ""
    ip_address: str = ""
    country_code: str = ""
    user_agent: str = ""
    value: str = ""
    currency: str = ""
    gateway: str = ""
    risk_level: int = 0
    status: int = 0
    delivered: str = ""
    crypto_value: Any = None
    crypto_address: Any = None
    referral: str = ""
    webhook_type: int = 0
    created_at: str = ""
    updated_at: str = ""


ModelT = TypeVar("ModelT", bound=SellyModel)


def _error_from_body(data: Any, status_code: Optional[int]) -> Optional[SellyAPIError]:
    """Build SellyAPIError when ``data`` is Selly's error document."""
    if not isinstance(data, dict) or "message" not in data or "id" in data:
        return None
    try:
        err = SellyErrorResponse.model_validate(data)
    except ValidationError:
        return None
    return SellyAPIError(err.message, err.errors.title, status_code)


# ====================================================================================
# Client
# ====================================================================================

class SellyClient:
    """
    Async Selly API client.

    Example:
        async with SellyClient("me@example.com", "api-token") as selly:
            product = await selly.get_product("a1b2c3")
            coupons = await selly.get_coupons()
    """

    def __init__(
        self,
        email: str,
        token: str,
        user_agent: str = "",
        proxy: Optional[str] = None,
        base_url: str = SELLY_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            email: Selly account email (basic auth user)
            token: Selly API token (basic auth password)
            user_agent: "Yourusername - website-using-api.com"; defaults to DEFAULT_USER_AGENT
            proxy: Optional proxy URL, e.g. socks5://127.0.0.1:1080
            base_url: API root, overridable for tests
            timeout: Per-request timeout in seconds
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self._client = httpx.AsyncClient(
            base_url=base_url,
            auth=httpx.BasicAuth(email, token),
            headers={
                "User-Agent": user_agent or DEFAULT_USER_AGENT,
                "Accept": "application/json",
            },
            timeout=timeout,
            proxy=proxy,
            transport=transport,
        )

    async def __aenter__(self) -> "SellyClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = await self._client.request(method, path, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"SELLY_REQUEST_FAILED [method={method}, path={path}, error={type(e).__name__}: {e}]")
            raise SellyTransportError(f"{method} {path}: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = None

        if response.is_error:
            err = _error_from_body(data, response.status_code)
            if err is None:
                err = SellyAPIError(
                    response.text[:200] or response.reason_phrase,
                    status_code=response.status_code,
                )
            logger.warning(f"SELLY_API_ERROR [method={method}, path={path}, status={response.status_code}, error={err}]")
            raise err

        if data is None:
            raise SellyDecodeError(f"{method} {path}: response is not JSON: {response.text[:200]}")

        err = _error_from_body(data, response.status_code)
        if err is not None:
            raise err
        return data

    @staticmethod
    def _decode(model: Type[ModelT], data: Any) -> ModelT:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise SellyDecodeError(f"Unexpected {model.__name__} shape: {e}") from e

    @staticmethod
    def _decode_list(model: Type[ModelT], data: Any) -> List[ModelT]:
        try:
            return TypeAdapter(List[model]).validate_python(data)
        except ValidationError as e:
            raise SellyDecodeError(f"Unexpected {model.__name__} list shape: {e}") from e

    async def _get_one(self, model: Type[ModelT], collection: str, item_id: str) -> ModelT:
        data = await self._request("GET", f"/{collection}/{quote(str(item_id), safe='')}")
        return self._decode(model, data)

    async def _get_all(self, model: Type[ModelT], collection: str) -> List[ModelT]:
        data = await self._request("GET", f"/{collection}")
        return self._decode_list(model, data)

    async def get_product(self, product_id: str) -> Product:
        return await self._get_one(Product, "products", product_id)

    async def get_products(self) -> List[Product]:
        return await self._get_all(Product, "products")

    async def get_order(self, order_id: str) -> Order:
        return await self._get_one(Order, "orders", order_id)

    async def get_orders(self) -> List[Order]:
        return await self._get_all(Order, "orders")

    async def get_coupon(self, coupon_id: str) -> Coupon:
        return await self._get_one(Coupon, "coupons", coupon_id)

    async def get_coupons(self) -> List[Coupon]:
        return await self._get_all(Coupon, "coupons")

    async def get_query(self, query_id: str) -> Query:
        return await self._get_one(Query, "queries", query_id)

    async def get_queries(self) -> List[Query]:
        return await self._get_all(Query, "queries")

    async def create_coupon(self, code: str, discount: int, product_ids: List[str]) -> Coupon:
        """
        Create a coupon.

        Args:
            code: Coupon code customers type at checkout
            discount: Discount percentage
            product_ids: Products the coupon applies to

        Returns:
            The coupon as stored by Selly

        Raises:
            SellyAPIError: validation failure (e.g. duplicate code)
        """
        request_body = {
            "code": code,
            "discount": discount,
            "product_ids": list(product_ids),
        }
        data = await self._request("POST", "/coupons", request_body)
        coupon = self._decode(Coupon, data)
        logger.info(f"SELLY_COUPON_CREATED [id={coupon.id}, code={coupon.code}, discount={coupon.discount}]")
        return coupon


def create_selly_client(settings) -> SellyClient:
    """
    Build a client from config.Settings.

    Raises:
        SellyError: TOKENSELLY or EMAIL not configured
    """
    if not (settings.selly_email and settings.selly_token):
        raise SellyError("Selly not configured: set TOKENSELLY and EMAIL")
    return SellyClient(
        email=settings.selly_email,
        token=settings.selly_token,
        user_agent=settings.selly_user_agent,
        proxy=settings.selly_proxy,
    )

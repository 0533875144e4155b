"""Link provider gateway for the Dub short-link API.

Wraps the Dub REST API (links and domains) behind three operations used
by the conversation flows: create a link, delete a link, list domains.
Every request runs under the shared RetryPolicy; provider rejections are
translated into the Telepath error taxonomy before the policy sees them,
so deterministic failures (duplicate or malformed slug) are never retried.

Example:
    async with DubClient(api_key="dub_xxx") as dub:
        link = await dub.create_link("https://example.com/post", key="post")
        print(link.short_link)
"""

import logging
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from telepath.errors import (
    DuplicateSlugError,
    InvalidSlugFormatError,
    NetworkError,
    ProviderError,
    RateLimitError,
)
from telepath.services.retry import RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.dub.co"
DEFAULT_DOMAIN = "dub.sh"


class ProviderLink(BaseModel):
    """A short link as returned by the provider."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    domain: str
    key: str
    url: str
    short_link: str = Field(alias="shortLink")
    created_at: str | None = Field(default=None, alias="createdAt")
    title: str | None = None
    description: str | None = None


class ProviderDomain(BaseModel):
    """A domain configured in the provider workspace."""

    id: str
    slug: str
    verified: bool = False
    primary: bool = False


class DubClient:
    """Async Dub API client with retry and error translation.

    Attributes:
        _client: Shared httpx.AsyncClient (owned unless injected).
        _retry: RetryPolicy applied to every call.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        retry: RetryPolicy | None = None,
        timeout: float = 15.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the gateway.

        Args:
            api_key: Dub workspace API key.
            base_url: API root URL.
            retry: Retry policy; defaults to 3 attempts from 1s.
            timeout: Per-request timeout in seconds.
            http_client: Optional pre-built client (tests inject a
                MockTransport-backed one).
        """
        self._retry = retry or RetryPolicy()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
        )

    async def __aenter__(self) -> "DubClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this gateway created it."""
        if self._owns_client:
            await self._client.aclose()

    # ── Operations ─────────────────────────────────────────────────────

    async def create_link(
        self,
        url: str,
        domain: str | None = None,
        key: str | None = None,
        title: str | None = None,
        description: str | None = None,
    ) -> ProviderLink:
        """Create a short link.

        Raises:
            DuplicateSlugError: The slug is already taken on the domain.
            InvalidSlugFormatError: The provider rejected the slug format.
            ProviderError: Any other provider rejection.
            NetworkError / RateLimitError: Transient failure after retries.
        """
        body: dict[str, Any] = {"url": url}
        for name, value in (
            ("domain", domain),
            ("key", key),
            ("title", title),
            ("description", description),
        ):
            if value:
                body[name] = value

        async def _create() -> ProviderLink:
            data = await self._request("POST", "/links", json=body)
            return ProviderLink.model_validate(data)

        link = await self._retry.run(_create, "create_link")
        logger.info("Created short link %s (%s)", link.short_link, link.id)
        return link

    async def delete_link(self, link_id: str) -> None:
        """Delete a short link by provider id."""

        async def _delete() -> None:
            await self._request("DELETE", f"/links/{link_id}")

        await self._retry.run(_delete, "delete_link")
        logger.info("Deleted provider link %s", link_id)

    async def list_domains(self) -> list[ProviderDomain]:
        """List every domain in the workspace. No filtering is applied."""

        async def _list() -> list[ProviderDomain]:
            data = await self._request("GET", "/domains")
            items = data.get("result", data) if isinstance(data, dict) else data
            return [ProviderDomain.model_validate(d) for d in items or []]

        return await self._retry.run(_list, "list_domains")

    async def list_verified_domains(self) -> list[str]:
        """Return slugs of verified domains, or [] if listing fails.

        Link creation and the setup wizard only use this to offer choices,
        so a listing failure degrades to "no extra domains".
        """
        try:
            domains = await self.list_domains()
        except Exception as e:
            logger.warning("Could not fetch provider domains: %s", e)
            return []
        return [d.slug for d in domains if d.verified]

    # ── Transport ──────────────────────────────────────────────────────

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send one request and translate failures.

        Returns:
            Decoded JSON body, or None for empty responses.
        """
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            raise NetworkError(f"{method} {path} failed: {e}") from e

        if response.status_code == 429:
            raise RateLimitError(f"{method} {path} rate limited")
        if response.status_code >= 500:
            raise NetworkError(
                f"{method} {path} returned {response.status_code}"
            )
        if response.is_error:
            raise self._translate_error(response)

        if not response.content:
            return None
        return response.json()

    def _translate_error(self, response: httpx.Response) -> ProviderError:
        """Translate a 4xx provider response by its message content."""
        message = _extract_error_message(response)
        lower = message.lower()
        if "already exists" in lower:
            return DuplicateSlugError(message)
        if "invalid" in lower:
            return InvalidSlugFormatError(message)
        return ProviderError(
            f"Provider request failed: {message}",
            status_code=response.status_code,
        )


def _extract_error_message(response: httpx.Response) -> str:
    """Pull the provider's error message out of a response body.

    Dub errors look like ``{"error": {"code": ..., "message": ...}}``;
    anything else falls back to the raw text (capped).
    """
    try:
        data = response.json()
    except ValueError:
        return response.text[:500] or f"HTTP {response.status_code}"

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
        if data.get("message"):
            return str(data["message"])
    return response.text[:500]

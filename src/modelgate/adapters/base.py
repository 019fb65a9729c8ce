"""Contracts that client adapters implement to plug into modelgate.

An adapter is constructed once per distinct set of construction options and
hands out language-model handles by id. Every network request an adapter
makes goes through its ``fetch`` callable so callers can wrap transport
behaviour (timeouts, cancellation, logging) without subclassing.

Examples:
    >>> from modelgate.adapters.base import BaseAdapter
"""

from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Mapping, Optional, Protocol

import httpx

from modelgate._internal.abort import AbortSignal, race

logger = logging.getLogger(__name__)


class Fetch(Protocol):
    """Send ``request`` and return the fully read response."""

    def __call__(
        self, request: httpx.Request, *, signal: Optional[AbortSignal] = None
    ) -> Awaitable[httpx.Response]: ...


class NoSuchModelError(LookupError):
    """Raised by an adapter that does not serve the requested model."""

    def __init__(self, model_id: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"No such model: {model_id}")
        self.model_id = model_id


async def default_fetch(
    request: httpx.Request, *, signal: Optional[AbortSignal] = None
) -> httpx.Response:
    """Send ``request`` with a short-lived httpx client, abandoning it if ``signal`` fires."""

    async def _send() -> httpx.Response:
        # Deadlines come from the abort signal, not from httpx.
        async with httpx.AsyncClient(timeout=None) as client:
            response = await client.send(request)
            await response.aread()
            return response

    return await race(_send(), signal)


class BaseAdapter(ABC):
    """Abstract contract all client adapters implement.

    Attributes:
        name: Provider id the adapter was built for.
        base_url: Endpoint prefix for requests.
        api_key: Credential, if one could be resolved.
        headers: Headers sent with every request.
    """

    def __init__(
        self,
        *,
        name: str,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        fetch: Optional[Fetch] = None,
        env: Optional[Mapping[str, str]] = None,
        **options: Any,
    ) -> None:
        """Initialize shared adapter state.

        Args:
            name: Provider id.
            base_url: Endpoint prefix; trailing slashes are stripped.
            api_key: Explicit credential.
            headers: Extra request headers.
            fetch: Transport used for every request; defaults to :func:`default_fetch`.
            env: Raw environment values declared by the provider. The first
                value is used as the credential when ``api_key`` is absent.
            **options: Adapter-specific options kept on ``self.options``.
        """
        self.name = name
        self.base_url = base_url.rstrip("/") if base_url else None
        self.api_key = api_key or next(iter((env or {}).values()), None)
        self.headers = dict(headers or {})
        self.fetch: Fetch = fetch or default_fetch
        self.options = options

    @abstractmethod
    def language_model(self, model_id: str) -> Any:
        """Return a ready-to-invoke handle for ``model_id``.

        Raises:
            NoSuchModelError: If the adapter does not serve ``model_id``.
        """

    async def aclose(self) -> None:
        """Release adapter resources. The default adapter holds none."""
        return None

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return f"{type(self).__name__}(name={self.name!r}, base_url={self.base_url!r})"


async def close_adapter(adapter: Any) -> None:
    """Call ``adapter.aclose()`` when it exists, logging any failure."""
    close = getattr(adapter, "aclose", None)
    if close is None:
        return
    try:
        result = close()
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("failed to close adapter %r", adapter)


__all__ = ["BaseAdapter", "Fetch", "NoSuchModelError", "close_adapter", "default_fetch"]

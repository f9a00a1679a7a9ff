"""Process-wide cache of discovered OIDC clients, one per provider."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from authcore.federation.client import OIDCClient
from authcore.federation.types import Provider, ProviderRegistration

logger = logging.getLogger(__name__)

ClientBuilder = Callable[[ProviderRegistration], Awaitable[OIDCClient]]


class ClientRegistry:
    """Lazily builds and memoizes an ``OIDCClient`` per provider.

    Initialization is guarded by a per-provider lock with a double check, so
    concurrent first requests build at most one client. A failed build leaves
    nothing behind and the next request tries again.
    """

    def __init__(
        self,
        registrations: Callable[[Provider], ProviderRegistration],
        builder: ClientBuilder = OIDCClient.discover,
    ) -> None:
        self._registrations = registrations
        self._builder = builder
        self._clients: dict[Provider, OIDCClient] = {}
        self._locks: dict[Provider, asyncio.Lock] = {}

    def get(self, provider: Provider) -> OIDCClient | None:
        """Return the client if it has already been built."""
        return self._clients.get(provider)

    async def get_or_init(self, provider: Provider) -> OIDCClient:
        """Return the cached client, building it on first use."""
        client = self._clients.get(provider)
        if client is not None:
            return client
        lock = self._locks.setdefault(provider, asyncio.Lock())
        async with lock:
            client = self._clients.get(provider)
            if client is None:
                client = await self._builder(self._registrations(provider))
                self._clients[provider] = client
                logger.info("Initialized %s client", provider)
        return client

    def clear(self) -> None:
        """Forget every cached client."""
        self._clients.clear()

"""Context construction, usage counters and per-owner context confinement."""

from __future__ import annotations

import logging
import threading
from collections.abc import Hashable
from dataclasses import dataclass

from schema_llm.config import ContextConfig
from schema_llm.context import GeneralContext
from schema_llm.errors import SchemaNotFoundError
from schema_llm.registry import SchemaRegistry

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of the factory's usage counters.

    The counters only record how often a provider was requested; contexts and
    parsed schemas are never reused.
    """

    hits: int = 0
    misses: int = 0
    size: int = 0

    @property
    def total_requests(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        total = self.total_requests
        return self.hits / total if total else 0.0


class ContextFactory:
    """Builds GeneralContext instances for providers known to a SchemaRegistry."""

    def __init__(self, registry: SchemaRegistry, default_config: ContextConfig | None = None) -> None:
        if registry is None:
            raise ValueError("Registry cannot be null")
        self._registry = registry
        self._default_config = default_config or ContextConfig()
        self._stats_lock = threading.Lock()
        self._stats: dict[str, list[int]] = {}
        self._contexts_lock = threading.Lock()
        self._contexts: dict[tuple[Hashable, str], GeneralContext] = {}

    @property
    def registry(self) -> SchemaRegistry:
        return self._registry

    @property
    def default_config(self) -> ContextConfig:
        return self._default_config

    def create_context(self, provider: str, config: ContextConfig | None = None) -> GeneralContext:
        """Return a new context for ``provider`` built from its registered schema."""
        if not provider or not provider.strip():
            raise ValueError("Provider name cannot be null or empty")

        schema_path = self._registry.resolve_path(provider)
        self._record_access(provider)
        try:
            context = GeneralContext(str(schema_path), config or self._default_config)
        except Exception as exc:
            _logger.error("Failed to create context for provider: %s", provider, exc_info=True)
            raise SchemaNotFoundError(provider, schema_path) from exc

        _logger.debug("Created context for provider %s using schema %s", provider, schema_path)
        return context

    # -- usage counters -------------------------------------------------------

    def _record_access(self, provider: str) -> None:
        with self._stats_lock:
            counts = self._stats.setdefault(provider, [0, 0])
            if counts[0] + counts[1] > 0:
                counts[0] += 1
            else:
                counts[1] += 1

    def get_cache_stats(self) -> CacheStats:
        with self._stats_lock:
            hits = sum(counts[0] for counts in self._stats.values())
            misses = sum(counts[1] for counts in self._stats.values())
            return CacheStats(hits=hits, misses=misses, size=len(self._stats))

    def get_provider_stats(self, provider: str) -> CacheStats:
        with self._stats_lock:
            counts = self._stats.get(provider)
            if counts is None:
                return CacheStats()
            return CacheStats(hits=counts[0], misses=counts[1], size=1)

    def clear_cache(self) -> None:
        with self._stats_lock:
            self._stats.clear()

    # -- confinement ----------------------------------------------------------

    def get_thread_local_context(
        self,
        provider: str,
        owner: Hashable | None = None,
        config: ContextConfig | None = None,
    ) -> GeneralContext:
        """Return the context confined to ``owner``, creating it on first access.

        ``owner`` defaults to the calling thread's identifier; asyncio tasks or
        worker pools can pass their own identifier instead.
        """
        key = (_owner(owner), provider)
        with self._contexts_lock:
            context = self._contexts.get(key)
        if context is not None:
            return context

        context = self.create_context(provider, config)
        with self._contexts_lock:
            return self._contexts.setdefault(key, context)

    def remove_thread_local_context(self, provider: str, owner: Hashable | None = None) -> None:
        with self._contexts_lock:
            self._contexts.pop((_owner(owner), provider), None)

    def clear_thread_local_contexts(self, owner: Hashable | None = None) -> None:
        """Drop every context confined to ``owner``; other owners are untouched."""
        owner_key = _owner(owner)
        with self._contexts_lock:
            for key in [key for key in self._contexts if key[0] == owner_key]:
                del self._contexts[key]

    def peek_thread_local_context(self, provider: str, owner: Hashable | None = None) -> GeneralContext | None:
        with self._contexts_lock:
            return self._contexts.get((_owner(owner), provider))

    # -- registry passthrough -------------------------------------------------

    def get_available_providers(self) -> list[str]:
        return self._registry.list_available()

    def is_provider_available(self, provider: str | None) -> bool:
        return self._registry.is_available(provider)


class ProviderContext:
    """Handle bound to one provider that hands out the caller's confined context."""

    def __init__(self, factory: ContextFactory, provider_name: str, config: ContextConfig | None = None) -> None:
        if factory is None:
            raise ValueError("Factory cannot be null")
        if provider_name is None:
            raise ValueError("Provider name cannot be null")
        self._factory = factory
        self._provider_name = provider_name
        self._config = config or ContextConfig()

    @property
    def provider_name(self) -> str:
        return self._provider_name

    @property
    def config(self) -> ContextConfig:
        return self._config

    def get(self, owner: Hashable | None = None) -> GeneralContext:
        return self._factory.get_thread_local_context(self._provider_name, owner, self._config)

    def reset(self, owner: Hashable | None = None) -> None:
        """Reset the caller's context, if one has been created."""
        context = self._factory.peek_thread_local_context(self._provider_name, owner)
        if context is not None:
            context.reset()

    def clear(self, owner: Hashable | None = None) -> None:
        """Forget the caller's context so the next ``get`` builds a fresh one."""
        self._factory.remove_thread_local_context(self._provider_name, owner)


def _owner(owner: Hashable | None) -> Hashable:
    return threading.get_ident() if owner is None else owner

"""Provider name to schema file mapping."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchemaRegistry:
    """Immutable schema directory plus explicit provider overrides.

    Safe to share between threads once constructed. Use ``create_registry``
    rather than calling the constructor directly.
    """

    schema_directory: Path
    provider_paths: Mapping[str, Path] = field(default_factory=lambda: MappingProxyType({}), hash=False)

    def resolve_path(self, provider: str) -> Path:
        """Return the absolute schema path for ``provider``; overrides win."""
        if not provider or not provider.strip():
            raise ValueError("Provider name cannot be null or empty")

        path = self.provider_paths.get(provider)
        if path is not None:
            return path.absolute()
        return (self.schema_directory / f"{provider}.json").absolute()

    def list_available(self) -> list[str]:
        """Providers whose schema file exists, from overrides and the schema directory."""
        providers = {name for name, path in self.provider_paths.items() if path.is_file()}

        if self.schema_directory.is_dir():
            try:
                with os.scandir(self.schema_directory) as entries:
                    for entry in entries:
                        if entry.name.endswith(".json") and entry.is_file():
                            providers.add(entry.name[: -len(".json")])
            except OSError as exc:
                _logger.warning("Could not list schema directory %s: %s", self.schema_directory, exc)

        return sorted(providers)

    def is_available(self, provider: str | None) -> bool:
        if not provider or not provider.strip():
            return False
        return self.resolve_path(provider).is_file()


def create_registry(
    schema_directory: str | os.PathLike[str] = "./schemas",
    overrides: Mapping[str, str | os.PathLike[str]] | None = None,
) -> SchemaRegistry:
    """Build a registry from a schema directory and ``provider -> path`` overrides."""
    if not os.fspath(schema_directory).strip():
        raise ValueError("Schema directory cannot be null or empty")

    paths: dict[str, Path] = {}
    for name, path in (overrides or {}).items():
        if not name or not name.strip():
            raise ValueError("Provider name cannot be null or empty")
        if not os.fspath(path).strip():
            raise ValueError("Schema path cannot be null or empty")
        paths[name] = Path(path)

    return SchemaRegistry(schema_directory=Path(schema_directory), provider_paths=MappingProxyType(paths))

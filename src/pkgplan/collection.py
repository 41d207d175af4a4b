"""Platform package collections: name -> artifact resolvers, one per platform."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Protocol, runtime_checkable

from pkgplan.errors import UnresolvedDependencyError, ValidationError
from pkgplan.models import Artifact, PlatformId
from pkgplan.platforms import SUPPORTED_PLATFORMS, ensure_supported

DEFAULT_STORE_DIR = "/nix/store"


@runtime_checkable
class PlatformPackageCollection(Protocol):
    """Read-only capability from which build/runtime tools are looked up by name."""

    @property
    def platform(self) -> PlatformId:
        """Platform whose packages this collection resolves."""

    def get(self, name: str) -> Artifact | None:
        """Return the artifact registered under *name*, or None."""


class PackageStore(Protocol):
    """Supplies one package collection per platform."""

    def collection_for(self, platform: PlatformId) -> PlatformPackageCollection:
        """Return the collection for *platform*."""


def require(
    collection: PlatformPackageCollection,
    name: str,
    *,
    component: str,
) -> Artifact:
    artifact = collection.get(name)
    if artifact is None:
        raise UnresolvedDependencyError(
            f"Dependency `{name}` is not available for {collection.platform}.",
            hint="Provide the package in this platform's collection or drop the dependency.",
            context={
                "platform": collection.platform,
                "dependency": name,
                "component": component,
            },
        )
    return artifact


@dataclass(frozen=True, slots=True)
class StaticPackageCollection:
    """In-memory collection backed by an immutable name -> artifact mapping."""

    platform: PlatformId
    entries: Mapping[str, Artifact] = field(default_factory=dict)

    def __post_init__(self) -> None:
        ensure_supported(self.platform)
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    def get(self, name: str) -> Artifact | None:
        return self.entries.get(name)

    def names(self) -> tuple[str, ...]:
        return tuple(sorted(self.entries))

    @classmethod
    def from_paths(cls, platform: PlatformId, paths: Mapping[str, str]) -> StaticPackageCollection:
        return cls(
            platform=platform,
            entries={name: Artifact(name=name, path=path) for name, path in paths.items()},
        )

    @classmethod
    def synthetic(
        cls,
        platform: PlatformId,
        names: Iterable[str],
        *,
        store_dir: str = DEFAULT_STORE_DIR,
    ) -> StaticPackageCollection:
        """Collection with deterministic placeholder store paths, for dry runs."""
        return cls(
            platform=platform,
            entries={
                name: Artifact(name=name, path=synthetic_store_path(platform, name, store_dir))
                for name in names
            },
        )


def synthetic_store_path(platform: str, name: str, store_dir: str = DEFAULT_STORE_DIR) -> str:
    digest = hashlib.sha256(f"{platform}:{name}".encode()).hexdigest()[:32]
    return f"{store_dir}/{digest}-{name.replace('.', '-')}"


@dataclass(frozen=True, slots=True)
class StaticPackageStore:
    collections: Mapping[PlatformId, PlatformPackageCollection]

    def collection_for(self, platform: PlatformId) -> PlatformPackageCollection:
        ensure_supported(platform)
        try:
            return self.collections[platform]
        except KeyError as exc:
            raise ValidationError(
                "Package store has no collection for this platform.",
                context={"platform": platform, "operation": "collection_for"},
            ) from exc

    @classmethod
    def synthetic(
        cls,
        names_for: Callable[[PlatformId], Iterable[str]],
        *,
        platforms: Iterable[PlatformId] = SUPPORTED_PLATFORMS,
        store_dir: str = DEFAULT_STORE_DIR,
    ) -> StaticPackageStore:
        return cls(
            collections={
                platform: StaticPackageCollection.synthetic(
                    platform,
                    names_for(platform),
                    store_dir=store_dir,
                )
                for platform in platforms
            }
        )

    @classmethod
    def from_json(cls, path: str | Path) -> StaticPackageStore:
        """Load ``{platform: {name: store_path}}`` from a JSON file."""
        store_path = Path(path)
        try:
            payload = json.loads(store_path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise ValidationError(
                "Package store file does not exist.",
                context={"path": str(store_path)},
            ) from exc
        except json.JSONDecodeError as exc:
            raise ValidationError(
                "Invalid package store JSON.",
                hint=str(exc),
                context={"path": str(store_path)},
            ) from exc
        if not isinstance(payload, dict):
            raise ValidationError(
                "Package store JSON must map platforms to package tables.",
                context={"path": str(store_path)},
            )

        collections: dict[PlatformId, PlatformPackageCollection] = {}
        for platform, table in payload.items():
            ensure_supported(platform)
            if not isinstance(table, dict) or not all(
                isinstance(key, str) and isinstance(value, str) for key, value in table.items()
            ):
                raise ValidationError(
                    "Package table entries must map names to store paths.",
                    context={"path": str(store_path), "platform": platform},
                )
            collections[platform] = StaticPackageCollection.from_paths(platform, table)
        return cls(collections=collections)


__all__ = [
    "DEFAULT_STORE_DIR",
    "PackageStore",
    "PlatformPackageCollection",
    "StaticPackageCollection",
    "StaticPackageStore",
    "require",
    "synthetic_store_path",
]

"""Overlay extension point: add this package to someone else's collection."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from pkgplan.collection import DEFAULT_STORE_DIR, PlatformPackageCollection
from pkgplan.models import Artifact, PackageMetadata, PlatformId
from pkgplan.plan import BuildExecutor, BuildPlan, BuildPlanBuilder
from pkgplan.source import SourceTree

Extension = Callable[[PlatformPackageCollection], dict[str, BuildPlan]]


@dataclass(frozen=True, slots=True)
class OverlayPublisher:
    metadata: PackageMetadata
    source: SourceTree
    builder: BuildPlanBuilder = field(default_factory=BuildPlanBuilder)

    def as_extension(self) -> Extension:
        """Return ``existing -> {name: plan}``, built against the caller's collection."""
        metadata = self.metadata
        source = self.source
        builder = self.builder

        def extension(existing: PlatformPackageCollection) -> dict[str, BuildPlan]:
            return {metadata.name: builder.build(metadata, source, existing)}

        return extension


@dataclass(frozen=True, slots=True)
class OverlayCollection:
    """A collection with overlaid plans taking precedence over the base entries."""

    base: PlatformPackageCollection
    plans: Mapping[str, BuildPlan]
    store_dir: str = DEFAULT_STORE_DIR
    executor: BuildExecutor | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "plans", MappingProxyType(dict(self.plans)))

    @property
    def platform(self) -> PlatformId:
        return self.base.platform

    def get(self, name: str) -> Artifact | None:
        plan = self.plans.get(name)
        if plan is None:
            return self.base.get(name)
        if self.executor is not None:
            return self.executor.realize(plan)
        return Artifact(
            name=name,
            path=f"{self.store_dir}/{plan.digest()[:32]}-{plan.pname}-{plan.version}",
        )

    def plan_for(self, name: str) -> BuildPlan | None:
        return self.plans.get(name)


def apply_overlay(
    collection: PlatformPackageCollection,
    extension: Extension,
    *,
    store_dir: str = DEFAULT_STORE_DIR,
    executor: BuildExecutor | None = None,
) -> OverlayCollection:
    return OverlayCollection(
        base=collection,
        plans=extension(collection),
        store_dir=store_dir,
        executor=executor,
    )


__all__ = ["Extension", "OverlayCollection", "OverlayPublisher", "apply_overlay"]

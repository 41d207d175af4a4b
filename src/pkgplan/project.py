"""Project root object tying manifest, source selection and evaluation together."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from pkgplan.collection import PackageStore, PlatformPackageCollection, StaticPackageStore
from pkgplan.manifest import DEFAULT_MANIFEST, load_manifest
from pkgplan.matrix import Matrix, MatrixEvaluator
from pkgplan.models import DevShell, PackageMetadata, PlatformId
from pkgplan.observability import StructuredLogger
from pkgplan.overlay import Extension, OverlayPublisher
from pkgplan.plan import ArtifactIndex, BuildPlan, BuildPlanBuilder, PlanConfig
from pkgplan.platforms import PlatformMatrix, extra_link_requirements
from pkgplan.policy import EvaluationPolicy, ensure_valid_policy
from pkgplan.runtime import RuntimeDependencySet
from pkgplan.source import SourceTree, select_source

DEFAULT_SOURCE_PATTERNS: tuple[str, ...] = (
    r"(src|tests)(/.*)?",
    r"Cargo\.(toml|lock)",
    r"build\.rs",
)


@dataclass(slots=True)
class Project:
    """A package description loaded once and shared read-only by every platform."""

    metadata: PackageMetadata
    source: SourceTree
    config: PlanConfig = field(default_factory=PlanConfig)
    runtime: RuntimeDependencySet = field(default_factory=RuntimeDependencySet)
    policy: EvaluationPolicy = field(default_factory=EvaluationPolicy)
    artifacts: ArtifactIndex | None = None
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    _builder: BuildPlanBuilder = field(init=False, repr=False)

    def __post_init__(self) -> None:
        ensure_valid_policy(self.policy)
        self._builder = BuildPlanBuilder(
            config=self.config,
            runtime=self.runtime,
            artifacts=self.artifacts,
            logger=self.logger,
        )

    @classmethod
    def load(
        cls,
        root: str | Path,
        *,
        manifest: str = DEFAULT_MANIFEST,
        patterns: Sequence[str] = DEFAULT_SOURCE_PATTERNS,
        runtime: RuntimeDependencySet | None = None,
        config: PlanConfig | None = None,
        policy: EvaluationPolicy | None = None,
        artifacts: ArtifactIndex | None = None,
        logger: StructuredLogger | None = None,
    ) -> Project:
        root_path = Path(root)
        logger = logger if logger is not None else StructuredLogger()
        metadata = load_manifest(root_path / manifest)
        source = select_source(root_path, patterns, logger=logger)
        return cls(
            metadata=metadata,
            source=source,
            config=config if config is not None else PlanConfig.for_package(metadata.name),
            runtime=runtime if runtime is not None else RuntimeDependencySet(),
            policy=policy if policy is not None else EvaluationPolicy(),
            artifacts=artifacts,
            logger=logger,
        )

    @property
    def builder(self) -> BuildPlanBuilder:
        return self._builder

    def evaluator(self) -> MatrixEvaluator:
        return MatrixEvaluator(
            metadata=self.metadata,
            source=self.source,
            builder=self._builder,
            policy=self.policy,
            logger=self.logger,
        )

    def package_for(self, collection: PlatformPackageCollection) -> BuildPlan:
        return self._builder.build(self.metadata, self.source, collection)

    def dev_shell_for(self, collection: PlatformPackageCollection) -> DevShell:
        return DevShell(
            platform=collection.platform,
            packages=self.runtime.resolve_artifacts(collection),
        )

    def matrix(
        self,
        store: PackageStore | None = None,
        *,
        collection_for: Callable[[PlatformId], PlatformPackageCollection] | None = None,
    ) -> Matrix:
        if collection_for is None:
            resolved_store = store if store is not None else self.synthetic_store()
            collection_for = resolved_store.collection_for
        platform_matrix = PlatformMatrix(collection_for=collection_for)
        return self.evaluator().evaluate(
            platform_matrix.platforms,
            collection_for=platform_matrix.collection_for,
        )

    def overlay(self) -> Extension:
        return OverlayPublisher(self.metadata, self.source, self._builder).as_extension()

    def required_packages(self, platform: PlatformId) -> tuple[str, ...]:
        """Every package name a collection must provide to evaluate *platform*."""
        names = [
            *self.config.native_tools,
            *extra_link_requirements(platform, self.config.linkage_rules),
            *self.runtime.names,
            self.policy.formatter,
        ]
        return tuple(dict.fromkeys(names))

    def synthetic_store(self) -> StaticPackageStore:
        return StaticPackageStore.synthetic(self.required_packages)


__all__ = ["DEFAULT_SOURCE_PATTERNS", "Project"]

"""Evaluate one package description across every supported platform."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

import cbor2

from pkgplan.collection import PlatformPackageCollection, require
from pkgplan.errors import PlanError, UnresolvedDependencyError, ValidationError
from pkgplan.models import Artifact, DevShell, PackageMetadata, PlatformId
from pkgplan.observability import StructuredLogger
from pkgplan.plan import BuildPlan, BuildPlanBuilder
from pkgplan.platforms import SUPPORTED_PLATFORMS, ensure_platform_set, ensure_supported
from pkgplan.policy import EvaluationPolicy, ensure_valid_policy
from pkgplan.runtime import RuntimeDependencySet
from pkgplan.source import SourceTree

CollectionSupplier = Callable[[PlatformId], PlatformPackageCollection]


@dataclass(frozen=True, slots=True)
class PlatformOutputs:
    platform: PlatformId
    package: BuildPlan | None = None
    dev_shell: DevShell | None = None
    formatter: Artifact | None = None
    error: PlanError | None = None
    formatter_error: PlanError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.formatter_error is None

    @property
    def first_error(self) -> PlanError | None:
        return self.error if self.error is not None else self.formatter_error

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"platform": self.platform}
        if self.error is not None:
            payload["error"] = self.error.to_dict()
            return payload
        if self.package is not None:
            payload["packages"] = {"default": self.package.to_dict()}
        if self.dev_shell is not None:
            payload["devShells"] = {"default": self.dev_shell.to_dict()}
        if self.formatter is not None:
            payload["formatter"] = self.formatter.to_dict()
        if self.formatter_error is not None:
            payload["formatterError"] = self.formatter_error.to_dict()
        return payload


class Matrix(Mapping[PlatformId, PlatformOutputs]):
    """Read-only platform -> outputs mapping keyed by exactly the supported platforms."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[PlatformId, PlatformOutputs]) -> None:
        ensure_platform_set(tuple(entries))
        ordered = {platform: entries[platform] for platform in SUPPORTED_PLATFORMS}
        self._entries: Mapping[PlatformId, PlatformOutputs] = MappingProxyType(ordered)

    def __getitem__(self, platform: PlatformId) -> PlatformOutputs:
        return self._entries[platform]

    def __iter__(self) -> Iterator[PlatformId]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Matrix({dict(self._entries)!r})"

    @property
    def ok(self) -> bool:
        return all(entry.ok for entry in self._entries.values())

    @property
    def failures(self) -> dict[PlatformId, PlanError]:
        return {
            platform: entry.error
            for platform, entry in self._entries.items()
            if entry.error is not None
        }

    @property
    def formatter_failures(self) -> dict[PlatformId, PlanError]:
        return {
            platform: entry.formatter_error
            for platform, entry in self._entries.items()
            if entry.formatter_error is not None
        }

    @property
    def packages(self) -> dict[PlatformId, dict[str, BuildPlan]]:
        return {
            platform: {"default": entry.package}
            for platform, entry in self._entries.items()
            if entry.package is not None
        }

    @property
    def dev_shells(self) -> dict[PlatformId, dict[str, DevShell]]:
        return {
            platform: {"default": entry.dev_shell}
            for platform, entry in self._entries.items()
            if entry.dev_shell is not None
        }

    @property
    def formatters(self) -> dict[PlatformId, Artifact]:
        return {
            platform: entry.formatter
            for platform, entry in self._entries.items()
            if entry.formatter is not None
        }

    def to_dict(self) -> dict[str, Any]:
        return {platform: entry.to_dict() for platform, entry in self._entries.items()}

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        encoded = cbor2.dumps(self.to_dict(), canonical=True)
        if path is not None:
            Path(path).write_bytes(encoded)
        return encoded


@dataclass(slots=True)
class MatrixEvaluator:
    """Project one package description onto every supported platform.

    Platforms are evaluated independently. In the default isolated mode a
    failure is recorded on the failing platform's entry and the others are
    still produced; with ``policy.fail_fast`` the first failing platform in
    enumeration order raises instead.
    """

    metadata: PackageMetadata
    source: SourceTree
    builder: BuildPlanBuilder = field(default_factory=BuildPlanBuilder)
    policy: EvaluationPolicy = field(default_factory=EvaluationPolicy)
    logger: StructuredLogger | None = None

    @property
    def runtime(self) -> RuntimeDependencySet:
        return self.builder.runtime

    def evaluate(
        self,
        platforms: tuple[PlatformId, ...] = SUPPORTED_PLATFORMS,
        *,
        collection_for: CollectionSupplier,
    ) -> Matrix:
        ensure_platform_set(platforms)
        ensure_valid_policy(self.policy)

        outputs: dict[PlatformId, PlatformOutputs] = {}
        if self.policy.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.policy.max_workers) as pool:
                futures = {
                    platform: pool.submit(self._evaluate_isolated, platform, collection_for)
                    for platform in platforms
                }
                outputs = {platform: future.result() for platform, future in futures.items()}
        else:
            for platform in platforms:
                outputs[platform] = self._evaluate_isolated(platform, collection_for)
                if self.policy.fail_fast and not outputs[platform].ok:
                    break

        if self.policy.fail_fast:
            for platform in SUPPORTED_PLATFORMS:
                entry = outputs.get(platform)
                if entry is not None and entry.first_error is not None:
                    raise entry.first_error
        return Matrix(outputs)

    def evaluate_platform(
        self,
        platform: PlatformId,
        collection: PlatformPackageCollection,
    ) -> PlatformOutputs:
        """Evaluate a single platform.

        Plan and dev shell errors propagate to the caller. A missing formatter
        only affects the formatter output and is recorded on the result.
        """
        ensure_supported(platform)
        if collection.platform != platform:
            raise ValidationError(
                "Package collection belongs to a different platform.",
                context={"platform": platform, "collection_platform": collection.platform},
            )
        plan = self.builder.build(self.metadata, self.source, collection)
        dev_shell = DevShell(
            platform=platform,
            packages=self.runtime.resolve_artifacts(collection),
        )
        formatter: Artifact | None = None
        formatter_error: PlanError | None = None
        try:
            formatter = require(collection, self.policy.formatter, component="formatter")
        except UnresolvedDependencyError as exc:
            formatter_error = exc.with_context(platform=platform)
            self._log(platform, f"formatter unavailable: {exc.message}", level="error")
        return PlatformOutputs(
            platform=platform,
            package=plan,
            dev_shell=dev_shell,
            formatter=formatter,
            formatter_error=formatter_error,
        )

    def _evaluate_isolated(
        self,
        platform: PlatformId,
        collection_for: CollectionSupplier,
    ) -> PlatformOutputs:
        try:
            outputs = self.evaluate_platform(platform, collection_for(platform))
        except PlanError as exc:
            exc.with_context(platform=platform)
            self._log(platform, f"evaluation failed: {exc.message}", level="error")
            return PlatformOutputs(platform=platform, error=exc)
        self._log(platform, "evaluated")
        return outputs

    def _log(self, platform: PlatformId, message: str, *, level: str = "info") -> None:
        logger = self.logger if self.logger is not None else self.builder.logger
        logger.log(
            operation="evaluate",
            platform=platform,
            component="matrix",
            message=message,
            level=level,
        )

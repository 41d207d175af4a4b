"""Per-platform build plan construction.

``BuildPlanBuilder.build`` is a pure function of the package metadata, the
selected source tree and one platform's package collection. It resolves the
build-time tools, the platform-conditional link inputs and the run-time
executables, then lays out the post-install steps in a fixed order:

1. wrap the executable so its ``PATH`` is prefixed with the run-time tools,
2. install the man page,
3. install bash, fish and zsh completions.

Nothing is written to disk here; the build executor consumes the plan.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Protocol, runtime_checkable

import cbor2

from pkgplan.collection import PlatformPackageCollection, require
from pkgplan.errors import MissingArtifactError, PlanError, ValidationError
from pkgplan.lockfile import DEFAULT_LOCK_FILE, LockFileRef, locate_lock_file
from pkgplan.models import (
    Artifact,
    InstallManPage,
    InstallShellCompletions,
    PackageMetadata,
    PlatformId,
    PostInstallStep,
    WrapProgram,
)
from pkgplan.observability import StructuredLogger
from pkgplan.platforms import LINKAGE_RULES, LinkageRule, extra_link_requirements
from pkgplan.runtime import RuntimeDependencySet
from pkgplan.source import SourceTree

# The package's test suite needs network access, which the build sandbox
# does not provide.
CHECK_PHASE_ENABLED = False

ARTIFACTS_ENV_VAR = "GEN_ARTIFACTS"


@dataclass(frozen=True, slots=True)
class PlanConfig:
    executable: str = "bin/nurl"
    completion_installer: str = "installShellFiles"
    wrapper_generator: str = "makeBinaryWrapper"
    toolchain_adapter: str = "rustPlatform"
    artifact_dir: str = "artifacts"
    man_page: str = "nurl.1"
    bash_completion: str = "nurl.bash"
    fish_completion: str = "nurl.fish"
    zsh_completion: str = "_nurl"
    lock_file: str = DEFAULT_LOCK_FILE
    allow_builtin_fetch_git: bool = True
    linkage_rules: tuple[LinkageRule, ...] = LINKAGE_RULES

    @classmethod
    def for_package(cls, name: str, **overrides: Any) -> PlanConfig:
        """Conventional layout for a program called *name*."""
        if not name:
            raise ValidationError("PlanConfig.for_package() requires a package name.")
        values: dict[str, Any] = {
            "executable": f"bin/{name}",
            "man_page": f"{name}.1",
            "bash_completion": f"{name}.bash",
            "fish_completion": f"{name}.fish",
            "zsh_completion": f"_{name}",
        }
        values.update(overrides)
        return cls(**values)

    @property
    def native_tools(self) -> tuple[str, str, str]:
        return (self.completion_installer, self.wrapper_generator, self.toolchain_adapter)

    def artifact_path(self, filename: str) -> str:
        return f"{self.artifact_dir}/{filename}"

    @property
    def expected_artifacts(self) -> tuple[str, ...]:
        return tuple(
            self.artifact_path(filename)
            for filename in (
                self.man_page,
                self.bash_completion,
                self.fish_completion,
                self.zsh_completion,
            )
        )


@dataclass(frozen=True, slots=True)
class ArtifactIndex:
    """Generated artifacts the prerequisite generation step is known to produce."""

    paths: frozenset[str] = frozenset()

    def contains(self, path: str) -> bool:
        return path in self.paths

    @classmethod
    def declared(cls, paths: Iterable[str]) -> ArtifactIndex:
        return cls(paths=frozenset(paths))

    @classmethod
    def for_config(cls, config: PlanConfig) -> ArtifactIndex:
        return cls.declared(config.expected_artifacts)

    @classmethod
    def from_directory(cls, root: str | Path, artifact_dir: str) -> ArtifactIndex:
        """Index files already generated under ``root/artifact_dir``."""
        base = Path(root) / artifact_dir
        if not base.is_dir():
            return cls()
        return cls.declared(
            f"{artifact_dir}/{path.relative_to(base).as_posix()}"
            for path in sorted(base.rglob("*"))
            if path.is_file()
        )


@dataclass(frozen=True, slots=True)
class BuildPlan:
    platform: PlatformId
    pname: str
    version: str
    source: SourceTree
    lock_file: LockFileRef
    builder: Artifact
    native_build_inputs: tuple[Artifact, ...]
    build_inputs: tuple[Artifact, ...]
    runtime_inputs: tuple[Artifact, ...]
    env: Mapping[str, str] = field(hash=False)
    post_install: tuple[PostInstallStep, ...]
    do_check: bool
    metadata: PackageMetadata

    def __post_init__(self) -> None:
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))

    @property
    def wrapper(self) -> WrapProgram:
        for step in self.post_install:
            if isinstance(step, WrapProgram):
                return step
        raise ValidationError("Build plan has no wrap step.", context={"platform": self.platform})

    def render_post_install(self) -> str:
        return "\n".join(step.render() for step in self.post_install) + "\n"

    def to_dict(self) -> dict[str, Any]:
        return {
            "platform": self.platform,
            "pname": self.pname,
            "version": self.version,
            "source": self.source.to_dict(),
            "lock_file": self.lock_file.to_dict(),
            "builder": self.builder.to_dict(),
            "native_build_inputs": [item.to_dict() for item in self.native_build_inputs],
            "build_inputs": [item.to_dict() for item in self.build_inputs],
            "runtime_inputs": [item.to_dict() for item in self.runtime_inputs],
            "env": dict(sorted(self.env.items())),
            "post_install": [step.to_dict() for step in self.post_install],
            "do_check": self.do_check,
            "meta": self.metadata.to_dict(),
        }

    def to_json(self, path: str | Path | None = None) -> str:
        encoded = json.dumps(self.to_dict(), indent=2, sort_keys=True) + "\n"
        if path is not None:
            Path(path).write_text(encoded, encoding="utf-8")
        return encoded

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        encoded = cbor2.dumps(self.to_dict(), canonical=True)
        if path is not None:
            Path(path).write_bytes(encoded)
        return encoded

    def digest(self) -> str:
        """Identity of the plan over its inputs and the selected file contents."""
        payload = self.to_dict()
        payload["source_digest"] = self.source.digest()
        canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@runtime_checkable
class BuildExecutor(Protocol):
    """Realizes a plan into an installed artifact. Lives outside this package."""

    def realize(self, plan: BuildPlan) -> Artifact:
        """Build *plan* and return the resulting store artifact."""


@dataclass(slots=True)
class BuildPlanBuilder:
    config: PlanConfig = field(default_factory=PlanConfig)
    runtime: RuntimeDependencySet = field(default_factory=RuntimeDependencySet)
    artifacts: ArtifactIndex | None = None
    logger: StructuredLogger = field(default_factory=StructuredLogger)

    def build(
        self,
        metadata: PackageMetadata,
        source: SourceTree,
        collection: PlatformPackageCollection,
    ) -> BuildPlan:
        platform = collection.platform
        try:
            native = tuple(
                require(collection, name, component="native") for name in self.config.native_tools
            )
            build_inputs = tuple(
                require(collection, name, component="linkage")
                for name in extra_link_requirements(platform, self.config.linkage_rules)
            )
            runtime_inputs = self.runtime.resolve_artifacts(collection)
            post_install = self._post_install(runtime_inputs)
            self._ensure_artifacts(post_install)
            lock_file = locate_lock_file(
                source,
                self.config.lock_file,
                allow_builtin_fetch_git=self.config.allow_builtin_fetch_git,
            )
        except PlanError as exc:
            exc.with_context(platform=platform, package=metadata.name)
            self.logger.log(
                operation="build_plan",
                platform=platform,
                component="plan",
                message=exc.message,
                level="error",
                extra={"code": exc.code},
            )
            raise

        plan = BuildPlan(
            platform=platform,
            pname=metadata.name,
            version=metadata.version,
            source=source,
            lock_file=lock_file,
            builder=native[2],
            native_build_inputs=native,
            build_inputs=build_inputs,
            runtime_inputs=runtime_inputs,
            env={ARTIFACTS_ENV_VAR: self.config.artifact_dir},
            post_install=post_install,
            do_check=CHECK_PHASE_ENABLED,
            metadata=metadata,
        )
        self.logger.log(
            operation="build_plan",
            platform=platform,
            component="plan",
            message=f"planned {plan.pname} {plan.version}",
            extra={"build_inputs": [item.name for item in build_inputs]},
        )
        return plan

    def _post_install(self, runtime_inputs: tuple[Artifact, ...]) -> tuple[PostInstallStep, ...]:
        config = self.config
        return (
            WrapProgram(
                executable=config.executable,
                prefix=tuple(artifact.bin_dir for artifact in runtime_inputs),
            ),
            InstallManPage(path=config.artifact_path(config.man_page)),
            InstallShellCompletions(
                bash=config.artifact_path(config.bash_completion),
                fish=config.artifact_path(config.fish_completion),
                zsh=config.artifact_path(config.zsh_completion),
            ),
        )

    def _ensure_artifacts(self, post_install: tuple[PostInstallStep, ...]) -> None:
        index = self.artifacts
        if index is None:
            index = ArtifactIndex.for_config(self.config)
        for step in post_install:
            if isinstance(step, WrapProgram):
                continue
            for path in step.artifacts:
                if not index.contains(path):
                    raise MissingArtifactError(
                        f"Generated artifact `{path}` is missing.",
                        hint=(
                            f"Run the generation step with {ARTIFACTS_ENV_VAR}="
                            f"{self.config.artifact_dir} before planning."
                        ),
                        context={"artifact": path, "step": step.kind},
                    )


__all__ = [
    "ARTIFACTS_ENV_VAR",
    "ArtifactIndex",
    "BuildExecutor",
    "BuildPlan",
    "BuildPlanBuilder",
    "CHECK_PHASE_ENABLED",
    "PlanConfig",
]

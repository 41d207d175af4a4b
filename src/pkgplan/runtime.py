"""Run-time executable dependencies of the built program."""

from __future__ import annotations

from dataclasses import dataclass

from pkgplan.collection import PlatformPackageCollection, require
from pkgplan.errors import ValidationError
from pkgplan.models import Artifact, ExecutablePath

DEFAULT_RUNTIME_DEPENDENCIES: tuple[str, ...] = (
    "gitMinimal",
    "mercurial",
    "nixVersions.unstable",
)


@dataclass(frozen=True, slots=True)
class RuntimeDependencySet:
    """Ordered, platform-independent list of executables the program invokes.

    Order matters: it becomes the lookup-path order of the wrapped program,
    so earlier entries shadow later ones when executable names collide.
    """

    names: tuple[str, ...] = DEFAULT_RUNTIME_DEPENDENCIES

    def __post_init__(self) -> None:
        if not self.names:
            raise ValidationError("RuntimeDependencySet requires at least one dependency.")
        seen: set[str] = set()
        for name in self.names:
            if not name:
                raise ValidationError("Runtime dependency names must be non-empty.")
            if name in seen:
                raise ValidationError(
                    "Runtime dependency declared twice.",
                    context={"dependency": name},
                )
            seen.add(name)

    def resolve_artifacts(self, collection: PlatformPackageCollection) -> tuple[Artifact, ...]:
        return tuple(require(collection, name, component="runtime") for name in self.names)

    def resolve(self, collection: PlatformPackageCollection) -> tuple[ExecutablePath, ...]:
        return tuple(artifact.bin_dir for artifact in self.resolve_artifacts(collection))

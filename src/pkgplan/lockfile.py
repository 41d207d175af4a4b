"""Lock file references.

The lock file pins exact dependency versions and integrity hashes. Verifying
it is the build executor's job; here it is only located inside the selected
source and passed along by reference.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pkgplan.errors import LockfileError
from pkgplan.source import SourceTree

DEFAULT_LOCK_FILE = "Cargo.lock"


@dataclass(frozen=True, slots=True)
class LockFileRef:
    relative_path: str
    root: Path
    allow_builtin_fetch_git: bool = True

    @property
    def path(self) -> Path:
        return self.root / self.relative_path

    def to_dict(self) -> dict[str, object]:
        return {
            "path": self.relative_path,
            "allow_builtin_fetch_git": self.allow_builtin_fetch_git,
        }


def locate_lock_file(
    source: SourceTree,
    name: str = DEFAULT_LOCK_FILE,
    *,
    allow_builtin_fetch_git: bool = True,
) -> LockFileRef:
    if not source.contains(name):
        raise LockfileError(
            "Lock file is not part of the selected source tree.",
            hint="Commit the lock file and make sure an inclusion pattern selects it.",
            context={"operation": "locate_lock_file", "lock_file": name, "root": str(source.root)},
        )
    return LockFileRef(
        relative_path=name,
        root=source.root,
        allow_builtin_fetch_git=allow_builtin_fetch_git,
    )


__all__ = ["DEFAULT_LOCK_FILE", "LockFileRef", "locate_lock_file"]

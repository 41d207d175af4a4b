"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from pkgplan.collection import StaticPackageStore
from pkgplan.models import PackageMetadata
from pkgplan.observability import StructuredLogger
from pkgplan.project import DEFAULT_SOURCE_PATTERNS, Project
from pkgplan.source import SourceTree, select_source

CARGO_TOML = """\
[package]
name = "nurl"
version = "0.3.13"
description = "Generate Nix fetcher calls from repository URLs"
license = "MPL-2.0"

[package.metadata.pkgplan]
maintainers = ["figsoda"]
"""


def write_package(root: Path) -> Path:
    files = {
        "Cargo.toml": CARGO_TOML,
        "Cargo.lock": "# pinned\nversion = 3\n",
        "build.rs": "fn main() {}\n",
        "src/main.rs": "fn main() {}\n",
        "src/fetcher/mod.rs": "pub mod github;\n",
        "src/fetcher/github.rs": "\n",
        "tests/cli.rs": "#[test]\nfn smoke() {}\n",
        "README.md": "# nurl\n",
        "flake.nix": "{ }\n",
        ".github/workflows/ci.yml": "on: push\n",
    }
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def package_root(tmp_path: Path) -> Path:
    return write_package(tmp_path / "nurl")


@pytest.fixture
def metadata() -> PackageMetadata:
    return PackageMetadata(
        name="nurl",
        version="0.3.13",
        description="Generate Nix fetcher calls from repository URLs",
        license="MPL-2.0",
        maintainers=("figsoda",),
    )


@pytest.fixture
def source(package_root: Path) -> SourceTree:
    return select_source(package_root, DEFAULT_SOURCE_PATTERNS)


@pytest.fixture
def logger() -> StructuredLogger:
    return StructuredLogger()


@pytest.fixture
def project(package_root: Path, logger: StructuredLogger) -> Project:
    return Project.load(package_root, logger=logger)


@pytest.fixture
def store(project: Project) -> StaticPackageStore:
    return project.synthetic_store()


@pytest.fixture
def checkout_factory(tmp_path: Path):
    """Write a fresh copy of the sample package under ``tmp_path/<name>``."""

    def factory(name: str) -> Path:
        return write_package(tmp_path / name)

    return factory

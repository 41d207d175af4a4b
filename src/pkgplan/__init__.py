"""Public package entrypoint for the build plan evaluator."""

from .collection import PlatformPackageCollection, StaticPackageCollection, StaticPackageStore
from .errors import (
    EmptySelectionError,
    InvalidPatternError,
    LockfileError,
    ManifestError,
    MissingArtifactError,
    PlanError,
    UnresolvedDependencyError,
    ValidationError,
)
from .manifest import load_manifest
from .matrix import Matrix, MatrixEvaluator, PlatformOutputs
from .models import Artifact, DevShell, PackageMetadata, PlatformId
from .overlay import OverlayPublisher, apply_overlay
from .plan import ArtifactIndex, BuildExecutor, BuildPlan, BuildPlanBuilder, PlanConfig
from .platforms import SUPPORTED_PLATFORMS, PlatformMatrix
from .policy import EvaluationPolicy
from .project import Project
from .runtime import RuntimeDependencySet
from .source import SourceTree, select_source

__all__ = [
    "Artifact",
    "ArtifactIndex",
    "BuildExecutor",
    "BuildPlan",
    "BuildPlanBuilder",
    "DevShell",
    "EmptySelectionError",
    "EvaluationPolicy",
    "InvalidPatternError",
    "LockfileError",
    "ManifestError",
    "Matrix",
    "MatrixEvaluator",
    "MissingArtifactError",
    "OverlayPublisher",
    "PackageMetadata",
    "PlanConfig",
    "PlanError",
    "PlatformId",
    "PlatformMatrix",
    "PlatformOutputs",
    "PlatformPackageCollection",
    "Project",
    "RuntimeDependencySet",
    "SUPPORTED_PLATFORMS",
    "SourceTree",
    "StaticPackageCollection",
    "StaticPackageStore",
    "UnresolvedDependencyError",
    "ValidationError",
    "apply_overlay",
    "load_manifest",
    "select_source",
]

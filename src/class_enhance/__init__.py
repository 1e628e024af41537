"""Offline class-file enhancement orchestration."""

from class_enhance.classpath import ClasspathContext, assemble_classpath
from class_enhance.driver import TransformDriver, TransformResult
from class_enhance.errors import ConfigurationError, EngineError, EnhanceError, EnhancementFailedError
from class_enhance.orchestrator import EnhanceOrchestrator, EnhanceRunResult, RunConfig, ensure_passed, run_enhancement
from class_enhance.packages import PackageFilter, PackagePattern
from class_enhance.summary import RunSummary, SummarySnapshot
from class_enhance.walker import EnhanceCandidate, enumerate_candidates

__all__ = [
    "ClasspathContext",
    "ConfigurationError",
    "EngineError",
    "EnhanceCandidate",
    "EnhanceError",
    "EnhanceOrchestrator",
    "EnhanceRunResult",
    "EnhancementFailedError",
    "PackageFilter",
    "PackagePattern",
    "RunConfig",
    "RunSummary",
    "SummarySnapshot",
    "TransformDriver",
    "TransformResult",
    "assemble_classpath",
    "ensure_passed",
    "enumerate_candidates",
    "run_enhancement",
]

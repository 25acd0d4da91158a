"""
Pipeline Module - Analysis orchestration.
=========================================

- orchestrator: CourseAnalyzer running search → extract → summarize → rate
- progress: Progress events and reporting
- factory: Building an analyzer from settings
"""

from cora_analyzer.pipeline.factory import build_analyzer, build_store, should_use_stubs
from cora_analyzer.pipeline.orchestrator import CourseAnalyzer
from cora_analyzer.pipeline.progress import ProgressReporter

__all__ = [
    "CourseAnalyzer",
    "ProgressReporter",
    "build_analyzer",
    "build_store",
    "should_use_stubs",
]

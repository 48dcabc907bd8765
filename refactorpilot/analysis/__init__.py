"""Incremental, observable per-file analysis."""

from .cache import AnalysisCache
from .progress import AnalysisProgress, AnalysisRun, FileResult, ProgressInfo
from .python_ast import PythonAstAnalyzer

__all__ = [
    'AnalysisCache',
    'AnalysisProgress',
    'AnalysisRun',
    'FileResult',
    'ProgressInfo',
    'PythonAstAnalyzer',
]

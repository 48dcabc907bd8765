"""Duplicate and near-duplicate code detection."""

from .detector import (
    DuplicationDetector,
    DuplicationReport,
    DuplicateBlock,
    BlockLocation,
    SimilarPair,
    FilePair,
    FileStats,
    DuplicationSummary,
)

__all__ = [
    'DuplicationDetector',
    'DuplicationReport',
    'DuplicateBlock',
    'BlockLocation',
    'SimilarPair',
    'FilePair',
    'FileStats',
    'DuplicationSummary',
]

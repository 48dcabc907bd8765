"""Prioritized refactor backlog stored as a Markdown document."""

from .format import (
    Backlog,
    format_candidate,
    get_tier,
    parse_backlog,
    parse_candidate_line,
    render_backlog,
)
from .tracker import CandidatesTracker

__all__ = [
    'Backlog',
    'CandidatesTracker',
    'format_candidate',
    'get_tier',
    'parse_backlog',
    'parse_candidate_line',
    'render_backlog',
]

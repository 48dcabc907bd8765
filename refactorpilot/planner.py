"""Turns scored opportunities into executable refactorings."""

from pathlib import PurePosixPath
from typing import Optional

from .models import ExtractRefactoring, OpportunityType, Refactoring, ScoredOpportunity


class RefactoringPlanner:
    """Uses the refactoring a detector attached to the opportunity, if any.

    Duplication findings without one become an extraction of the first copy
    into a sibling ``<stem>_shared`` module; the test gate decides whether it
    stays. Other findings without a concrete operation stay in the backlog
    for a human and are not executed.
    """

    def plan(self, scored: ScoredOpportunity) -> Optional[Refactoring]:
        opportunity = scored.opportunity
        refactoring = opportunity.refactoring
        if refactoring is None and opportunity.type is OpportunityType.DUPLICATION:
            refactoring = self.plan_extract(opportunity.metrics)
        if refactoring is None:
            return None
        refactoring.origin = scored
        return refactoring

    @staticmethod
    def plan_extract(metrics) -> Optional[ExtractRefactoring]:
        """Extraction of the first duplicate location, or None without locations."""
        locations = metrics.get("locations") or []
        if not locations:
            return None

        first = locations[0]
        source = PurePosixPath(first["path"])
        return ExtractRefactoring(
            source=str(source),
            name=f"shared_block_{first['start_line']}",
            start_line=first["start_line"],
            end_line=first["end_line"],
            new_file=str(source.with_name(f"{source.stem}_shared{source.suffix}")),
        )

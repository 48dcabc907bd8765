"""Default impact scorer. Callers may inject any object with ``score(opportunity)``."""

from typing import Any, Dict, Protocol

from .models import Opportunity, OpportunityType


class Scorer(Protocol):
    def score(self, opportunity: Opportunity) -> Dict[str, Any]:
        ...


class ImpactScorer:
    """Heuristic scorer: severity of the finding minus a small effort penalty."""

    BASE_SEVERITY = {
        OpportunityType.COMPLEXITY: 55,
        OpportunityType.LENGTH: 45,
        OpportunityType.DUPLICATION: 60,
        OpportunityType.SEMANTIC: 65,
    }

    def score(self, opportunity: Opportunity) -> Dict[str, Any]:
        metrics = opportunity.metrics or {}
        severity = self.BASE_SEVERITY.get(opportunity.type, 40)

        if opportunity.type is OpportunityType.COMPLEXITY:
            severity += min(40, (metrics.get("complexity", 10) - 10) * 3)
        elif opportunity.type is OpportunityType.LENGTH:
            severity += min(40, (metrics.get("lines", 50) - 50) // 5)
        elif opportunity.type is OpportunityType.DUPLICATION:
            copies = max(1, metrics.get("occurrences", 2) - 1)
            severity += min(35, metrics.get("line_count", 5) * copies)

        effort = min(30, metrics.get("lines", metrics.get("line_count", 0)) // 10)
        risk = 20 if opportunity.type is OpportunityType.SEMANTIC else 10
        total = max(0, min(100, severity - effort // 3))

        return {
            "total": total,
            "severity": min(100, severity),
            "effort": effort,
            "risk": risk,
        }

"""
Refactor command.
Collects files, finds and scores opportunities, records them in the backlog,
and applies the eligible ones through the executor.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from .analysis import AnalysisCache, AnalysisProgress, ProgressInfo, PythonAstAnalyzer
from .backlog import CandidatesTracker
from .constants import AUTO_APPLY_THRESHOLD, COMPLEXITY_THRESHOLD, LENGTH_THRESHOLD
from .duplication import DuplicationDetector
from .exceptions import CheckpointError, RefactorPilotError
from .interaction import (
    SKIP_MODELS,
    AutoApproveDecider,
    Decider,
    Decision,
    ModelSelector,
    StaticModelSelector,
)
from .models import (
    FailedRefactoring,
    Opportunity,
    OpportunityType,
    Refactoring,
    ScoredOpportunity,
    SourceFile,
)
from .planner import RefactoringPlanner
from .reporting import RefactorReporter
from .scoring import ImpactScorer, Scorer
from .state import InMemoryStateRepository, StateRepository, UsageStats
from .utils import logger

MODES = ('interactive', 'auto', 'analyze-only')
SCOPES = ('changed', 'all', 'file', 'directory')


@dataclass
class CommandResult:
    """What one ``RefactorCommand.run`` produced."""
    analyzed: int = 0
    opportunities: List[Opportunity] = field(default_factory=list)
    scored: List[ScoredOpportunity] = field(default_factory=list)
    applied: List[Refactoring] = field(default_factory=list)
    skipped: List[ScoredOpportunity] = field(default_factory=list)
    failed: List[FailedRefactoring] = field(default_factory=list)
    # Changes that passed their own tests but were undone by a later failure
    reverted: List[Refactoring] = field(default_factory=list)
    rolled_back: bool = False
    cancelled: bool = False
    dry_run: bool = False
    report: Optional[str] = None
    error: Optional[str] = None


class RefactorCommand:
    """Runs the analyze -> score -> backlog -> execute -> report pipeline."""

    def __init__(
        self,
        ast_analyzer=None,
        semantic_analyzer=None,
        scorer: Optional[Scorer] = None,
        planner: Optional[RefactoringPlanner] = None,
        duplication_detector: Optional[DuplicationDetector] = None,
        executor=None,
        executor_factory: Optional[Callable[[], Any]] = None,
        reporter: Optional[RefactorReporter] = None,
        candidates_tracker: Optional[CandidatesTracker] = None,
        progress: Optional[AnalysisProgress] = None,
        decider: Optional[Decider] = None,
        model_selector: Optional[ModelSelector] = None,
        state_repository: Optional[StateRepository] = None,
        get_changed_files: Optional[Callable[[], List[SourceFile]]] = None,
        get_all_files: Optional[Callable[[], List[SourceFile]]] = None,
        get_files_by_path: Optional[Callable[[str], List[SourceFile]]] = None,
        on_progress: Optional[Callable[[Dict[str, Any]], None]] = None,
        complexity_threshold: int = COMPLEXITY_THRESHOLD,
        length_threshold: int = LENGTH_THRESHOLD,
    ):
        """Wire the pipeline.

        ``semantic_analyzer`` is optional; without it no ``semantic``
        opportunities are produced. ``executor_factory`` builds the executor
        on first use so analyze-only runs never need a checkpoint backend.
        """
        self.ast_analyzer = ast_analyzer or PythonAstAnalyzer()
        self.semantic_analyzer = semantic_analyzer
        self.scorer = scorer or ImpactScorer()
        self.planner = planner or RefactoringPlanner()
        self.duplication_detector = duplication_detector or DuplicationDetector()
        self._executor = executor
        self._executor_factory = executor_factory
        self.reporter = reporter or RefactorReporter()
        self.candidates_tracker = candidates_tracker or CandidatesTracker()
        self.progress = progress or AnalysisProgress(AnalysisCache())
        self.decider = decider or AutoApproveDecider()
        self.model_selector = model_selector or StaticModelSelector()
        self.state_repository = state_repository or InMemoryStateRepository()
        self.get_changed_files = get_changed_files
        self.get_all_files = get_all_files
        self.get_files_by_path = get_files_by_path
        self.on_progress = on_progress or (lambda info: None)
        self.complexity_threshold = complexity_threshold
        self.length_threshold = length_threshold
        self.stats = UsageStats()

        self.progress.on('progress', self._forward_progress)

    @property
    def executor(self):
        if self._executor is None:
            if self._executor_factory is None:
                raise RefactorPilotError("No executor configured")
            self._executor = self._executor_factory()
        return self._executor

    def run(
        self,
        mode: str = 'interactive',
        scope: str = 'changed',
        target: Optional[str] = None,
        format: str = 'markdown',
        use_multi_model: bool = True,
        dry_run: bool = False,
    ) -> CommandResult:
        """Run the whole pipeline once.

        Args:
            mode: 'interactive', 'auto' or 'analyze-only'
            scope: 'changed', 'all', 'file' or 'directory'
            target: Path for the 'file' and 'directory' scopes
            format: Report format passed to the reporter
            use_multi_model: Ask the model selector before semantic analysis
            dry_run: Report what would be applied without touching files

        Returns:
            CommandResult; unexpected errors are reported in ``error``.
            A failed rollback is re-raised.
        """
        if mode not in MODES:
            raise ValueError(f"Unknown mode: {mode}")

        result = CommandResult(dry_run=dry_run)
        self.stats = self.state_repository.load()
        self.stats.runs += 1

        try:
            files = self.get_files_to_analyze(scope, target)
            result.analyzed = len(files)

            if not files:
                logger.info("No files to analyze")
                result.report = self.reporter.generate([], format)
                return result

            models = self.model_selector.select_models() if use_multi_model else [SKIP_MODELS]

            self._emit('analyzing', len(files), 0)
            opportunities, cancelled = self.analyze_files(files, models)
            result.opportunities = opportunities
            result.scored = self.score_opportunities(opportunities)

            if cancelled:
                result.cancelled = True
                result.report = self.reporter.generate(result.scored, format)
                return result

            self.record_candidates(result.scored)

            if mode == 'analyze-only':
                result.report = self.reporter.generate(result.scored, format)
                return result

            self._execute(mode, result, dry_run)
            result.report = self.reporter.generate(result.applied, format)
            return result

        except CheckpointError:
            raise
        except (RefactorPilotError, OSError, ValueError) as e:
            logger.error(f"Refactor run failed: {e}")
            result.error = str(e)
            return result
        finally:
            self.state_repository.save(self.stats)

    def get_files_to_analyze(self, scope: str, target: Optional[str] = None) -> List[SourceFile]:
        """Resolve a scope to files through the injected file collaborators."""
        if scope == 'changed':
            return list(self.get_changed_files()) if self.get_changed_files else []
        if scope == 'all':
            return list(self.get_all_files()) if self.get_all_files else []
        if scope in ('file', 'directory'):
            if self.get_files_by_path and target:
                return list(self.get_files_by_path(target))
            return []
        raise ValueError(f"Unknown scope: {scope}")

    def analyze_files(self, files: List[SourceFile], models: List[str]) -> Tuple[List[Opportunity], bool]:
        """Per-file AST/semantic analysis, then one duplication pass.

        Returns:
            (opportunities, cancelled); a cancelled run skips duplication
        """
        semantic_enabled = (
            self.semantic_analyzer is not None
            and bool(models)
            and models[0] != SKIP_MODELS
        )

        def analyze_one(file: SourceFile) -> List[Dict[str, Any]]:
            found = self._ast_opportunities(file)
            if semantic_enabled:
                self.stats.semantic_calls += 1
                found.extend(self._semantic_opportunities(file, models))
            return [opportunity.to_dict() for opportunity in found]

        fingerprint = self.settings_fingerprint(models if semantic_enabled else [])
        run = self.progress.analyze(files, analyze_one, fingerprint)

        self.stats.files_analyzed += len(run.results)
        self.stats.cache_hits += run.cache_hits
        self.stats.analyzer_errors += len(run.errors)

        opportunities = [
            Opportunity.from_dict(data)
            for file_result in run.results
            for data in (file_result.result or [])
        ]

        if run.cancelled:
            return opportunities, True

        opportunities.extend(self._duplication_opportunities(files))
        self.stats.opportunities_found += len(opportunities)
        return opportunities, False

    def settings_fingerprint(self, models: List[str]) -> str:
        """Identify the settings that shape per-file results."""
        return (
            f"complexity={self.complexity_threshold};length={self.length_threshold};"
            f"models={','.join(models)}"
        )

    def _ast_opportunities(self, file: SourceFile) -> List[Opportunity]:
        found = []
        ast_result = self.ast_analyzer.analyze(file.content, file.path) or {}

        for fn in ast_result.get('functions') or []:
            name = fn.get('name')
            if fn.get('complexity', 0) > self.complexity_threshold:
                found.append(Opportunity(
                    type=OpportunityType.COMPLEXITY,
                    file=file.path,
                    line=fn.get('line', 1),
                    name=name,
                    description=f"High complexity ({fn['complexity']}) in {name}",
                    metrics=dict(fn),
                ))
            if fn.get('lines', 0) > self.length_threshold:
                found.append(Opportunity(
                    type=OpportunityType.LENGTH,
                    file=file.path,
                    line=fn.get('line', 1),
                    name=name,
                    description=f"Long function ({fn['lines']} lines) - {name}",
                    metrics=dict(fn),
                ))
        return found

    def _semantic_opportunities(self, file: SourceFile, models: List[str]) -> List[Opportunity]:
        semantic_result = self.semantic_analyzer.analyze(file.content, file.path, {"models": models}) or {}
        return [
            Opportunity(
                type=OpportunityType.SEMANTIC,
                file=file.path,
                line=issue.get('line', 1),
                description=issue.get('description', ''),
                suggestion=issue.get('suggestion'),
            )
            for issue in semantic_result.get('issues') or []
        ]

    def _duplication_opportunities(self, files: List[SourceFile]) -> List[Opportunity]:
        report = self.duplication_detector.detect(files)
        found = []
        for block in report.duplicates:
            first = block.locations[0]
            found.append(Opportunity(
                type=OpportunityType.DUPLICATION,
                file=first.path,
                line=first.start_line,
                description=f"Duplicate code ({block.line_count} lines) found in {' and '.join(block.files)}",
                metrics={
                    "line_count": block.line_count,
                    "occurrences": len(block.locations),
                    "end_line": first.end_line,
                    "locations": [
                        {"path": loc.path, "start_line": loc.start_line, "end_line": loc.end_line}
                        for loc in block.locations
                    ],
                },
            ))
        return found

    def score_opportunities(self, opportunities: List[Opportunity]) -> List[ScoredOpportunity]:
        """Score every opportunity and sort by total, highest first."""
        scored = [
            ScoredOpportunity(opportunity=opportunity, score=self.scorer.score(opportunity))
            for opportunity in opportunities
        ]
        scored.sort(key=lambda item: item.total, reverse=True)
        return scored

    def record_candidates(self, scored: List[ScoredOpportunity]):
        """Persist scored opportunities; the highest score wins for a shared key."""
        seen = set()
        candidates = []
        for item in scored:
            opportunity = item.opportunity
            key = f"{opportunity.file}:{opportunity.line}"
            if key in seen:
                continue
            seen.add(key)
            candidates.append({
                "file": opportunity.file,
                "start_line": opportunity.line or 1,
                "end_line": opportunity.metrics.get("end_line"),
                "description": opportunity.description,
                "impact": item.total,
            })

        if candidates:
            self.candidates_tracker.add(candidates)

    def _execute(self, mode: str, result: CommandResult, dry_run: bool):
        if mode == 'auto':
            eligible = [item for item in result.scored if item.total >= AUTO_APPLY_THRESHOLD]
            result.skipped.extend(item for item in result.scored if item.total < AUTO_APPLY_THRESHOLD)
        else:
            eligible = list(result.scored)

        refactorings = []
        for item in eligible:
            refactoring = self.planner.plan(item)
            if refactoring is None:
                result.skipped.append(item)
            else:
                refactorings.append(refactoring)

        if not refactorings:
            return

        if dry_run:
            if mode == 'interactive':
                confirmed = [r for r in refactorings if self.decider.decide(r) is Decision.APPLY]
                result.skipped.extend(r.origin for r in refactorings if r not in confirmed)
                refactorings = confirmed
            result.applied = refactorings
            return

        execution = self.executor.execute(refactorings, interactive=(mode == 'interactive'))
        result.skipped.extend(r.origin for r in execution.skipped if r.origin is not None)
        result.failed = list(execution.failed)
        result.rolled_back = execution.rolled_back

        if execution.rolled_back:
            self.stats.rollbacks += 1
            self.stats.refactorings_failed += len(execution.failed)
            result.reverted = list(execution.applied)
            return

        result.applied = list(execution.applied)
        self.stats.refactorings_applied += len(result.applied)
        for refactoring in result.applied:
            if refactoring.origin is not None:
                opportunity = refactoring.origin.opportunity
                self.candidates_tracker.mark_complete(opportunity.file, opportunity.line)

    def cancel(self):
        """Stop the analysis phase before the next file."""
        self.progress.cancel()

    def get_progress(self) -> ProgressInfo:
        return self.progress.get_progress()

    def _forward_progress(self, info: ProgressInfo):
        self._emit('analyzing', info.total, info.completed)

    def _emit(self, phase: str, total: int, completed: int):
        self.on_progress({"phase": phase, "total": total, "completed": completed})

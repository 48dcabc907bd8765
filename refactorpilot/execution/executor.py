"""
Transactional refactoring executor.
Applies a batch against a checkpoint, gates each change on the test suite,
and rolls the whole batch back on the first change that cannot be made green.
"""

import os
import re
import textwrap
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..exceptions import RefactoringApplyError
from ..interaction import AutoApproveDecider, Decider, Decision, describe_item
from ..models import (
    ExecutionResult,
    ExtractRefactoring,
    FailedRefactoring,
    GenericRefactoring,
    Refactoring,
    RefactoringType,
    RenameRefactoring,
    SplitRefactoring,
)
from ..utils import logger
from .checkpoint import CheckpointManager
from .testing import NoopAutofix, ShellTestRunner, TestOutcome
from .workspace import Workspace

_JS_SUFFIXES = {'.js', '.jsx', '.ts', '.tsx', '.mjs', '.cjs'}


@dataclass
class ChangeRecord:
    """One entry of the executor's change log."""
    refactoring: Refactoring
    status: str  # "applied", "skipped" or "failed"
    autofix_attempts: int = 0
    error: Optional[str] = None


class RefactorExecutor:
    """Applies refactorings one at a time behind a single batch checkpoint."""

    def __init__(
        self,
        checkpoint_manager: CheckpointManager,
        test_runner=None,
        workspace: Optional[Workspace] = None,
        decider: Optional[Decider] = None,
        autofix=None,
        max_autofix_attempts: int = 3,
        interactive: bool = False,
        test_command: str = "pytest -q",
    ):
        """Initialize the executor.

        Args:
            checkpoint_manager: Creates and restores batch checkpoints
            test_runner: Object with ``run() -> TestOutcome``; defaults to
                running ``test_command`` in the workspace root
            workspace: File access for the strategies
            decider: Confirmation strategy used when ``interactive`` is set
            autofix: Object with ``attempt(refactoring, outcome, attempt)``
                called before each test retry
            max_autofix_attempts: Retries after the first failing test run
            interactive: Ask the decider before each refactoring
        """
        self.checkpoint_manager = checkpoint_manager
        self.workspace = workspace or Workspace()
        self.test_runner = test_runner or ShellTestRunner(test_command, cwd=self.workspace.root)
        self.decider = decider or AutoApproveDecider()
        self.autofix = autofix or NoopAutofix()
        self.max_autofix_attempts = max_autofix_attempts
        self.interactive = interactive
        self._log: List[ChangeRecord] = []

        self._strategies: Dict[RefactoringType, Callable[[Any], None]] = {
            RefactoringType.EXTRACT: self._apply_extract,
            RefactoringType.RENAME: self._apply_rename,
            RefactoringType.SPLIT: self._apply_split,
            RefactoringType.GENERIC: self._apply_generic,
        }

    def execute(
        self,
        refactorings: Sequence[Refactoring],
        interactive: Optional[bool] = None,
    ) -> ExecutionResult:
        """Apply ``refactorings`` in order.

        A refactoring that fails to apply, whose tests still fail after the
        autofix retries, or whose decider, strategy, test run or autofix
        raises, rolls back every change made in this batch and stops; later
        refactorings are not attempted. An interrupt (``KeyboardInterrupt``
        and other non-``Exception`` errors) rolls back once files may have
        been touched and is then re-raised. Rollback errors propagate.
        ``interactive`` overrides the constructor setting.
        """
        ask = self.interactive if interactive is None else interactive
        self._log = []
        applied: List[Refactoring] = []
        skipped: List[Refactoring] = []
        failed: List[FailedRefactoring] = []
        rolled_back = False
        touched = False

        checkpoint = self.checkpoint_manager.create()

        for refactoring in refactorings:
            label = describe_item(refactoring)
            attempts = 0

            try:
                if ask and self.decider.decide(refactoring) is Decision.SKIP:
                    logger.info(f"Skipped: {label}")
                    skipped.append(refactoring)
                    self._log.append(ChangeRecord(refactoring, "skipped"))
                    continue

                touched = True
                self.apply(refactoring)
                outcome, attempts = self._run_test_gate(refactoring)
            except (RefactoringApplyError, OSError, ValueError) as e:
                error = f"Could not apply {label}: {e}"
            except Exception as e:
                error = f"{label} raised {type(e).__name__}: {e}"
            except BaseException:
                if touched:
                    logger.error(f"Interrupted during {label}, rolling back batch")
                    self.checkpoint_manager.rollback(checkpoint)
                raise
            else:
                if outcome.passed:
                    logger.info(f"Applied: {label}")
                    applied.append(refactoring)
                    self._log.append(ChangeRecord(refactoring, "applied", attempts))
                    continue
                error = f"Tests failed after {attempts} autofix attempt(s): {_tail(outcome.output)}"

            logger.error(f"Refactoring failed, rolling back batch: {error}")
            failed.append(FailedRefactoring(refactoring=refactoring, error=error))
            self._log.append(ChangeRecord(refactoring, "failed", attempts, error))
            self.checkpoint_manager.rollback(checkpoint)
            rolled_back = True
            break

        return ExecutionResult(
            applied=tuple(applied),
            skipped=tuple(skipped),
            failed=tuple(failed),
            rolled_back=rolled_back,
        )

    def get_log(self) -> List[ChangeRecord]:
        """Change log of the last batch, in execution order."""
        return list(self._log)

    def apply(self, refactoring: Refactoring):
        """Apply one refactoring to the working tree, without testing it."""
        strategy = self._strategies.get(refactoring.type)
        if strategy is None:
            raise RefactoringApplyError(f"Unsupported refactoring type: {refactoring.type}", refactoring)
        strategy(refactoring)

    def _run_test_gate(self, refactoring: Refactoring):
        outcome: TestOutcome = self.test_runner.run()
        attempts = 0
        while not outcome.passed and attempts < self.max_autofix_attempts:
            attempts += 1
            logger.warning(f"Tests failing, autofix attempt {attempts}/{self.max_autofix_attempts}")
            self.autofix.attempt(refactoring, outcome, attempts)
            outcome = self.test_runner.run()
        return outcome, attempts

    def _apply_extract(self, refactoring: ExtractRefactoring):
        content = self.workspace.read_text(refactoring.source)
        lines = content.splitlines(keepends=True)
        start, end = refactoring.start_line, refactoring.end_line
        if not 1 <= start <= end <= len(lines):
            raise RefactoringApplyError(
                f"Line range {start}-{end} is outside {refactoring.source} ({len(lines)} lines)",
                refactoring,
            )

        block = lines[start - 1:end]
        extracted = textwrap.dedent(''.join(block))
        if not extracted.endswith('\n'):
            extracted += '\n'

        if self.workspace.exists(refactoring.new_file):
            existing = self.workspace.read_text(refactoring.new_file).rstrip('\n')
            extracted = f"{existing}\n\n\n{extracted}" if existing else extracted
        self.workspace.write_text(refactoring.new_file, extracted)

        first = block[0]
        indent = first[:len(first) - len(first.lstrip(' \t'))]
        reference = f"{indent}{self._reference_line(refactoring)}\n"
        self.workspace.write_text(refactoring.source, ''.join(lines[:start - 1] + [reference] + lines[end:]))

    @staticmethod
    def _reference_line(refactoring: ExtractRefactoring) -> str:
        source = Path(refactoring.source)
        target = Path(refactoring.new_file)

        if source.suffix == '.py':
            module = '.'.join(target.with_suffix('').parts)
            return f"from {module} import {refactoring.name}"
        if source.suffix in _JS_SUFFIXES:
            relative = os.path.relpath(str(target.with_suffix('')), str(source.parent) or '.')
            if not relative.startswith('.'):
                relative = f"./{relative}"
            return f"const {{ {refactoring.name} }} = require('{relative}');"
        return f"# {refactoring.name} moved to {refactoring.new_file}"

    def _apply_rename(self, refactoring: RenameRefactoring):
        if not refactoring.old_name:
            raise RefactoringApplyError("Rename needs a non-empty old name", refactoring)

        pattern = re.compile(r'(?<!\w)' + re.escape(refactoring.old_name) + r'(?!\w)')
        for path in refactoring.files:
            content = self.workspace.read_text(path)
            updated = pattern.sub(lambda _match: refactoring.new_name, content)
            if updated != content:
                self.workspace.write_text(path, updated)

    def _apply_split(self, refactoring: SplitRefactoring):
        for target in refactoring.targets:
            self.workspace.write_text(target.file, target.content)

    def _apply_generic(self, refactoring: GenericRefactoring):
        for change in refactoring.changes:
            self.workspace.write_text(change.file, change.content)


def _tail(output: str, limit: int = 500) -> str:
    output = (output or "").strip()
    return output if len(output) <= limit else "..." + output[-limit:]

"""Test gate used after each applied refactoring."""

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..utils import logger, run_command


@dataclass
class TestOutcome:
    """Result of one test-suite run."""
    passed: bool
    output: str = ""

    __test__ = False  # not a pytest test class


class ShellTestRunner:
    """Runs the project's test command through the shell."""

    __test__ = False

    def __init__(
        self,
        command: str = "pytest -q",
        cwd: Optional[Union[str, Path]] = None,
        timeout: Optional[float] = None,
    ):
        self.command = command
        self.cwd = Path(cwd) if cwd else None
        self.timeout = timeout

    def run(self) -> TestOutcome:
        logger.debug(f"Running tests: {self.command}")
        try:
            result = run_command(
                self.command,
                cwd=self.cwd,
                check=False,
                timeout=self.timeout,
                shell=True,
            )
        except subprocess.TimeoutExpired:
            return TestOutcome(passed=False, output=f"Timed out after {self.timeout}s: {self.command}")
        except OSError as e:
            return TestOutcome(passed=False, output=f"Could not run '{self.command}': {e}")

        output = (result.stdout or "") + (result.stderr or "")
        return TestOutcome(passed=result.returncode == 0, output=output.strip())


class NoopAutofix:
    """Default autofix strategy: changes nothing, so the retry just re-checks."""

    def attempt(self, refactoring, outcome: TestOutcome, attempt: int) -> bool:
        return False

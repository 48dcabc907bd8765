"""
Utility functions for refactorpilot.
"""

import hashlib
import logging
import subprocess
from pathlib import Path
from typing import Dict, Any, Optional, Union, List

from rich.logging import RichHandler


# Configure logging with Rich handler
def setup_logger(name: str = "refactorpilot", level: str = "INFO") -> logging.Logger:
    """Set up a logger with Rich formatting."""
    logger = logging.getLogger(name)

    # Clear existing handlers
    logger.handlers = []

    handler = RichHandler(
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    return logger


# Global logger instance
logger = setup_logger()


def content_hash(content: str, algorithm: str = "md5") -> str:
    """Stable digest of a text blob (128-bit for the default md5)."""
    hash_func = getattr(hashlib, algorithm)()
    hash_func.update(content.encode("utf-8", errors="surrogatepass"))
    return hash_func.hexdigest()


def merge_dicts(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()

    for key, value in update.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value

    return result


def run_command(
    command: Union[str, List[str]],
    cwd: Optional[Path] = None,
    capture_output: bool = True,
    check: bool = True,
    timeout: Optional[float] = None,
    shell: bool = False,
) -> subprocess.CompletedProcess:
    """Run a shell command."""
    if isinstance(command, str) and not shell:
        command = command.split()

    try:
        return subprocess.run(
            command,
            cwd=cwd,
            capture_output=capture_output,
            text=True,
            check=check,
            timeout=timeout,
            shell=shell,
        )
    except subprocess.CalledProcessError as e:
        printable = command if isinstance(command, str) else ' '.join(command)
        logger.error(f"Command failed: {printable}")
        logger.error(f"Exit code: {e.returncode}")
        if e.stderr:
            logger.error(f"stderr: {e.stderr}")
        raise

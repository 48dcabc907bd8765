"""File access for refactoring strategies, rooted at the project directory."""

from pathlib import Path
from typing import Optional, Union

from ..utils import logger


class Workspace:
    """Reads and writes working-tree files relative to ``root``."""

    def __init__(self, root: Optional[Union[str, Path]] = None):
        self.root = Path(root) if root else Path.cwd()

    def resolve(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        return path if path.is_absolute() else self.root / path

    def exists(self, path: Union[str, Path]) -> bool:
        return self.resolve(path).exists()

    def read_text(self, path: Union[str, Path]) -> str:
        return self.resolve(path).read_text(encoding='utf-8')

    def write_text(self, path: Union[str, Path], content: str):
        target = self.resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding='utf-8')
        logger.debug(f"Wrote {target}")

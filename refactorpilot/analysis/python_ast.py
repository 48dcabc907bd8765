"""Python function metrics used to spot complex and oversized functions."""

import ast
from typing import Any, Dict, List


class FunctionMetricsVisitor(ast.NodeVisitor):
    """Collects name, line, cyclomatic complexity and length per function."""

    def __init__(self):
        self.functions: List[Dict[str, Any]] = []
        self._scope: List[str] = []

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        qualified = '.'.join(self._scope + [node.name])
        end_line = getattr(node, 'end_lineno', None) or node.lineno
        self.functions.append({
            "name": qualified,
            "line": node.lineno,
            "end_line": end_line,
            "complexity": self._calculate_complexity(node),
            "lines": end_line - node.lineno + 1,
        })

        self._scope.append(node.name)
        self.generic_visit(node)
        self._scope.pop()

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> None:
        self.visit_FunctionDef(node)

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        self._scope.append(node.name)
        self.generic_visit(node)
        self._scope.pop()

    @staticmethod
    def _calculate_complexity(node: ast.AST) -> int:
        """Cyclomatic complexity: 1 plus one per decision point."""
        complexity = 1

        for child in ast.walk(node):
            if isinstance(child, (ast.If, ast.IfExp, ast.While, ast.For, ast.AsyncFor)):
                complexity += 1
            elif isinstance(child, ast.BoolOp):
                # Each 'and' or 'or' adds a branch
                complexity += len(child.values) - 1
            elif isinstance(child, (ast.ExceptHandler, ast.Assert, ast.comprehension)):
                complexity += 1

        return complexity


class PythonAstAnalyzer:
    """Default AST collaborator for Python sources."""

    def analyze(self, content: str, path: str) -> Dict[str, Any]:
        """Return ``{"functions": [...]}``; non-Python files yield no functions.

        Raises:
            SyntaxError: If a ``.py`` file does not parse
        """
        if not path.endswith('.py'):
            return {"functions": []}

        tree = ast.parse(content, filename=path)
        visitor = FunctionMetricsVisitor()
        visitor.visit(tree)
        return {"functions": visitor.functions}

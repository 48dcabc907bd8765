"""Report generation for analysed and applied refactorings."""

import difflib
import json
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Template

from .models import FileChange, ScoredOpportunity


MARKDOWN_TEMPLATE = """# Refactoring Report

Generated: {{ generated_at }}

## Summary

- Total items: {{ summary.total }}
{% for kind, count in summary.by_type.items() %}- {{ kind }}: {{ count }}
{% endfor %}
## Changes
{% if not changes %}
_No changes._
{% endif %}{% for change in changes %}
### {{ loop.index }}. {{ change.description }}
{% if change.location %}
- Location: `{{ change.location }}`{% endif %}{% if change.impact is not none %}
- Impact: {{ change.impact }}{% endif %}
{% if change.diff %}
<details>
<summary>View Diff</summary>

```diff
{{ change.diff }}
```

</details>
{% endif %}{% endfor %}{% if diagram %}
## Structure

```mermaid
{{ diagram }}
```
{% endif %}"""


HTML_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Refactoring Report</title>
    <style>
        body { font-family: -apple-system, BlinkMacSystemFont, sans-serif; margin: 40px; }
        .change { border-left: 4px solid #3498db; padding: 8px 16px; margin: 12px 0; }
        .impact { color: #7f8c8d; }
        pre { background: #f6f8fa; padding: 12px; overflow-x: auto; }
    </style>
</head>
<body>
    <h1>Refactoring Report</h1>
    <p>Generated: {{ generated_at }}</p>
    <h2>Summary</h2>
    <ul>
        <li>Total items: {{ summary.total }}</li>
        {% for kind, count in summary.by_type.items() %}<li>{{ kind }}: {{ count }}</li>
        {% endfor %}
    </ul>
    <h2>Changes</h2>
    {% for change in changes %}
    <div class="change">
        <strong>{{ change.description }}</strong>
        {% if change.location %}<div>{{ change.location }}</div>{% endif %}
        {% if change.impact is not none %}<div class="impact">Impact: {{ change.impact }}</div>{% endif %}
        {% if change.diff %}<pre>{{ change.diff }}</pre>{% endif %}
    </div>
    {% else %}
    <p>No changes.</p>
    {% endfor %}
</body>
</html>
"""


class RefactorReporter:
    """Renders opportunities or applied refactorings as markdown, json or html."""

    FORMATS = ('markdown', 'json', 'html')

    def __init__(self):
        self.markdown_template = Template(MARKDOWN_TEMPLATE)
        self.html_template = Template(HTML_TEMPLATE, autoescape=True)

    def generate(self, items: List[Any], format: str = 'markdown') -> str:
        """Render ``items`` (``ScoredOpportunity``, refactorings or dicts)."""
        if format == 'markdown':
            return self.to_markdown(items)
        elif format == 'json':
            return self.to_json(items)
        elif format == 'html':
            return self.to_html(items)
        else:
            raise ValueError(f"Unsupported format: {format}")

    def to_markdown(self, items: List[Any]) -> str:
        changes = [self._to_change(item) for item in items]
        return self.markdown_template.render(
            generated_at=datetime.now().isoformat(timespec='seconds'),
            summary=self._summary(changes),
            changes=changes,
            diagram=self.generate_mermaid_diagram(changes),
        )

    def to_json(self, items: List[Any]) -> str:
        changes = [self._to_change(item) for item in items]
        return json.dumps({
            'generated_at': datetime.now().isoformat(),
            'summary': self._summary(changes),
            'changes': changes,
        }, indent=2, default=str)

    def to_html(self, items: List[Any]) -> str:
        changes = [self._to_change(item) for item in items]
        return self.html_template.render(
            generated_at=datetime.now().isoformat(timespec='seconds'),
            summary=self._summary(changes),
            changes=changes,
        )

    def describe_change(self, change: Dict[str, Any]) -> str:
        """Plain-English one-liner for a change."""
        kind = change.get('type')
        if kind == 'extract':
            lines = change.get('lines')
            suffix = f" ({lines} lines)" if lines else ""
            return f"Extracted {change.get('name')} from {change.get('source')}{suffix}"
        if kind == 'rename':
            count = change.get('files_affected', len(change.get('files') or []))
            return f"Renamed {change.get('old_name')} to {change.get('new_name')} in {count} file(s)"
        if kind == 'split':
            targets = change.get('targets') or []
            return f"Split {change.get('source')} into {len(targets)} files"
        if kind == 'generic':
            return change.get('description') or f"Updated {len(change.get('changes') or [])} file(s)"
        return change.get('description') or str(kind)

    @staticmethod
    def generate_diff(file: str, before: Optional[str] = None, after: Optional[str] = None) -> str:
        """Unified diff of one file; empty when there is nothing to compare."""
        if not before and not after:
            return ''
        diff = difflib.unified_diff(
            (before or '').splitlines(),
            (after or '').splitlines(),
            fromfile=f"a/{file}",
            tofile=f"b/{file}",
            lineterm='',
        )
        return '\n'.join(diff)

    @staticmethod
    def generate_mermaid_diagram(changes: List[Dict[str, Any]]) -> str:
        """``graph TD`` of extract/split relationships; empty if there are none."""
        edges = []
        for change in changes:
            if change.get('type') == 'extract':
                edges.append(f"    {_node(change.get('source'))} --> {_node(change.get('name'))}")
            elif change.get('type') == 'split':
                for target in change.get('targets') or []:
                    edges.append(f"    {_node(change.get('source'))} --> {_node(_target_name(target))}")

        if not edges:
            return ''
        return '\n'.join(['graph TD'] + edges)

    def _to_change(self, item: Any) -> Dict[str, Any]:
        if isinstance(item, dict):
            change = dict(item)
        elif isinstance(item, ScoredOpportunity):
            opp = item.opportunity
            change = {
                'type': opp.type.value,
                'file': opp.file,
                'line': opp.line,
                'description': opp.description,
                'impact': round(item.total),
            }
        else:
            change = _refactoring_to_dict(item)

        if 'location' not in change and change.get('file'):
            line = change.get('line')
            change['location'] = f"{change['file']}:{line}" if line else change['file']
        change.setdefault('impact', None)
        if change.get('before') is not None or change.get('after') is not None:
            change['diff'] = self.generate_diff(change.get('file', ''), change.get('before'), change.get('after'))
        change['description'] = self.describe_change(change)
        return change

    @staticmethod
    def _summary(changes: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            'total': len(changes),
            'by_type': dict(Counter(str(change.get('type')) for change in changes)),
        }


def _refactoring_to_dict(refactoring: Any) -> Dict[str, Any]:
    kind = refactoring.type.value
    change: Dict[str, Any] = {'type': kind}
    if kind == 'extract':
        change.update(
            name=refactoring.name,
            source=refactoring.source,
            file=refactoring.source,
            line=refactoring.start_line,
            lines=refactoring.end_line - refactoring.start_line + 1,
            new_file=refactoring.new_file,
        )
    elif kind == 'rename':
        change.update(old_name=refactoring.old_name, new_name=refactoring.new_name, files=list(refactoring.files))
    elif kind == 'split':
        change.update(source=refactoring.source, file=refactoring.source,
                      targets=[target.file for target in refactoring.targets])
    else:
        change.update(description=refactoring.description,
                      changes=[item.file for item in refactoring.changes])

    origin = getattr(refactoring, 'origin', None)
    if origin is not None:
        change['impact'] = round(origin.total)
    return change


def _target_name(target: Any) -> str:
    if isinstance(target, FileChange):
        return Path(target.file).stem
    if isinstance(target, dict):
        return str(target.get('name') or Path(str(target.get('file', ''))).stem)
    return Path(str(target)).stem


def _node(name: Any) -> str:
    return str(name).replace(' ', '_').replace('.', '_').replace('/', '_')

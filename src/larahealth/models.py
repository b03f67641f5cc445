# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Result types shared by every analyzer.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Issue               │ One concrete finding: what is wrong, where,    │
    │                     │ how bad, and how to fix it.                    │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ AnalysisResult      │ One analyzer's verdict (passed / failed /      │
    │                     │ warning / skipped / error) plus its issues.   │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ AnalyzerMetadata    │ The analyzer's name card: id, category,        │
    │                     │ default severity, docs link.                   │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ result_by_severity  │ Turns a list of issues into a verdict: any     │
    │                     │ critical/high issue fails, otherwise warns.    │
    └─────────────────────┴────────────────────────────────────────────────┘
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Status(str, Enum):
    """Verdict of a single analyzer run."""

    PASSED = 'passed'
    FAILED = 'failed'
    WARNING = 'warning'
    SKIPPED = 'skipped'
    ERROR = 'error'


class Severity(str, Enum):
    """How urgent an issue is."""

    CRITICAL = 'critical'
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'
    INFO = 'info'

    @property
    def level(self) -> int:
        """Numeric rank, higher is more severe."""
        return _SEVERITY_LEVELS[self]


_SEVERITY_LEVELS: dict[Severity, int] = {
    Severity.CRITICAL: 5,
    Severity.HIGH: 4,
    Severity.MEDIUM: 3,
    Severity.LOW: 2,
    Severity.INFO: 1,
}


class Category(str, Enum):
    """Analyzer grouping, matching the ``categories`` config table."""

    SECURITY = 'security'
    PERFORMANCE = 'performance'
    RELIABILITY = 'reliability'
    CODE_QUALITY = 'code_quality'
    BEST_PRACTICES = 'best_practices'

    @property
    def label(self) -> str:
        """Human-readable name."""
        return self.value.replace('_', ' ').title()


@dataclass(frozen=True)
class Location:
    """Where an issue was found.

    Attributes:
        file: Path relative to the project root when possible.
        line: 1-based line number, or ``None`` when unknown.
        column: 1-based column, or ``None``.
    """

    file: str
    line: int | None = None
    column: int | None = None

    def __str__(self) -> str:
        """Format as ``file:line`` when the line is known."""
        if self.line:
            return f'{self.file}:{self.line}'
        return self.file

    def to_dict(self) -> dict[str, Any]:  # noqa: ANN401 - JSON-shaped
        """Serialize for JSON reports."""
        return {'file': self.file, 'line': self.line, 'column': self.column}


@dataclass(frozen=True)
class Issue:
    """A single finding reported by an analyzer."""

    message: str
    location: Location | None
    severity: Severity
    recommendation: str
    code: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)  # noqa: ANN401 - free-form

    def to_dict(self) -> dict[str, Any]:  # noqa: ANN401 - JSON-shaped
        """Serialize for JSON reports."""
        return {
            'message': self.message,
            'location': self.location.to_dict() if self.location else None,
            'severity': self.severity.value,
            'recommendation': self.recommendation,
            'code': self.code,
            'metadata': self.metadata,
        }


@dataclass(frozen=True)
class AnalyzerMetadata:
    """Static description of an analyzer.

    Attributes:
        id: Stable kebab-case identifier (used in config and baselines).
        name: Display name.
        description: One-sentence summary of what is checked.
        category: The :class:`Category` the analyzer belongs to.
        severity: Default severity of the problems it finds.
        tags: Free-form search tags.
        docs_url: Link to further reading, if any.
        time_to_fix: Rough estimate in minutes.
    """

    id: str
    name: str
    description: str
    category: Category
    severity: Severity
    tags: tuple[str, ...] = ()
    docs_url: str | None = None
    time_to_fix: int | None = None

    def to_dict(self) -> dict[str, Any]:  # noqa: ANN401 - JSON-shaped
        """Serialize for JSON reports."""
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'category': self.category.value,
            'severity': self.severity.value,
            'tags': list(self.tags),
            'docs_url': self.docs_url,
            'time_to_fix': self.time_to_fix,
        }


@dataclass
class AnalysisResult:
    """Outcome of running one analyzer."""

    analyzer_id: str
    status: Status
    message: str
    issues: list[Issue] = field(default_factory=list)
    execution_time: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)  # noqa: ANN401 - free-form

    @classmethod
    def passed(cls, analyzer_id: str, message: str, **metadata: Any) -> AnalysisResult:  # noqa: ANN401
        """Build a passed result."""
        return cls(analyzer_id, Status.PASSED, message, metadata=dict(metadata))

    @classmethod
    def failed(
        cls,
        analyzer_id: str,
        message: str,
        issues: list[Issue] | None = None,
        **metadata: Any,  # noqa: ANN401
    ) -> AnalysisResult:
        """Build a failed result."""
        return cls(analyzer_id, Status.FAILED, message, list(issues or []), metadata=dict(metadata))

    @classmethod
    def warning(
        cls,
        analyzer_id: str,
        message: str,
        issues: list[Issue] | None = None,
        **metadata: Any,  # noqa: ANN401
    ) -> AnalysisResult:
        """Build a warning result."""
        return cls(analyzer_id, Status.WARNING, message, list(issues or []), metadata=dict(metadata))

    @classmethod
    def skipped(cls, analyzer_id: str, reason: str) -> AnalysisResult:
        """Build a skipped result."""
        return cls(analyzer_id, Status.SKIPPED, reason)

    @classmethod
    def error(cls, analyzer_id: str, message: str, **metadata: Any) -> AnalysisResult:  # noqa: ANN401
        """Build an error result (the analyzer itself could not run)."""
        return cls(analyzer_id, Status.ERROR, message, metadata=dict(metadata))

    def is_success(self) -> bool:
        """Return True for passed and skipped results."""
        return self.status in (Status.PASSED, Status.SKIPPED)

    def to_dict(self) -> dict[str, Any]:  # noqa: ANN401 - JSON-shaped
        """Serialize for JSON reports."""
        return {
            'analyzer_id': self.analyzer_id,
            'status': self.status.value,
            'message': self.message,
            'issues': [i.to_dict() for i in self.issues],
            'execution_time': self.execution_time,
            'metadata': self.metadata,
        }


def result_by_severity(analyzer_id: str, message: str, issues: list[Issue]) -> AnalysisResult:
    """Pick the verdict for ``issues`` from their highest severity.

    Any critical or high issue makes the result ``failed``; medium and
    below produce a ``warning``. An empty list is a pass.
    """
    if not issues:
        return AnalysisResult.passed(analyzer_id, message)
    worst = max(issue.severity.level for issue in issues)
    if worst >= Severity.HIGH.level:
        return AnalysisResult.failed(analyzer_id, message, issues)
    return AnalysisResult.warning(analyzer_id, message, issues)


__all__ = [
    'AnalysisResult',
    'AnalyzerMetadata',
    'Category',
    'Issue',
    'Location',
    'Severity',
    'Status',
    'result_by_severity',
]

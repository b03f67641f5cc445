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

"""Select, run and post-process analyzers.

Pipeline::

    ANALYZERS ──▶ all() ──▶ enabled() ──▶ run_all()
                  │          │              │
                  │          │              ├─ analyze() (skipped if !should_run)
                  │          │              ├─ drop @larahealth-ignore'd issues
                  │          │              └─ attach analyzer metadata
                  │          └─ minus disabled_analyzers / disabled categories
                  └─ one instance per class, bound to the ProjectContext
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace

from larahealth.analyzers import ANALYZERS, Analyzer
from larahealth.errors import E, LaraHealthError
from larahealth.laravel import ProjectContext
from larahealth.logging import get_logger
from larahealth.models import AnalysisResult, Category, Status
from larahealth.support.suppression import InlineSuppressionParser

logger = get_logger(__name__)


def parse_category(value: Category | str) -> Category:
    """Accept a :class:`Category` or its value (case-insensitive).

    Raises:
        LaraHealthError: ``LH-ANALYZER-CATEGORY-UNKNOWN``.
    """
    if isinstance(value, Category):
        return value
    try:
        return Category(value.strip().lower().replace('-', '_'))
    except ValueError:
        raise LaraHealthError(
            code=E.ANALYZER_CATEGORY_UNKNOWN,
            message=f'Unknown analyzer category {value!r}',
            hint=f'Valid categories: {", ".join(c.value for c in Category)}',
        ) from None


class AnalyzerManager:
    """Owns the analyzer instances for one project."""

    def __init__(
        self,
        ctx: ProjectContext,
        analyzers: Sequence[type[Analyzer]] = ANALYZERS,
        *,
        suppression: InlineSuppressionParser | None = None,
    ) -> None:
        """Bind ``analyzers`` to ``ctx``."""
        self.ctx = ctx
        self._classes = tuple(analyzers)
        self._instances: list[Analyzer] | None = None
        self._suppression = suppression or InlineSuppressionParser()

    def all(self) -> list[Analyzer]:
        """Every registered analyzer, instantiated once."""
        if self._instances is None:
            self._instances = [cls(self.ctx) for cls in self._classes]
        return list(self._instances)

    def enabled(self) -> list[Analyzer]:
        """Analyzers not disabled by id or category."""
        disabled = set(self.ctx.settings.disabled_analyzers)
        return [
            a
            for a in self.all()
            if a.id not in disabled and self.ctx.settings.category_enabled(a.metadata.category)
        ]

    def runnable(self) -> list[Analyzer]:
        """Enabled analyzers whose own gate (CI, OS, environment) passes."""
        return [a for a in self.enabled() if a.should_run()]

    def by_category(self, category: Category | str) -> list[Analyzer]:
        """Enabled analyzers in ``category``."""
        wanted = parse_category(category)
        return [a for a in self.enabled() if a.metadata.category is wanted]

    def get(self, analyzer_id: str) -> Analyzer:
        """Return the analyzer registered as ``analyzer_id``.

        Raises:
            LaraHealthError: ``LH-ANALYZER-UNKNOWN``.
        """
        for analyzer in self.all():
            if analyzer.id == analyzer_id:
                return analyzer
        known = sorted(a.id for a in self.all())
        raise LaraHealthError(
            code=E.ANALYZER_UNKNOWN,
            message=f'Unknown analyzer {analyzer_id!r}',
            hint=f'Run `larahealth list` to see the {len(known)} available analyzers.',
        )

    def count(self) -> int:
        """Number of registered analyzers."""
        return len(self._classes)

    def enabled_count(self) -> int:
        """Number of enabled analyzers."""
        return len(self.enabled())

    def run_all(self, analyzers: Iterable[Analyzer] | None = None) -> list[AnalysisResult]:
        """Run ``analyzers`` (default: all enabled ones) in registry order."""
        selected = list(analyzers) if analyzers is not None else self.enabled()
        return [self._run_one(a) for a in selected]

    def run(self, analyzer_id: str) -> AnalysisResult:
        """Run a single analyzer by id, even if it is disabled in config."""
        return self._run_one(self.get(analyzer_id))

    def _run_one(self, analyzer: Analyzer) -> AnalysisResult:
        logger.debug('analyzer_started', analyzer=analyzer.id)
        result = analyzer.analyze()
        result = self._apply_suppressions(analyzer, result)
        result.metadata = {**result.metadata, **analyzer.metadata.to_dict()}
        logger.debug(
            'analyzer_finished',
            analyzer=analyzer.id,
            status=result.status.value,
            issues=len(result.issues),
            seconds=round(result.execution_time, 3),
        )
        return result

    def _apply_suppressions(self, analyzer: Analyzer, result: AnalysisResult) -> AnalysisResult:
        if not result.issues:
            return result
        kept = []
        for issue in result.issues:
            location = issue.location
            if location is not None and location.line:
                path = self.ctx.path(location.file)
                if self._suppression.is_line_suppressed(path, location.line, analyzer.id):
                    continue
            kept.append(issue)
        dropped = len(result.issues) - len(kept)
        if not dropped:
            return result
        logger.debug('issues_suppressed', analyzer=analyzer.id, count=dropped)
        if not kept and result.status in (Status.FAILED, Status.WARNING):
            return replace(
                result,
                status=Status.PASSED,
                message='All issues are suppressed inline',
                issues=[],
                metadata={**result.metadata, 'suppressed_issues': dropped},
            )
        return replace(result, issues=kept, metadata={**result.metadata, 'suppressed_issues': dropped})


__all__ = ['AnalyzerManager', 'parse_category']

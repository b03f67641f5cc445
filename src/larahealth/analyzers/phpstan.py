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

"""PHPStan-backed analyzers.

Two flavours share one PHPStan run per ``(paths, level)``:

- :class:`PHPStanAnalyzer` (``phpstan``) runs with the configured paths
  and level and reports every enabled category at once.
- One :class:`PHPStanCategoryAnalyzer` subclass per category (``dead-code``,
  ``invalid-imports``, ...) runs on ``app`` at level 5 and reports only
  its own category.

Flow::

    ctx.memo ──hit──▶ findings
       │ miss
       ▼
    PHPStanRunner.analyze(paths, level).issues()
       │
       ▼
    drop findings under excluded_paths
       │
       ▼
    categorize / category.filter ─▶ dedupe ─▶ create_issues (≤ 50 each)
       │
       ▼
    "Found N PHPStan issue(s) (showing first M)"
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import ClassVar

from larahealth.analyzers._base import Analyzer
from larahealth.errors import LaraHealthError
from larahealth.laravel import ProjectContext
from larahealth.logging import get_logger
from larahealth.models import AnalysisResult, AnalyzerMetadata, Category, Issue, Severity
from larahealth.phpstan.aggregate import (
    create_issues,
    database_recommendation,
    dedupe,
    format_issue_count_message,
)
from larahealth.phpstan.categories import CATEGORIES_BY_KEY, IssueCategory, categorize, resolve_categories
from larahealth.phpstan.runner import PHPSTAN_BINARY, PHPStanIssue, PHPStanRunner
from larahealth.support.paths import PathFilter
from larahealth.support.sanitize import sanitize_error_message

logger = get_logger(__name__)

_MISSING_RECOMMENDATION = (
    'Install PHPStan with `composer require --dev phpstan/phpstan larastan/larastan` and run '
    '`composer install`. If the issue persists, verify that `vendor/bin/phpstan` exists in your project.'
)


def make_runner(ctx: ProjectContext) -> PHPStanRunner:
    """Build a :class:`PHPStanRunner` for the project in ``ctx``."""
    return PHPStanRunner(ctx.base_path, runner=ctx.runner, timeout=ctx.settings.timeout)


def phpstan_findings(ctx: ProjectContext, paths: Sequence[str], level: int) -> list[PHPStanIssue]:
    """Run PHPStan once per ``(paths, level)`` and return its findings.

    Findings in files matching ``excluded_paths`` are dropped. A failed
    run is remembered too, so the other analyzers fail fast.

    Raises:
        LaraHealthError: If PHPStan could not be run.
    """
    key = ('phpstan', tuple(paths), level)
    cached = ctx.memo.get(key)
    if cached is None:
        try:
            cached = make_runner(ctx).analyze(list(paths), level).issues()
        except LaraHealthError as exc:
            cached = exc
        ctx.memo[key] = cached
    else:
        logger.debug('phpstan_cache_hit', paths=list(paths), level=level)
    if isinstance(cached, LaraHealthError):
        raise cached
    path_filter = PathFilter([], ctx.settings.excluded_paths, ctx.base_path)
    return [f for f in cached if not path_filter.is_excluded(f.file)]


class _PHPStanMixin(Analyzer):
    """Shared pieces of the PHPStan analyzers."""

    def _missing_phpstan(self) -> AnalysisResult:
        return self.warning(
            'PHPStan is not available',
            [
                self.issue(
                    'PHPStan binary not found',
                    file=PHPSTAN_BINARY,
                    severity=Severity.MEDIUM,
                    recommendation=_MISSING_RECOMMENDATION,
                )
            ],
        )

    def _failed_run(self, exc: LaraHealthError) -> AnalysisResult:
        return self.error(
            f'PHPStan analysis failed: {sanitize_error_message(exc.info.message)}',
            exception=exc.code.value,
        )


class PHPStanAnalyzer(_PHPStanMixin):
    """Run PHPStan once and report every enabled issue category."""

    metadata = AnalyzerMetadata(
        id='phpstan',
        name='PHPStan Static Analyzer',
        description=(
            'Comprehensive static analysis using PHPStan to detect type errors, '
            'undefined references, and code quality issues'
        ),
        category=Category.RELIABILITY,
        severity=Severity.HIGH,
        tags=('phpstan', 'static-analysis', 'type-safety', 'reliability'),
        time_to_fix=120,
    )

    def run_analysis(self) -> AnalysisResult:
        """Categorize all PHPStan findings for the configured paths."""
        if not self.base_path.is_dir():
            return self.error('Unable to determine base path for PHPStan analysis')

        if not make_runner(self.ctx).is_available():
            return self._missing_phpstan()

        settings = self.ctx.settings
        paths = settings.phpstan.paths or settings.paths or ['app']
        categories = resolve_categories(settings.phpstan.categories, settings.phpstan.disabled_categories)

        try:
            findings = phpstan_findings(self.ctx, paths, settings.phpstan.level)
        except LaraHealthError as exc:
            return self._failed_run(exc)

        grouped = {key: dedupe(items) for key, items in categorize(findings, categories).items()}
        total = sum(len(items) for items in grouped.values())
        if total == 0:
            return self.passed('No PHPStan issues detected')

        issues: list[Issue] = []
        for category in categories:
            items = grouped.get(category.key, [])
            if not items:
                continue
            issues.extend(
                create_issues(
                    items,
                    f'{category.name} detected',
                    category.severity,
                    category.recommend,
                    relative_to=self.relative,
                )
            )

        message = format_issue_count_message(total, len(issues), 'PHPStan issue(s)')
        result = self.result_by_severity(message, issues)
        result.metadata.update(
            total_issues=total,
            displayed_issues=len(issues),
            category_counts={key: len(items) for key, items in grouped.items() if items},
        )
        return result


class PHPStanCategoryAnalyzer(_PHPStanMixin):
    """Report a single :class:`IssueCategory` from a level-5 run on ``app``."""

    category_key: ClassVar[str]
    paths: ClassVar[tuple[str, ...]] = ('app',)
    level: ClassVar[int] = 5

    @property
    def category(self) -> IssueCategory:
        """The classification entry this analyzer reports."""
        return CATEGORIES_BY_KEY[self.category_key]

    def run_analysis(self) -> AnalysisResult:
        """Filter the shared PHPStan run down to this category."""
        if not make_runner(self.ctx).is_available():
            return self._missing_phpstan()

        try:
            findings = phpstan_findings(self.ctx, self.paths, self.level)
        except LaraHealthError as exc:
            return self._failed_run(exc)

        category = self.category
        matched = dedupe(category.filter(findings))
        if not matched:
            return self.passed(f'No {category.name.lower()} detected')

        issues = create_issues(
            matched,
            category.issue_title,
            category.severity,
            category.recommend,
            relative_to=self.relative,
        )
        return self.failed(format_issue_count_message(len(matched), len(issues), category.noun), issues)


def _category_metadata(
    key: str,
    name: str,
    description: str,
    *,
    tags: tuple[str, ...],
    time_to_fix: int | None = None,
) -> AnalyzerMetadata:
    return AnalyzerMetadata(
        id=key,
        name=name,
        description=description,
        category=Category.RELIABILITY,
        severity=CATEGORIES_BY_KEY[key].severity,
        tags=('phpstan', 'static-analysis', *tags),
        docs_url='https://phpstan.org/user-guide/getting-started',
        time_to_fix=time_to_fix,
    )


class DeadCodeAnalyzer(PHPStanCategoryAnalyzer):
    """Unreachable statements, unused code and always-true conditions."""

    category_key = 'dead-code'
    metadata = _category_metadata(
        'dead-code',
        'Dead Code Detection',
        'Detects unreachable code, unused variables, and statements that have no effect using PHPStan',
        tags=('dead-code', 'maintainability'),
        time_to_fix=15,
    )


class DeprecatedCodeAnalyzer(PHPStanCategoryAnalyzer):
    """Calls into APIs marked ``@deprecated``."""

    category_key = 'deprecated-code'
    metadata = _category_metadata(
        'deprecated-code',
        'Deprecated Code Analyzer',
        'Detects usage of deprecated methods, classes, and functions using PHPStan',
        tags=('deprecation', 'upgrades'),
        time_to_fix=15,
    )


class ForeachIterableAnalyzer(PHPStanCategoryAnalyzer):
    category_key = 'foreach-iterable'
    metadata = _category_metadata(
        'foreach-iterable',
        'Foreach Iterable Validation',
        'Detects invalid foreach usage with non-iterable values using PHPStan',
        tags=('foreach', 'type-safety'),
        time_to_fix=10,
    )


class InvalidFunctionCallAnalyzer(PHPStanCategoryAnalyzer):
    category_key = 'invalid-function-calls'
    metadata = _category_metadata(
        'invalid-function-calls',
        'Invalid Function Calls',
        'Detects invalid function calls in application code using PHPStan',
        tags=('functions', 'type-safety'),
        time_to_fix=10,
    )


class InvalidImportAnalyzer(PHPStanCategoryAnalyzer):
    """``use`` statements and ``new`` expressions naming missing classes."""

    category_key = 'invalid-imports'
    metadata = _category_metadata(
        'invalid-imports',
        'Invalid Imports',
        'Detects invalid imports and use statements for non-existent classes using PHPStan',
        tags=('imports', 'autoloading'),
        time_to_fix=10,
    )


class InvalidMethodCallAnalyzer(PHPStanCategoryAnalyzer):
    category_key = 'invalid-method-calls'
    metadata = _category_metadata(
        'invalid-method-calls',
        'Invalid Method Calls',
        'Detects invalid method calls in application code using PHPStan',
        tags=('methods', 'type-safety'),
        time_to_fix=15,
    )


class InvalidMethodOverrideAnalyzer(PHPStanCategoryAnalyzer):
    category_key = 'invalid-method-overrides'
    metadata = _category_metadata(
        'invalid-method-overrides',
        'Invalid Method Overrides',
        'Detects incompatible method overrides with incorrect signatures using PHPStan',
        tags=('inheritance', 'type-safety'),
        time_to_fix=20,
    )


class InvalidOffsetAnalyzer(PHPStanCategoryAnalyzer):
    category_key = 'invalid-offset-access'
    metadata = _category_metadata(
        'invalid-offset-access',
        'Invalid Offset Access Analyzer',
        'Detects invalid array offset access and type mismatches using PHPStan',
        tags=('arrays', 'type-safety'),
        time_to_fix=15,
    )


class InvalidPropertyAccessAnalyzer(PHPStanCategoryAnalyzer):
    category_key = 'invalid-property-access'
    metadata = _category_metadata(
        'invalid-property-access',
        'Invalid Property Access',
        'Detects invalid property access and visibility violations using PHPStan',
        tags=('properties', 'type-safety'),
        time_to_fix=15,
    )


class MissingModelRelationAnalyzer(PHPStanCategoryAnalyzer):
    """Eloquent relations referenced but never defined on the model."""

    category_key = 'missing-model-relation'
    metadata = _category_metadata(
        'missing-model-relation',
        'Missing Model Relations',
        'Detects references to non-existent Eloquent model relations using PHPStan',
        tags=('eloquent', 'relations'),
        time_to_fix=20,
    )


class MissingReturnStatementAnalyzer(PHPStanCategoryAnalyzer):
    category_key = 'missing-return-statement'
    metadata = _category_metadata(
        'missing-return-statement',
        'Missing Return Statements Analyzer',
        'Detects missing return statements in methods and functions using PHPStan',
        tags=('return-types', 'type-safety'),
        time_to_fix=10,
    )


class UndefinedConstantAnalyzer(PHPStanCategoryAnalyzer):
    category_key = 'undefined-constant'
    metadata = _category_metadata(
        'undefined-constant',
        'Undefined Constant Usage Analyzer',
        'Detects references to undefined constants using PHPStan',
        tags=('constants',),
        time_to_fix=10,
    )


class UndefinedVariableAnalyzer(PHPStanCategoryAnalyzer):
    category_key = 'undefined-variable'
    metadata = _category_metadata(
        'undefined-variable',
        'Undefined Variable Usage',
        'Detects references to undefined variables using PHPStan',
        tags=('variables',),
        time_to_fix=10,
    )


# Larastan's collection rule: "Called 'count' on Laravel collection, but
# could have been retrieved as a query." / "Method X::y() should be used instead".
_COLLECTION_QUERY_TEXT = 'could have been retrieved as a query'
_SHOULD_BE_USED = re.compile(r'Method [^:]+::[a-z]+\(\) should be used instead')


class CollectionCallAnalyzer(_PHPStanMixin):
    """Collection work that the database could have done (Larastan rule)."""

    metadata = AnalyzerMetadata(
        id='collection-call-optimization',
        name='Collection Call Optimization',
        description='Detects collection operations that should be performed at the database query level',
        category=Category.PERFORMANCE,
        severity=Severity.HIGH,
        tags=('phpstan', 'larastan', 'database', 'collection', 'performance'),
        docs_url='https://laravel.com/docs/queries#aggregates',
        time_to_fix=10,
    )

    def run_analysis(self) -> AnalysisResult:
        """Pick Larastan's collection-vs-query messages out of the shared run."""
        if not make_runner(self.ctx).is_available():
            return self._missing_phpstan()

        try:
            findings = phpstan_findings(self.ctx, ('app',), 5)
        except LaraHealthError as exc:
            return self._failed_run(exc)

        matched = dedupe(
            f for f in findings if _COLLECTION_QUERY_TEXT in f.message or _SHOULD_BE_USED.search(f.message)
        )
        if not matched:
            return self.passed('No inefficient collection calls detected')

        issues = create_issues(
            matched,
            'Inefficient collection operation',
            Severity.HIGH,
            database_recommendation,
            relative_to=self.relative,
        )
        return self.failed(
            format_issue_count_message(len(matched), len(issues), 'inefficient collection operation(s)'),
            issues,
        )


PHPSTAN_CATEGORY_ANALYZERS: tuple[type[PHPStanCategoryAnalyzer], ...] = (
    DeadCodeAnalyzer,
    DeprecatedCodeAnalyzer,
    ForeachIterableAnalyzer,
    InvalidFunctionCallAnalyzer,
    InvalidImportAnalyzer,
    InvalidMethodCallAnalyzer,
    InvalidMethodOverrideAnalyzer,
    InvalidOffsetAnalyzer,
    InvalidPropertyAccessAnalyzer,
    MissingModelRelationAnalyzer,
    MissingReturnStatementAnalyzer,
    UndefinedConstantAnalyzer,
    UndefinedVariableAnalyzer,
)

__all__ = [
    'CollectionCallAnalyzer',
    'PHPSTAN_CATEGORY_ANALYZERS',
    'PHPStanAnalyzer',
    'PHPStanCategoryAnalyzer',
    'make_runner',
    'phpstan_findings',
]

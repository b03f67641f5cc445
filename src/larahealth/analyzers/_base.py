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

"""Base class for analyzers.

Subclasses declare a :class:`~larahealth.models.AnalyzerMetadata` and
implement :meth:`Analyzer.run_analysis`. Everything else (run gating,
timing, turning crashes into ``error`` results) lives here.

Lifecycle::

    Analyzer(ctx)
        │
        ▼
    analyze() ── should_run()? ── no ──▶ skipped(skip_reason())
        │ yes
        ▼
    run_analysis() ── raises? ── yes ──▶ error("<Name> failed: ...")
        │ no
        ▼
    AnalysisResult (execution_time filled in)
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, ClassVar

from larahealth.laravel import ProjectContext
from larahealth.logging import get_logger
from larahealth.models import (
    AnalysisResult,
    AnalyzerMetadata,
    Issue,
    Location,
    Severity,
    result_by_severity,
)
from larahealth.support.sanitize import sanitize_error_message

logger = get_logger(__name__)


class Analyzer:
    """One health check.

    Class attributes:
        metadata: Static description (id, name, category, severity).
        run_in_ci: ``False`` for checks that need live services.
        run_on_windows: ``False`` for POSIX-only checks.
        environments: Environments the check applies to, or ``None`` for
            all of them.
        skip_environments: Environments the check never applies to.
    """

    metadata: ClassVar[AnalyzerMetadata]
    run_in_ci: ClassVar[bool] = True
    run_on_windows: ClassVar[bool] = True
    environments: ClassVar[tuple[str, ...] | None] = None
    skip_environments: ClassVar[tuple[str, ...]] = ()

    @property
    def _environment_specific(self) -> bool:
        return self.environments is not None or bool(self.skip_environments)

    def _environment_applies(self) -> bool:
        env = self.ctx.environment
        if env in self.skip_environments:
            return False
        return self.environments is None or env in self.environments

    def __init__(self, ctx: ProjectContext) -> None:
        """Bind the analyzer to a project."""
        self.ctx = ctx

    @property
    def id(self) -> str:
        """The analyzer id (``metadata.id``)."""
        return self.metadata.id

    @property
    def base_path(self) -> Path:
        """Laravel project root."""
        return self.ctx.base_path

    def should_run(self) -> bool:
        """Return whether this analyzer applies to the current project."""
        if self.ctx.is_ci and not self.run_in_ci:
            return False
        if self.ctx.is_windows and not self.run_on_windows:
            return False
        if self._environment_specific:
            if self.ctx.settings.skip_env_specific:
                return False
            return self._environment_applies()
        return True

    def skip_reason(self) -> str:
        """Explain why :meth:`should_run` returned False."""
        if self.ctx.is_ci and not self.run_in_ci:
            return 'Not applicable in CI environment'
        if self.ctx.is_windows and not self.run_on_windows:
            return 'Not applicable on Windows'
        if self._environment_specific:
            if self.ctx.settings.skip_env_specific:
                return 'Environment-specific analyzers are disabled (skip_env_specific)'
            if self.environments is not None:
                return (
                    f"Not applicable in '{self.ctx.environment}' environment "
                    f'(runs in: {", ".join(self.environments)})'
                )
            return f"Not applicable in '{self.ctx.environment}' environment"
        return 'Analyzer is not applicable to this project'

    def analyze(self) -> AnalysisResult:
        """Run the analyzer, returning a result even if it crashes."""
        if not self.should_run():
            return AnalysisResult.skipped(self.id, self.skip_reason())

        start = time.monotonic()
        try:
            result = self.run_analysis()
        except Exception as exc:  # noqa: BLE001 - one analyzer must not stop the run
            logger.warning('analyzer_crashed', analyzer=self.id, error=str(exc), exc_type=type(exc).__name__)
            result = AnalysisResult.error(
                self.id,
                f'{self.metadata.name} failed: {sanitize_error_message(str(exc))}',
                exception=type(exc).__name__,
            )
        result.execution_time = time.monotonic() - start
        return result

    def run_analysis(self) -> AnalysisResult:
        """Perform the check. Subclasses must override."""
        raise NotImplementedError

    # Result helpers.

    def passed(self, message: str, **metadata: Any) -> AnalysisResult:  # noqa: ANN401
        """Build a passed result for this analyzer."""
        return AnalysisResult.passed(self.id, message, **metadata)

    def failed(self, message: str, issues: list[Issue] | None = None, **metadata: Any) -> AnalysisResult:  # noqa: ANN401
        """Build a failed result for this analyzer."""
        return AnalysisResult.failed(self.id, message, issues, **metadata)

    def warning(self, message: str, issues: list[Issue] | None = None, **metadata: Any) -> AnalysisResult:  # noqa: ANN401
        """Build a warning result for this analyzer."""
        return AnalysisResult.warning(self.id, message, issues, **metadata)

    def error(self, message: str, **metadata: Any) -> AnalysisResult:  # noqa: ANN401
        """Build an error result for this analyzer."""
        return AnalysisResult.error(self.id, message, **metadata)

    def result_by_severity(self, message: str, issues: list[Issue]) -> AnalysisResult:
        """Failed if any issue is critical/high, warning otherwise."""
        return result_by_severity(self.id, message, issues)

    def issue(
        self,
        message: str,
        *,
        file: Path | str | None = None,
        line: int | None = None,
        severity: Severity | None = None,
        recommendation: str,
        code: str | None = None,
        **metadata: Any,  # noqa: ANN401
    ) -> Issue:
        """Build an issue located in this project.

        Absolute paths under the project root are made relative. The
        severity defaults to the analyzer's own.
        """
        location = Location(self.relative(file), line) if file is not None else None
        return Issue(
            message=message,
            location=location,
            severity=severity or self.metadata.severity,
            recommendation=recommendation,
            code=code,
            metadata=dict(metadata),
        )

    def relative(self, path: Path | str) -> str:
        """Project-relative form of ``path``."""
        return self.ctx.relative(path)


__all__ = ['Analyzer']

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

"""The report produced by one ``larahealth analyze`` run."""

from __future__ import annotations

import datetime
import json
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from larahealth import __version__
from larahealth.models import AnalysisResult, Status


class TriggerSource(str, Enum):
    """What started the run."""

    MANUAL = 'manual'
    CI_CD = 'ci_cd'
    SCHEDULED = 'scheduled'

    @property
    def label(self) -> str:
        """Human-readable name."""
        return {'manual': 'Manual', 'ci_cd': 'CI/CD', 'scheduled': 'Scheduled'}[self.value]


def detect_laravel_version(base_path: Path) -> str:
    """Version of ``laravel/framework`` pinned in ``composer.lock``, or ``'unknown'``."""
    try:
        lock = json.loads((base_path / 'composer.lock').read_text(encoding='utf-8'))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return 'unknown'
    if not isinstance(lock, dict):
        return 'unknown'
    for package in lock.get('packages', []):
        if isinstance(package, dict) and package.get('name') == 'laravel/framework':
            version = package.get('version')
            if isinstance(version, str) and version:
                return version.removeprefix('v')
    return 'unknown'


@dataclass
class AnalysisReport:
    """All results of a run plus where and when it happened."""

    project_id: str
    laravel_version: str
    results: list[AnalysisResult]
    package_version: str = __version__
    total_execution_time: float = 0.0
    analyzed_at: datetime.datetime = field(default_factory=lambda: datetime.datetime.now(datetime.timezone.utc))
    trigger: TriggerSource = TriggerSource.MANUAL
    metadata: dict[str, Any] = field(default_factory=dict)  # noqa: ANN401 - free-form

    @classmethod
    def build(
        cls,
        results: Sequence[AnalysisResult],
        *,
        base_path: Path,
        trigger: TriggerSource = TriggerSource.MANUAL,
    ) -> AnalysisReport:
        """Assemble a report, summing execution times."""
        return cls(
            project_id=base_path.resolve().name,
            laravel_version=detect_laravel_version(base_path),
            results=list(results),
            total_execution_time=round(sum(r.execution_time for r in results), 3),
            trigger=trigger,
        )

    def _with_status(self, status: Status) -> list[AnalysisResult]:
        return [r for r in self.results if r.status is status]

    def passed(self) -> list[AnalysisResult]:
        """Passed results."""
        return self._with_status(Status.PASSED)

    def failed(self) -> list[AnalysisResult]:
        """Failed results."""
        return self._with_status(Status.FAILED)

    def warnings(self) -> list[AnalysisResult]:
        """Warning results."""
        return self._with_status(Status.WARNING)

    def skipped(self) -> list[AnalysisResult]:
        """Skipped results."""
        return self._with_status(Status.SKIPPED)

    def errors(self) -> list[AnalysisResult]:
        """Results of analyzers that could not run."""
        return self._with_status(Status.ERROR)

    def score(self) -> int:
        """Percentage of passed results, rounded; 100 for an empty run."""
        if not self.results:
            return 100
        return round(len(self.passed()) / len(self.results) * 100)

    def summary(self) -> dict[str, int]:
        """Counts per status plus the score."""
        return {
            'total': len(self.results),
            'passed': len(self.passed()),
            'failed': len(self.failed()),
            'warnings': len(self.warnings()),
            'skipped': len(self.skipped()),
            'errors': len(self.errors()),
            'score': self.score(),
        }

    def to_dict(self) -> dict[str, Any]:  # noqa: ANN401 - JSON-shaped
        """Serialize for JSON output."""
        return {
            'project_id': self.project_id,
            'laravel_version': self.laravel_version,
            'package_version': self.package_version,
            'analyzed_at': self.analyzed_at.isoformat(timespec='seconds'),
            'trigger': self.trigger.value,
            'total_execution_time': self.total_execution_time,
            'summary': self.summary(),
            'results': [r.to_dict() for r in self.results],
            'metadata': self.metadata,
        }


__all__ = ['AnalysisReport', 'TriggerSource', 'detect_laravel_version']

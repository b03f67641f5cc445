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

"""Baseline files: accept today's issues, fail only on new ones.

``larahealth baseline`` records a hash of every current issue.
``larahealth analyze --baseline`` then drops issues whose hash is
recorded for the same analyzer.

File format::

    {
      "generated_at": "2026-03-01T12:00:00+00:00",
      "generator": "larahealth baseline",
      "version": "1.0.0",
      "total_issues": 2,
      "dont_report": ["maintenance-mode-status"],
      "errors": {
        "phpstan": [
          {"type": "hash", "path": "app/Foo.php", "line": 12,
           "message": "Dead Code detected", "hash": "9f2c..."}
        ]
      }
    }

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ issue_hash          │ A fingerprint of file + line + message. Same  │
    │                     │ issue tomorrow, same fingerprint.              │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ dont_report         │ Analyzers that failed without listing any     │
    │                     │ issue. Nothing to fingerprint, so the whole    │
    │                     │ analyzer is excluded from the exit code.       │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ignore_errors       │ Hand-written message patterns from             │
    │                     │ larahealth.toml, applied on every run.        │
    └─────────────────────┴────────────────────────────────────────────────┘

Hashes are computed over compact JSON with ``/`` escaped as ``\\/``.
Changing that encoding would invalidate every existing baseline file.
"""

from __future__ import annotations

import datetime
import hashlib
import json
import os
import tempfile
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from larahealth.errors import E, LaraHealthError
from larahealth.logging import get_logger
from larahealth.models import AnalysisResult, Issue, Status
from larahealth.phpstan.runner import wildcard_match

logger = get_logger(__name__)

BASELINE_VERSION = '1.0.0'
GENERATOR = 'larahealth baseline'


def issue_hash(issue: Issue) -> str:
    """Return the sha256 fingerprint of ``issue`` as 64 hex characters."""
    data = {
        'file': issue.location.file if issue.location else 'unknown',
        'line': issue.location.line if issue.location else None,
        'message': issue.message,
    }
    encoded = json.dumps(data, separators=(',', ':')).replace('/', '\\/')
    return hashlib.sha256(encoded.encode('utf-8')).hexdigest()


def _entry(issue: Issue) -> dict[str, Any]:  # noqa: ANN401 - JSON-shaped
    return {
        'type': 'hash',
        'path': issue.location.file if issue.location else 'unknown',
        'line': issue.location.line if issue.location else None,
        'message': issue.message,
        'hash': issue_hash(issue),
    }


@dataclass
class Baseline:
    """Decoded baseline file.

    Attributes:
        errors: Analyzer id to recorded issue entries.
        dont_report: Analyzer ids excluded from the exit code.
        generated_at: ISO timestamp of the last generation.
    """

    errors: dict[str, list[dict[str, Any]]] = field(default_factory=dict)  # noqa: ANN401
    dont_report: list[str] = field(default_factory=list)
    generated_at: str = ''

    @property
    def total_issues(self) -> int:
        """Number of recorded issue entries."""
        return sum(len(entries) for entries in self.errors.values())

    def hashes(self, analyzer_id: str) -> set[str]:
        """Recorded hashes for ``analyzer_id``."""
        return {
            entry['hash']
            for entry in self.errors.get(analyzer_id, [])
            if isinstance(entry.get('hash'), str)
        }

    def to_dict(self) -> dict[str, Any]:  # noqa: ANN401 - JSON-shaped
        """Serialize in file order."""
        return {
            'generated_at': self.generated_at,
            'generator': GENERATOR,
            'version': BASELINE_VERSION,
            'total_issues': self.total_issues,
            'dont_report': list(dict.fromkeys(self.dont_report)),
            'errors': self.errors,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Baseline:  # noqa: ANN401
        """Build from decoded JSON, ignoring malformed sections."""
        raw_errors = data.get('errors')
        errors: dict[str, list[dict[str, Any]]] = {}  # noqa: ANN401
        if isinstance(raw_errors, Mapping):
            for analyzer_id, entries in raw_errors.items():
                if isinstance(entries, list):
                    errors[str(analyzer_id)] = [e for e in entries if isinstance(e, dict)]
        raw_dont_report = data.get('dont_report')
        dont_report = [x for x in raw_dont_report if isinstance(x, str)] if isinstance(raw_dont_report, list) else []
        generated_at = data.get('generated_at')
        return cls(
            errors=errors,
            dont_report=dont_report,
            generated_at=generated_at if isinstance(generated_at, str) else '',
        )


def generate_baseline(results: Iterable[AnalysisResult], *, existing: Baseline | None = None) -> Baseline:
    """Record every issue in ``results``, merged into ``existing``.

    Passed and skipped results are ignored. A non-passing result with no
    issues puts its analyzer on ``dont_report``.
    """
    errors = {k: list(v) for k, v in existing.errors.items()} if existing else {}
    dont_report = list(existing.dont_report) if existing else []

    for result in results:
        if result.status in (Status.PASSED, Status.SKIPPED):
            continue
        if not result.issues:
            if result.analyzer_id not in dont_report:
                dont_report.append(result.analyzer_id)
                logger.debug('baseline_dont_report', analyzer=result.analyzer_id)
            continue
        entries = errors.setdefault(result.analyzer_id, [])
        known = {e.get('hash') for e in entries}
        for issue in result.issues:
            entry = _entry(issue)
            if entry['hash'] in known:
                continue
            known.add(entry['hash'])
            entries.append(entry)

    return Baseline(
        errors=errors,
        dont_report=dont_report,
        generated_at=datetime.datetime.now(datetime.timezone.utc).isoformat(timespec='seconds'),
    )


def load_baseline(path: Path) -> Baseline:
    """Read a baseline file.

    Raises:
        LaraHealthError: ``LH-BASELINE-INVALID`` if the file cannot be
            read or is not a JSON object.
    """
    try:
        text = path.read_text(encoding='utf-8')
    except OSError as exc:
        raise LaraHealthError(
            code=E.BASELINE_INVALID,
            message=f'Failed to read baseline file {path}: {exc}',
            hint="Create one with 'larahealth baseline'.",
        ) from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise LaraHealthError(
            code=E.BASELINE_INVALID,
            message=f'Baseline file {path} contains invalid JSON: {exc}',
            hint="Regenerate it with 'larahealth baseline'.",
        ) from exc
    if not isinstance(data, dict):
        raise LaraHealthError(
            code=E.BASELINE_INVALID,
            message=f'Baseline file {path} must hold a JSON object, got {type(data).__name__}',
            hint="Regenerate it with 'larahealth baseline'.",
        )
    baseline = Baseline.from_dict(data)
    logger.debug('baseline_loaded', path=str(path), issues=baseline.total_issues)
    return baseline


def write_baseline(baseline: Baseline, path: Path) -> None:
    """Atomically write ``baseline`` to ``path``.

    Raises:
        LaraHealthError: ``LH-BASELINE-WRITE-FAILED``.
    """
    content = json.dumps(baseline.to_dict(), indent=4, ensure_ascii=False) + '\n'
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix='.larahealth-baseline-', suffix='.tmp')
        closed = False
        try:
            os.write(fd, content.encode('utf-8'))
            os.close(fd)
            closed = True
            os.replace(tmp_path, path)
        except BaseException:
            if not closed:
                os.close(fd)
            Path(tmp_path).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise LaraHealthError(
            code=E.BASELINE_WRITE_FAILED,
            message=f'Failed to write baseline file {path}: {exc}',
        ) from exc
    logger.debug('baseline_saved', path=str(path), issues=baseline.total_issues)


def _drop_issues(result: AnalysisResult, kept: list[Issue], message: str, **extra: Any) -> AnalysisResult:  # noqa: ANN401
    metadata = {**result.metadata, **extra}
    if not kept and result.status in (Status.FAILED, Status.WARNING):
        return replace(result, status=Status.PASSED, message=message, issues=[], metadata=metadata)
    return replace(result, issues=kept, metadata=metadata)


def apply_baseline(results: Iterable[AnalysisResult], baseline: Baseline) -> list[AnalysisResult]:
    """Drop issues recorded in ``baseline``.

    A failed or warning result left with no issues becomes passed with
    ``'All issues are in baseline'``.
    """
    filtered: list[AnalysisResult] = []
    for result in results:
        recorded = baseline.hashes(result.analyzer_id)
        if not recorded or not result.issues:
            filtered.append(result)
            continue
        kept = [issue for issue in result.issues if issue_hash(issue) not in recorded]
        dropped = len(result.issues) - len(kept)
        if not dropped:
            filtered.append(result)
            continue
        filtered.append(_drop_issues(result, kept, 'All issues are in baseline', baselined_issues=dropped))
    return filtered


def apply_ignore_errors(
    results: Iterable[AnalysisResult],
    ignore_errors: Mapping[str, Iterable[str]],
) -> list[AnalysisResult]:
    """Drop issues whose message matches an ``ignore_errors`` pattern.

    Patterns are matched against the issue message with ``*`` wildcards;
    a pattern without wildcards must match the whole message.
    """
    filtered: list[AnalysisResult] = []
    for result in results:
        patterns = list(ignore_errors.get(result.analyzer_id, ()))
        if not patterns or not result.issues:
            filtered.append(result)
            continue
        kept = [i for i in result.issues if not any(wildcard_match(p, i.message) for p in patterns)]
        dropped = len(result.issues) - len(kept)
        if not dropped:
            filtered.append(result)
            continue
        filtered.append(_drop_issues(result, kept, 'All issues are ignored by configuration', ignored_issues=dropped))
    return filtered


__all__ = [
    'BASELINE_VERSION',
    'Baseline',
    'apply_baseline',
    'apply_ignore_errors',
    'generate_baseline',
    'issue_hash',
    'load_baseline',
    'write_baseline',
]

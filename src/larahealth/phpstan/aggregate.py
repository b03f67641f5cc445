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

"""Turn PHPStan findings into bounded :class:`~larahealth.models.Issue` lists.

A large legacy codebase can produce thousands of PHPStan messages. Each
category reports at most :data:`MAX_ISSUES` of them; the result message
keeps the true total, e.g. ``Found 312 invalid method call(s) (showing
first 50)``.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable

from larahealth.models import Issue, Location, Severity
from larahealth.phpstan.runner import PHPStanIssue

MAX_ISSUES = 50

_SHOULD_BE_USED = re.compile(r'Method ([^:]+)::([a-z]+)\(\) should be used instead')


def dedupe(issues: Iterable[PHPStanIssue]) -> list[PHPStanIssue]:
    """Drop repeated ``(file, line, message)`` entries, keeping the first."""
    seen: set[tuple[str, int, str]] = set()
    unique: list[PHPStanIssue] = []
    for issue in issues:
        key = (issue.file, issue.line, issue.message)
        if key in seen:
            continue
        seen.add(key)
        unique.append(issue)
    return unique


def create_issues(
    phpstan_issues: Iterable[PHPStanIssue],
    message: str,
    severity: Severity,
    recommend: Callable[[str], str],
    *,
    limit: int = MAX_ISSUES,
    relative_to: Callable[[str], str] | None = None,
) -> list[Issue]:
    """Convert PHPStan findings to issues, at most ``limit`` of them.

    Args:
        phpstan_issues: Findings, in the order PHPStan reported them.
        message: Title shared by every issue (e.g. ``'Dead Code detected'``).
        severity: Severity of every issue.
        recommend: Builds the recommendation from the PHPStan message.
        limit: Maximum number of issues returned.
        relative_to: Optional path shortener for issue locations.

    Returns:
        Issues with ``code='phpstan'`` and the original finding in
        ``metadata``. Entries without a file or message are skipped; a
        missing or non-positive line becomes 1.
    """
    issues: list[Issue] = []
    for finding in dedupe(phpstan_issues)[:limit]:
        if not finding.file or not finding.message:
            continue
        line = finding.line if isinstance(finding.line, int) and finding.line >= 1 else 1
        file_path = relative_to(finding.file) if relative_to else finding.file
        issues.append(
            Issue(
                message=message,
                location=Location(file_path, line),
                severity=severity,
                recommendation=recommend(finding.message),
                code='phpstan',
                metadata={
                    'phpstan_message': finding.message,
                    'file': finding.file,
                    'line': line,
                },
            )
        )
    return issues


def format_issue_count_message(total: int, displayed: int, noun: str) -> str:
    """``Found 60 X (showing first 50)`` when truncated, else ``Found 3 X``."""
    if total > displayed:
        return f'Found {total} {noun} (showing first {displayed})'
    return f'Found {total} {noun}'


def database_recommendation(message: str) -> str:
    """Advice for "do this in the query, not in PHP" messages."""
    match = _SHOULD_BE_USED.search(message)
    if match:
        cls, method = match.groups()
        return (
            f'Use {cls}::{method}() to perform this operation at the database level '
            'instead of loading all records into memory.'
        )
    if 'could have been retrieved as a query' in message:
        return (
            'Perform this aggregation at the database query level instead of the collection level for better '
            'performance. This avoids loading unnecessary data into memory.'
        )
    return 'Optimize this operation to run at the database level instead of in PHP for better performance.'


__all__ = [
    'MAX_ISSUES',
    'create_issues',
    'database_recommendation',
    'dedupe',
    'format_issue_count_message',
]

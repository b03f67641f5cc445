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

"""Formatter registry and dispatch.

Maps format names to their formatter functions, providing a single
``format_report()`` entry point for the CLI.
"""

from __future__ import annotations

from collections.abc import Callable

from larahealth.formatters.console import format_console
from larahealth.formatters.json_fmt import format_json
from larahealth.report import AnalysisReport

Formatter = Callable[..., str]

FORMATTERS: dict[str, Formatter] = {
    'console': format_console,
    'json': format_json,
}


def format_report(
    report: AnalysisReport,
    *,
    fmt: str = 'console',
    show_recommendations: bool = True,
    max_issues: int = 5,
) -> str:
    """Format a report using the named formatter.

    Args:
        report: The analysis report.
        fmt: Format name (one of :data:`FORMATTERS`).
        show_recommendations: Console only; print the 💡 lines.
        max_issues: Console only; issues listed per analyzer.

    Returns:
        The formatted report.

    Raises:
        ValueError: If ``fmt`` is not a registered format name.
    """
    formatter = FORMATTERS.get(fmt)
    if formatter is None:
        available = ', '.join(sorted(FORMATTERS))
        msg = f'Unknown format {fmt!r}. Available: {available}'
        raise ValueError(msg)
    if fmt == 'console':
        return formatter(report, show_recommendations=show_recommendations, max_issues=max_issues)
    return formatter(report)


__all__ = ['FORMATTERS', 'format_report']

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

"""Human-readable console report.

Layout::

    ╭──────────────────────────────────────────╮
    │        larahealth Health Report           │
    ╰──────────── my-app · Laravel 11.9.2 ─────╯
     Score            72/100
     Total Analyzers  25
     ✓ Passed         18
     ...
    ───────────── FAILED ANALYZERS ─────────────
    ✗ env-variables-complete
      Found 2 environment variable issue(s)
      Issues found: 2
        - .env: Missing environment variables
          💡 Add the following ...
        ... and 3 more
    ───────────────── WARNINGS ─────────────────
    ...
    ─────────────────────────────────────────────
    ⚠ Analysis completed with warnings.

Issue text is wrapped in :class:`rich.text.Text` so PHPStan messages
such as ``array<int, string>`` or ``[$foo]`` are never parsed as markup.
"""

from __future__ import annotations

import io

from rich.console import Console, RenderableType
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from larahealth.models import AnalysisResult
from larahealth.report import AnalysisReport

# (icon, style) per section.
_FAILED = ('✗', 'red bold')
_WARNING = ('⚠', 'yellow bold')
_ERROR = ('⊗', 'magenta bold')


def _summary_table(report: AnalysisReport) -> Table:
    summary = report.summary()
    table = Table.grid(padding=(0, 2))
    table.add_column(style='bold')
    table.add_column()
    table.add_row('Score', f'{summary["score"]}/100')
    table.add_row('Total Analyzers', str(summary['total']))
    table.add_row(Text('✓ Passed', style='green'), str(summary['passed']))
    table.add_row(Text('✗ Failed', style='red'), str(summary['failed']))
    table.add_row(Text('⚠ Warnings', style='yellow'), str(summary['warnings']))
    table.add_row(Text('⊝ Skipped', style='dim'), str(summary['skipped']))
    if summary['errors']:
        table.add_row(Text('⊗ Errors', style='magenta'), str(summary['errors']))
    table.add_row('Execution Time', f'{report.total_execution_time}s')
    return table


def _result_lines(
    result: AnalysisResult,
    icon: tuple[str, str],
    *,
    show_issues: bool,
    show_recommendations: bool,
    max_issues: int,
) -> list[RenderableType]:
    symbol, style = icon
    lines: list[RenderableType] = [
        Text(f'{symbol} {result.analyzer_id}', style=style),
        Text(f'  {result.message}'),
    ]
    if show_issues and result.issues:
        lines.append(Text(f'  Issues found: {len(result.issues)}'))
        for issue in result.issues[:max_issues]:
            where = f'{issue.location}: ' if issue.location else ''
            lines.append(Text(f'    - {where}{issue.message}'))
            if show_recommendations and issue.recommendation:
                lines.append(Text(f'      💡 {issue.recommendation}', style='dim'))
        remaining = len(result.issues) - max_issues
        if remaining > 0:
            lines.append(Text(f'    ... and {remaining} more', style='dim'))
    lines.append(Text(''))
    return lines


def _verdict(score: int) -> Text:
    if score >= 80:
        return Text('✓ Analysis completed successfully!', style='green bold')
    if score >= 60:
        return Text('⚠ Analysis completed with warnings.', style='yellow bold')
    return Text('✗ Analysis completed with failures.', style='red bold')


def build_renderables(
    report: AnalysisReport,
    *,
    show_recommendations: bool = True,
    max_issues: int = 5,
) -> list[RenderableType]:
    """Everything the console report prints, in order."""
    out: list[RenderableType] = [
        Panel(
            Text('larahealth Health Report', justify='center', style='bold'),
            subtitle=Text(f'{report.project_id} · Laravel {report.laravel_version}'),
            expand=True,
        ),
        _summary_table(report),
        Text(''),
    ]

    sections = (
        ('FAILED ANALYZERS', report.failed(), _FAILED, True),
        ('WARNINGS', report.warnings(), _WARNING, True),
        ('ERRORS', report.errors(), _ERROR, False),
    )
    for title, results, icon, show_issues in sections:
        if not results:
            continue
        out.append(Rule(title, style=icon[1]))
        out.append(Text(''))
        for result in results:
            out.extend(
                _result_lines(
                    result,
                    icon,
                    show_issues=show_issues,
                    show_recommendations=show_recommendations,
                    max_issues=max_issues,
                )
            )

    out.append(Rule())
    out.append(_verdict(report.score()))
    return out


def print_console(
    report: AnalysisReport,
    *,
    console: Console | None = None,
    show_recommendations: bool = True,
    max_issues: int = 5,
) -> None:
    """Print the report to ``console`` (stdout by default), with colour on a TTY."""
    console = console or Console()
    for renderable in build_renderables(report, show_recommendations=show_recommendations, max_issues=max_issues):
        console.print(renderable)


def format_console(
    report: AnalysisReport,
    *,
    show_recommendations: bool = True,
    max_issues: int = 5,
    width: int = 100,
) -> str:
    """Render the report as plain text (no ANSI codes)."""
    buffer = io.StringIO()
    console = Console(file=buffer, width=width, no_color=True, highlight=False, force_terminal=False)
    print_console(report, console=console, show_recommendations=show_recommendations, max_issues=max_issues)
    return buffer.getvalue()


__all__ = ['build_renderables', 'format_console', 'print_console']

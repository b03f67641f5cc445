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

"""CLI entry point for larahealth.

Subcommands::

    larahealth analyze    Run the health checks and print a report
    larahealth baseline   Record current issues so only new ones fail
    larahealth list       Show every analyzer and whether it is enabled
    larahealth explain    Explain an error code

Usage::

    # Full run against a project, reading config through artisan:
    larahealth --path ~/src/shop analyze

    # CI: no live services, JSON report, fail only on new issues:
    larahealth --config-dump config.json analyze --ci --baseline --format json

    # One analyzer:
    larahealth analyze --analyzer env-variables-complete

Exit codes::

    0    no failure at or above ``fail_on`` (or ``fail_on = "never"``)
    1    failures, a score under ``fail_threshold``, or a tool error
    2    no subcommand given
    130  interrupted
"""

from __future__ import annotations

import argparse
import dataclasses
import sys
from collections.abc import Collection, Sequence
from pathlib import Path

from rich.console import Console
from rich.table import Table
from rich_argparse import RichHelpFormatter

from larahealth import __version__
from larahealth.analyzers import Analyzer
from larahealth.baseline import (
    Baseline,
    apply_baseline,
    apply_ignore_errors,
    generate_baseline,
    load_baseline,
    write_baseline,
)
from larahealth.config import Settings, load_config
from larahealth.errors import E, LaraHealthError, explain, render_error
from larahealth.formatters import format_report
from larahealth.formatters.console import print_console
from larahealth.laravel import ProjectContext, load_laravel_config
from larahealth.logging import configure_logging, get_logger
from larahealth.manager import AnalyzerManager
from larahealth.models import Severity
from larahealth.report import AnalysisReport, TriggerSource

logger = get_logger(__name__)


def compute_exit_code(
    report: AnalysisReport,
    *,
    fail_on: str = 'critical',
    fail_threshold: int | None = None,
    dont_report: Collection[str] = (),
) -> int:
    """Decide the process exit code for ``report``.

    ``fail_on = "never"`` always passes. Otherwise a score below
    ``fail_threshold`` fails, and so does any failed analyzer outside
    ``dont_report`` with an issue at or above the ``fail_on`` severity.
    """
    if fail_on == 'never':
        return 0
    if fail_threshold is not None and report.score() < fail_threshold:
        return 1
    minimum = Severity(fail_on).level
    for result in report.failed():
        if result.analyzer_id in dont_report:
            continue
        if any(issue.severity.level >= minimum for issue in result.issues):
            return 1
    return 0


def _project_root(args: argparse.Namespace) -> Path:
    root = Path(args.path).expanduser().resolve()
    if not root.is_dir():
        raise LaraHealthError(
            code=E.LARAVEL_ROOT_NOT_FOUND,
            message=f'{root} is not a directory',
            hint='Pass --path pointing at the Laravel project root.',
        )
    return root


def _load_settings(root: Path, *, ci: bool = False) -> Settings:
    settings = load_config(root)
    if ci and not settings.ci:
        settings = dataclasses.replace(settings, ci=True)
    return settings


def _build_context(args: argparse.Namespace, settings: Settings, root: Path) -> ProjectContext:
    dump = Path(args.config_dump).expanduser() if args.config_dump else None
    config = load_laravel_config(root, dump_path=dump, timeout=settings.timeout)
    return ProjectContext(
        base_path=root,
        config=config,
        settings=settings,
        is_windows=sys.platform == 'win32',
    )


def _select(manager: AnalyzerManager, args: argparse.Namespace) -> list[Analyzer]:
    if args.analyzer:
        return [manager.get(analyzer_id) for analyzer_id in args.analyzer]
    if args.category:
        selected: list[Analyzer] = []
        for category in args.category:
            selected.extend(a for a in manager.by_category(category) if a not in selected)
        return selected
    return manager.enabled()


def _write_output(text: str, path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding='utf-8')
    except OSError as exc:
        raise LaraHealthError(
            code=E.REPORT_WRITE_FAILED,
            message=f'Failed to write report to {path}: {exc}',
        ) from exc
    logger.info('report_saved', path=str(path))


def _cmd_analyze(args: argparse.Namespace) -> int:
    """Handle the ``analyze`` subcommand."""
    root = _project_root(args)
    settings = _load_settings(root, ci=args.ci)
    if not settings.enabled:
        logger.info('larahealth_disabled', config=str(settings.config_path))
        return 0

    ctx = _build_context(args, settings, root)
    manager = AnalyzerManager(ctx)
    selected = _select(manager, args)
    logger.info('analysis_started', analyzers=len(selected), environment=ctx.environment, ci=settings.ci)

    results = manager.run_all(selected)
    if not results:
        print('No analyzers were run.', file=sys.stderr)  # noqa: T201 - CLI output
        return 1

    results = apply_ignore_errors(results, settings.ignore_errors)
    dont_report = set(settings.dont_report)
    if args.baseline:
        baseline_path = root / settings.baseline_file
        if baseline_path.is_file():
            baseline = load_baseline(baseline_path)
            results = apply_baseline(results, baseline)
            dont_report.update(baseline.dont_report)
        else:
            logger.warning(
                'baseline_not_found',
                path=str(baseline_path),
                hint="Run 'larahealth baseline' to create one.",
            )

    trigger = TriggerSource.CI_CD if settings.ci else TriggerSource.MANUAL
    report = AnalysisReport.build(results, base_path=root, trigger=trigger)

    fmt = args.format or settings.report.format
    if fmt == 'console':
        print_console(
            report,
            show_recommendations=settings.report.show_recommendations,
            max_issues=settings.report.max_issues_per_check,
        )
    else:
        print(format_report(report, fmt=fmt), end='')  # noqa: T201 - CLI output

    output = args.output or settings.report.output_file
    if output:
        text = format_report(
            report,
            fmt=fmt,
            show_recommendations=settings.report.show_recommendations,
            max_issues=settings.report.max_issues_per_check,
        )
        _write_output(text, root / output)

    code = compute_exit_code(
        report,
        fail_on=settings.fail_on,
        fail_threshold=settings.fail_threshold,
        dont_report=dont_report,
    )
    logger.info('analysis_finished', score=report.score(), exit_code=code)
    return code


def _cmd_baseline(args: argparse.Namespace) -> int:
    """Handle the ``baseline`` subcommand."""
    root = _project_root(args)
    settings = _load_settings(root, ci=args.ci)
    ctx = _build_context(args, settings, root)
    manager = AnalyzerManager(ctx)

    results = manager.run_all()
    path = root / (args.output or settings.baseline_file)
    existing: Baseline | None = None
    if args.merge and path.is_file():
        existing = load_baseline(path)
        logger.info('baseline_merging', path=str(path))

    baseline = generate_baseline(results, existing=existing)
    write_baseline(baseline, path)

    console = Console()
    console.print(f'[green]✓[/green] Baseline written to [bold]{path}[/bold]', highlight=False)
    console.print(f'  Total issues: {baseline.total_issues}', highlight=False)
    if baseline.dont_report:
        console.print(f'  Analyzers in dont_report: {len(baseline.dont_report)}', highlight=False)
    if existing is not None:
        console.print(f'  New issues added: {baseline.total_issues - existing.total_issues}', highlight=False)
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    """Handle the ``list`` subcommand."""
    root = _project_root(args)
    ctx = ProjectContext(base_path=root, settings=load_config(root))
    manager = AnalyzerManager(ctx)
    enabled = {a.id for a in manager.enabled()}

    table = Table(title=f'larahealth analyzers ({len(enabled)}/{manager.count()} enabled)')
    table.add_column('ID', style='bold cyan', no_wrap=True)
    table.add_column('Name')
    table.add_column('Category')
    table.add_column('Severity')
    table.add_column('Enabled', justify='center')
    for analyzer in manager.all():
        meta = analyzer.metadata
        table.add_row(
            meta.id,
            meta.name,
            meta.category.label,
            meta.severity.value,
            '[green]yes[/green]' if meta.id in enabled else '[dim]no[/dim]',
        )
    Console().print(table)
    return 0


def _cmd_explain(args: argparse.Namespace) -> int:
    """Handle the ``explain`` subcommand."""
    result = explain(args.code)
    if result is None:
        print(f'Unknown error code: {args.code}')  # noqa: T201 - CLI output
        return 1
    print(result)  # noqa: T201 - CLI output
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Returns:
        Configured :class:`argparse.ArgumentParser`.
    """
    RichHelpFormatter.styles['argparse.groups'] = 'bold yellow'
    parser = argparse.ArgumentParser(
        prog='larahealth',
        description='Health checks for Laravel applications.',
        formatter_class=RichHelpFormatter,
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}',
    )
    parser.add_argument(
        '--path',
        default='.',
        help='Laravel project root (default: current directory).',
    )
    parser.add_argument(
        '--config-dump',
        metavar='FILE',
        default=None,
        help='JSON dump of config()->all(). Without it, php artisan tinker is run.',
    )
    parser.add_argument(
        '--verbose',
        '-v',
        action='store_true',
        help='Debug logging (every command, every analyzer).',
    )
    parser.add_argument(
        '--quiet',
        '-q',
        action='store_true',
        help='Only log warnings and errors.',
    )
    parser.add_argument(
        '--json-log',
        action='store_true',
        help='Log events as JSON lines on stderr.',
    )

    subparsers = parser.add_subparsers(dest='command')

    analyze_parser = subparsers.add_parser(
        'analyze',
        help='Run the health checks and print a report.',
        formatter_class=RichHelpFormatter,
    )
    analyze_parser.add_argument(
        '--analyzer',
        action='append',
        metavar='ID',
        default=[],
        help='Run only this analyzer (repeatable).',
    )
    analyze_parser.add_argument(
        '--category',
        action='append',
        default=[],
        help='Run only analyzers in this category (repeatable).',
    )
    analyze_parser.add_argument(
        '--format',
        choices=['console', 'json'],
        default=None,
        help='Report format (default: report.format from larahealth.toml).',
    )
    analyze_parser.add_argument(
        '--output',
        metavar='FILE',
        default=None,
        help='Write the report to FILE, relative to the project root.',
    )
    analyze_parser.add_argument(
        '--baseline',
        action='store_true',
        help='Ignore issues recorded in the baseline file.',
    )
    analyze_parser.add_argument(
        '--ci',
        action='store_true',
        help='Skip analyzers that need live services.',
    )

    baseline_parser = subparsers.add_parser(
        'baseline',
        help='Record current issues so only new ones fail.',
        formatter_class=RichHelpFormatter,
    )
    baseline_parser.add_argument(
        '--output',
        metavar='FILE',
        default=None,
        help='Baseline path (default: baseline_file from larahealth.toml).',
    )
    baseline_parser.add_argument(
        '--merge',
        action='store_true',
        help='Add to the existing baseline instead of replacing it.',
    )
    baseline_parser.add_argument(
        '--ci',
        action='store_true',
        help='Only run analyzers that work in CI.',
    )

    subparsers.add_parser(
        'list',
        help='Show every analyzer and whether it is enabled.',
        formatter_class=RichHelpFormatter,
    )

    explain_parser = subparsers.add_parser(
        'explain',
        help='Explain an error code.',
        formatter_class=RichHelpFormatter,
    )
    explain_parser.add_argument('code', help='Error code, e.g. LH-BASELINE-INVALID.')

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose, quiet=args.quiet, json_log=args.json_log)

    try:
        command = args.command
        if command == 'analyze':
            return _cmd_analyze(args)
        if command == 'baseline':
            return _cmd_baseline(args)
        if command == 'list':
            return _cmd_list(args)
        if command == 'explain':
            return _cmd_explain(args)

        parser.print_help()  # noqa: T201 - CLI output
        print(  # noqa: T201 - CLI output
            f'\n{parser.prog}: error: please provide a command',
            file=sys.stderr,
        )
        return 2

    except LaraHealthError as exc:
        render_error(exc)
        return 1
    except KeyboardInterrupt:
        logger.info('interrupted')
        return 130


def _main() -> None:
    """Wrapper for pyproject.toml [project.scripts] entry point."""
    sys.exit(main())


__all__ = [
    'build_parser',
    'compute_exit_code',
    'main',
]

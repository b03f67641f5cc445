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

"""Structured error system for larahealth.

Every error has a unique ``LH-NAMED-KEY`` code, a human-readable message,
and an optional hint with a suggested fix.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ErrorCode           │ A named ID like "LH-PHPSTAN-TIMEOUT". Easy to │
    │                     │ grep for and to paste into an issue tracker.  │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ErrorInfo           │ Code + message + hint, bundled together.      │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ LaraHealthError     │ The exception the tool raises when it cannot  │
    │                     │ do its job (bad config, unknown analyzer).    │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ explain()           │ Look up a code and print what it means.       │
    └─────────────────────┴────────────────────────────────────────────────┘

Findings about the *Laravel project* are never errors: they are issues
inside an :class:`~larahealth.models.AnalysisResult`. This module is only
for failures of the tool itself.

Code categories::

    LH-CONFIG-*       larahealth.toml problems
    LH-LARAVEL-*      Project root / config dump problems
    LH-PHPSTAN-*      PHPStan invocation problems
    LH-BASELINE-*     Baseline file problems
    LH-ANALYZER-*     Unknown analyzer or category selections
    LH-REPORT-*       Report output problems

Usage::

    from larahealth.errors import E, LaraHealthError

    raise LaraHealthError(
        code=E.ANALYZER_UNKNOWN,
        message="No analyzer with id 'phpstn'",
        hint="Did you mean 'phpstan'?",
    )
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

from rich.console import Console
from rich.markup import escape as rich_escape


class ErrorCode(str, Enum):
    """All larahealth diagnostic codes."""

    # Tool configuration
    CONFIG_UNREADABLE = 'LH-CONFIG-UNREADABLE'
    CONFIG_INVALID_KEY = 'LH-CONFIG-INVALID-KEY'
    CONFIG_INVALID_VALUE = 'LH-CONFIG-INVALID-VALUE'

    # Laravel project
    LARAVEL_ROOT_NOT_FOUND = 'LH-LARAVEL-ROOT-NOT-FOUND'
    LARAVEL_CONFIG_UNREADABLE = 'LH-LARAVEL-CONFIG-UNREADABLE'

    # PHPStan
    PHPSTAN_NOT_FOUND = 'LH-PHPSTAN-NOT-FOUND'
    PHPSTAN_FAILED = 'LH-PHPSTAN-FAILED'
    PHPSTAN_TIMEOUT = 'LH-PHPSTAN-TIMEOUT'

    # Baseline
    BASELINE_INVALID = 'LH-BASELINE-INVALID'
    BASELINE_WRITE_FAILED = 'LH-BASELINE-WRITE-FAILED'

    # Selection
    ANALYZER_UNKNOWN = 'LH-ANALYZER-UNKNOWN'
    ANALYZER_CATEGORY_UNKNOWN = 'LH-ANALYZER-CATEGORY-UNKNOWN'

    # Output
    REPORT_WRITE_FAILED = 'LH-REPORT-WRITE-FAILED'


# Short alias for convenience.
E = ErrorCode


@dataclass(frozen=True)
class ErrorInfo:
    """Metadata for a single error code.

    Attributes:
        code: The ``LH-NAMED-KEY`` error code.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    code: ErrorCode
    message: str
    hint: str = ''


class LaraHealthError(Exception):
    """Base exception for all larahealth errors.

    Args:
        code: The error code from :class:`ErrorCode`.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    def __init__(self, code: ErrorCode, message: str, hint: str = '') -> None:
        """Initialize with an error code, message, and optional hint."""
        self.info = ErrorInfo(code=code, message=message, hint=hint)
        super().__init__(f'[{code.value}] {message}')

    @property
    def code(self) -> ErrorCode:
        """The error code."""
        return self.info.code

    @property
    def hint(self) -> str:
        """Suggestion for fixing this error, or empty string."""
        return self.info.hint


ERRORS: dict[ErrorCode, ErrorInfo] = {
    E.CONFIG_UNREADABLE: ErrorInfo(
        code=E.CONFIG_UNREADABLE,
        message='larahealth.toml could not be read or is not valid TOML.',
        hint='Fix the syntax error at the reported line, or pass --config with another file.',
    ),
    E.CONFIG_INVALID_KEY: ErrorInfo(
        code=E.CONFIG_INVALID_KEY,
        message='larahealth.toml contains a key larahealth does not know.',
        hint='Check the spelling; the error message suggests the closest valid key.',
    ),
    E.CONFIG_INVALID_VALUE: ErrorInfo(
        code=E.CONFIG_INVALID_VALUE,
        message='A larahealth.toml key has a value of the wrong type or out of range.',
        hint='The error message names the key and the values it accepts.',
    ),
    E.LARAVEL_ROOT_NOT_FOUND: ErrorInfo(
        code=E.LARAVEL_ROOT_NOT_FOUND,
        message='The given path does not look like a Laravel project (no artisan file).',
        hint='Pass --path pointing at the directory that contains artisan.',
    ),
    E.LARAVEL_CONFIG_UNREADABLE: ErrorInfo(
        code=E.LARAVEL_CONFIG_UNREADABLE,
        message='Could not read the Laravel configuration.',
        hint=(
            'Dump it with `php artisan tinker --execute "echo json_encode(config()->all());" > config.json`'
            ' and pass --config-dump config.json.'
        ),
    ),
    E.PHPSTAN_NOT_FOUND: ErrorInfo(
        code=E.PHPSTAN_NOT_FOUND,
        message='vendor/bin/phpstan does not exist.',
        hint='Run `composer require --dev phpstan/phpstan` in the project.',
    ),
    E.PHPSTAN_FAILED: ErrorInfo(
        code=E.PHPSTAN_FAILED,
        message='PHPStan exited with an error and printed no results.',
        hint='Run the command shown in the error by hand to see the full output.',
    ),
    E.PHPSTAN_TIMEOUT: ErrorInfo(
        code=E.PHPSTAN_TIMEOUT,
        message='PHPStan did not finish within the configured timeout.',
        hint='Raise `timeout` in larahealth.toml or narrow `phpstan.paths`.',
    ),
    E.BASELINE_INVALID: ErrorInfo(
        code=E.BASELINE_INVALID,
        message='The baseline file is not valid JSON.',
        hint="Regenerate it with 'larahealth baseline'.",
    ),
    E.BASELINE_WRITE_FAILED: ErrorInfo(
        code=E.BASELINE_WRITE_FAILED,
        message='The baseline file could not be written.',
        hint='Check that the directory exists and is writable.',
    ),
    E.ANALYZER_UNKNOWN: ErrorInfo(
        code=E.ANALYZER_UNKNOWN,
        message='No analyzer is registered under that id.',
        hint="Run 'larahealth list' to see every analyzer id.",
    ),
    E.ANALYZER_CATEGORY_UNKNOWN: ErrorInfo(
        code=E.ANALYZER_CATEGORY_UNKNOWN,
        message='No analyzer category has that name.',
        hint='Use one of security, performance, reliability, code_quality or best_practices.',
    ),
    E.REPORT_WRITE_FAILED: ErrorInfo(
        code=E.REPORT_WRITE_FAILED,
        message='The report file given with --output could not be written.',
        hint='Check that the path is writable; it is resolved against the project root.',
    ),
}


def explain(code: str) -> str | None:
    """Return a detailed explanation for an error code.

    Args:
        code: The error code string, e.g. ``"LH-PHPSTAN-TIMEOUT"``.

    Returns:
        A formatted explanation string, or ``None`` if the code is unknown.
    """
    try:
        error_code = ErrorCode(code)
    except ValueError:
        return None

    info = ERRORS[error_code]
    lines = [f'{code}: {info.message}']
    if info.hint:
        lines.append(f'  Hint: {info.hint}')
    return '\n'.join(lines)


def render_error(exc: LaraHealthError, *, file: TextIO | None = None) -> None:
    """Render an error in Rust-compiler style.

    Output format::

        error[LH-PHPSTAN-TIMEOUT]: PHPStan did not finish after 300s
          |
          = hint: Raise `timeout` in larahealth.toml.

    Args:
        exc: The error to render.
        file: Output stream (defaults to ``sys.stderr``).
    """
    out = file or sys.stderr

    if out.isatty():
        console = Console(file=out, highlight=False)
        msg = rich_escape(exc.info.message)
        console.print(
            f'[bold red]error[/bold red][bold red]\\[{exc.code.value}][/bold red][bold]: {msg}[/bold]',
        )
        if exc.hint:
            console.print('  [dim]|[/dim]')
            console.print(f'  [dim]=[/dim] [cyan]hint[/cyan]: {rich_escape(exc.hint)}')
        console.print()
    else:
        print(f'error[{exc.code.value}]: {exc.info.message}', file=out)  # noqa: T201 - CLI output
        if exc.hint:
            print('  |', file=out)  # noqa: T201 - CLI output
            print(f'  = hint: {exc.hint}', file=out)  # noqa: T201 - CLI output
        print(file=out)  # noqa: T201 - CLI output


__all__ = [
    'E',
    'ERRORS',
    'ErrorCode',
    'ErrorInfo',
    'LaraHealthError',
    'explain',
    'render_error',
]

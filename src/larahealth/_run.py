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

"""Subprocess wrapper for the PHP tooling larahealth drives.

Every external tool (``vendor/bin/phpstan``, ``php artisan``,
``composer``) is invoked through :func:`run_command`, which gives:

- Structured logging of every invocation and its duration.
- A timeout that surfaces as :class:`TimeoutExpired`.
- Output decoded leniently, so a stray non-UTF-8 byte from PHP never
  crashes an analyzer.

Analyzers take a :data:`CommandRunner` instead of calling
:func:`run_command` directly so tests can hand in a fake that returns
canned output.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ run_command         │ Runs one PHP tool and waits for it.           │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ CommandResult       │ The receipt: exit code, output, duration.     │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ CommandRunner       │ Anything shaped like run_command. Tests pass  │
    │                     │ a fake so no real PHP tooling is needed.      │
    └─────────────────────┴────────────────────────────────────────────────┘
"""

from __future__ import annotations

import subprocess  # noqa: S404 - running PHP tooling is the purpose of this module
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from larahealth.logging import get_logger

log = get_logger('larahealth.run')

# Matches the default `timeout` setting in larahealth.toml.
DEFAULT_TIMEOUT_SECONDS = 300

_LOGGED_OUTPUT_CHARS = 500


@dataclass(frozen=True)
class CommandResult:
    """Result of one tool invocation.

    Attributes:
        command: The argv that was executed.
        return_code: Process exit code (0 = success).
        stdout: Captured standard output.
        stderr: Captured standard error.
        duration: Wall-clock duration in milliseconds.
    """

    command: list[str]
    return_code: int
    stdout: str = ''
    stderr: str = ''
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        """Whether the command exited with status 0."""
        return self.return_code == 0

    @property
    def command_str(self) -> str:
        """The command as a single shell-style string."""
        return ' '.join(self.command)

    @property
    def failure_text(self) -> str:
        """Best description of a failure: stderr, else stdout, else the exit code."""
        return self.stderr.strip() or self.stdout.strip() or f'exit code {self.return_code}'


def run_command(
    cmd: list[str],
    *,
    cwd: Path | str | None = None,
    timeout: int = DEFAULT_TIMEOUT_SECONDS,
) -> CommandResult:
    """Run ``cmd`` and capture its output.

    A non-zero exit is not an error here: PHPStan and ``artisan``
    report findings through their exit code, so callers inspect
    :attr:`CommandResult.ok` themselves.

    Args:
        cmd: Command and arguments as a list of strings.
        cwd: Working directory, normally the Laravel project root.
        timeout: Maximum seconds to wait before killing the process.

    Raises:
        TimeoutExpired: If the command exceeds ``timeout``.
        FileNotFoundError: If the executable (``php``, ``composer``) is
            not installed.
    """
    cmd_str = ' '.join(cmd)
    log.debug('run_command', cmd=cmd_str, cwd=str(cwd or '.'), timeout=timeout)

    start = time.monotonic()
    try:
        result = subprocess.run(  # noqa: S603 -- commands are built from fixed argv lists
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding='utf-8',
            errors='replace',
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        duration = (time.monotonic() - start) * 1000
        log.error('command_timeout', cmd=cmd_str, timeout=timeout, duration=duration)
        raise

    duration = (time.monotonic() - start) * 1000
    if result.returncode != 0:
        log.debug(
            'command_failed',
            cmd=cmd_str,
            return_code=result.returncode,
            stderr=result.stderr[:_LOGGED_OUTPUT_CHARS],
            duration=duration,
        )
    else:
        log.debug('command_ok', cmd=cmd_str, duration=duration)

    return CommandResult(
        command=cmd,
        return_code=result.returncode,
        stdout=result.stdout,
        stderr=result.stderr,
        duration=duration,
    )


CommandRunner = Callable[..., CommandResult]
"""Signature of :func:`run_command`; injected into analyzers."""

# Re-exported so callers catch it without importing subprocess.
TimeoutExpired = subprocess.TimeoutExpired

__all__ = [
    'CommandResult',
    'CommandRunner',
    'DEFAULT_TIMEOUT_SECONDS',
    'TimeoutExpired',
    'run_command',
]

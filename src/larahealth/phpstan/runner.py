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

"""Run PHPStan and expose its findings as a flat, filterable list.

PHPStan's ``--error-format=json`` output looks like::

    {
      "totals": {"errors": 0, "file_errors": 2},
      "files": {
        "/app/app/Models/User.php": {
          "errors": 2,
          "messages": [
            {"message": "Call to an undefined method ...", "line": 42, "ignorable": true},
            ...
          ]
        }
      },
      "errors": []
    }

:class:`PHPStanRunner` flattens ``files → messages`` into
:class:`PHPStanIssue` records and offers the three filters the analyzers
use: wildcard patterns (``*`` matches anything), regular expressions and
plain substrings.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ analyze()           │ Run vendor/bin/phpstan once and remember the   │
    │                     │ JSON it printed.                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ issues()            │ Every message as (file, line, message), minus  │
    │                     │ the known false positives.                     │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ wildcard_match      │ "Class * not found*" matches "Class Foo not    │
    │                     │ found.". Only * is special.                   │
    └─────────────────────┴────────────────────────────────────────────────┘
"""

from __future__ import annotations

import functools
import json
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from larahealth._run import CommandRunner, TimeoutExpired, run_command
from larahealth.errors import E, LaraHealthError
from larahealth.logging import get_logger

log = get_logger(__name__)

PHPSTAN_BINARY = 'vendor/bin/phpstan'

# Messages PHPStan reports that are wrong for Laravel projects.
FALSE_POSITIVE_PATTERNS: tuple[re.Pattern[str], ...] = (
    # CarbonPeriod implements IteratorAggregate; older PHPStan misses it.
    re.compile(r'Argument of an invalid type Carbon\\CarbonPeriod supplied for foreach'),
)


@dataclass(frozen=True)
class PHPStanIssue:
    """One PHPStan message.

    Attributes:
        file: File path as reported by PHPStan (usually absolute).
        line: 1-based line, or 0 when PHPStan gave none.
        message: The message text.
    """

    file: str
    line: int
    message: str


@functools.lru_cache(maxsize=512)
def _wildcard_regex(pattern: str) -> re.Pattern[str]:
    parts = (re.escape(chunk) for chunk in pattern.split('*'))
    return re.compile('.*'.join(parts), re.DOTALL)


def wildcard_match(pattern: str, text: str) -> bool:
    """Return True if ``text`` matches ``pattern`` in full.

    ``*`` matches any run of characters (including none); every other
    character is literal. An exact string is a match without any regex
    work.
    """
    if pattern == text:
        return True
    return _wildcard_regex(pattern).fullmatch(text) is not None


def build_options(options: Mapping[str, Any]) -> list[str]:  # noqa: ANN401 - option values
    """Turn ``{'error-format': 'json', 'no-progress': True}`` into CLI flags.

    ``True`` emits a bare ``--name``; ``False`` and ``None`` drop the
    option; anything else becomes ``--name=value``.
    """
    flags: list[str] = []
    for name, value in options.items():
        if value is None or value is False:
            continue
        if value is True:
            flags.append(f'--{name}')
        else:
            flags.append(f'--{name}={value}')
    return flags


def _coerce_line(value: object) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return 0


class PHPStanRunner:
    """Invoke ``vendor/bin/phpstan`` for one project and query its output.

    Args:
        base_path: Laravel project root (PHPStan runs with this cwd).
        runner: Command runner; tests inject a fake.
        timeout: Seconds before PHPStan is killed.
    """

    def __init__(
        self,
        base_path: Path,
        *,
        runner: CommandRunner = run_command,
        timeout: int = 300,
    ) -> None:
        """Prepare a runner; nothing is executed until :meth:`analyze`."""
        self.base_path = base_path
        self._runner = runner
        self._timeout = timeout
        self._result: dict[str, Any] = {'files': {}}  # noqa: ANN401

    @property
    def binary(self) -> Path:
        """Path of the PHPStan executable inside the project."""
        return self.base_path / PHPSTAN_BINARY

    def is_available(self) -> bool:
        """Return True if ``vendor/bin/phpstan`` exists."""
        return self.binary.is_file()

    def analyze(
        self,
        paths: str | Iterable[str],
        level: int = 5,
        config_path: str | None = None,
    ) -> PHPStanRunner:
        """Run PHPStan over ``paths`` at ``level``.

        PHPStan exits with status 1 whenever it finds errors, so a non-zero
        exit is only treated as a failure when nothing was printed on
        stdout.

        Raises:
            LaraHealthError: ``LH-PHPSTAN-NOT-FOUND``, ``LH-PHPSTAN-TIMEOUT``
                or ``LH-PHPSTAN-FAILED``.
        """
        targets = [paths] if isinstance(paths, str) else list(paths)
        options: dict[str, Any] = {  # noqa: ANN401
            'level': level,
            'error-format': 'json',
            'no-progress': True,
            'no-interaction': True,
        }
        cmd = [PHPSTAN_BINARY, 'analyse', *build_options(options)]
        if config_path:
            cmd += ['-c', config_path]
        cmd += targets

        try:
            result = self._runner(cmd, cwd=self.base_path, timeout=self._timeout)
        except TimeoutExpired as exc:
            raise LaraHealthError(
                code=E.PHPSTAN_TIMEOUT,
                message=f'PHPStan did not finish within {self._timeout}s',
                hint='Raise `timeout` in larahealth.toml or narrow `phpstan.paths`.',
            ) from exc
        except FileNotFoundError as exc:
            raise LaraHealthError(
                code=E.PHPSTAN_NOT_FOUND,
                message=f'Could not find PHPStan: {exc}',
                hint='Run `composer require --dev phpstan/phpstan` in the project.',
            ) from exc
        except OSError as exc:
            raise LaraHealthError(
                code=E.PHPSTAN_FAILED,
                message=f'Could not start PHPStan: {exc}',
            ) from exc

        stdout = result.stdout.strip()
        if not stdout and not result.ok:
            raise LaraHealthError(
                code=E.PHPSTAN_FAILED,
                message=f'PHPStan exited with {result.return_code}: {result.stderr.strip()[:500]}',
                hint='Run the command by hand to see the full output: ' + ' '.join(cmd),
            )

        self._result = self._decode(stdout)
        log.debug(
            'phpstan_finished',
            paths=targets,
            level=level,
            return_code=result.return_code,
            files=len(self._result.get('files') or {}),
        )
        return self

    @staticmethod
    def _decode(stdout: str) -> dict[str, Any]:  # noqa: ANN401
        if not stdout:
            return {'files': {}}
        try:
            data = json.loads(stdout)
        except json.JSONDecodeError:
            log.warning('phpstan_output_unparsable', preview=stdout[:200])
            return {'files': {}}
        if not isinstance(data, dict):
            return {'files': {}}
        return data

    def raw(self) -> dict[str, Any]:  # noqa: ANN401
        """Return the decoded PHPStan JSON from the last run."""
        return self._result

    def issues(self) -> list[PHPStanIssue]:
        """Return every message from the last run, false positives removed."""
        files = self._result.get('files')
        if not isinstance(files, Mapping):
            return []
        collected: list[PHPStanIssue] = []
        for file_path, file_data in files.items():
            if not isinstance(file_data, Mapping):
                continue
            messages = file_data.get('messages')
            if not isinstance(messages, list):
                continue
            for entry in messages:
                if not isinstance(entry, Mapping):
                    continue
                message = entry.get('message')
                if not isinstance(message, str):
                    continue
                if any(p.search(message) for p in FALSE_POSITIVE_PATTERNS):
                    continue
                collected.append(PHPStanIssue(str(file_path), _coerce_line(entry.get('line')), message))
        return collected

    def filter_by_pattern(self, patterns: str | Iterable[str]) -> list[PHPStanIssue]:
        """Issues whose message matches any wildcard pattern."""
        pattern_list = [patterns] if isinstance(patterns, str) else list(patterns)
        return [i for i in self.issues() if any(wildcard_match(p, i.message) for p in pattern_list)]

    def filter_by_regex(self, regex: str | re.Pattern[str]) -> list[PHPStanIssue]:
        """Issues whose message matches ``regex`` anywhere."""
        compiled = re.compile(regex) if isinstance(regex, str) else regex
        return [i for i in self.issues() if compiled.search(i.message)]

    def filter_by_text(self, text: str) -> list[PHPStanIssue]:
        """Issues whose message contains ``text``."""
        return [i for i in self.issues() if text in i.message]

    # Aliases matching the PHP helper names.
    parse_analysis = filter_by_text
    match = filter_by_pattern
    preg_match = filter_by_regex


__all__ = [
    'FALSE_POSITIVE_PATTERNS',
    'PHPSTAN_BINARY',
    'PHPStanIssue',
    'PHPStanRunner',
    'build_options',
    'wildcard_match',
]

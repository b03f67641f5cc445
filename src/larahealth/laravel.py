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

"""Read-only view of a Laravel project.

Laravel configuration is PHP code and cannot be evaluated from Python.
larahealth therefore works from a JSON dump of ``config()->all()``,
either a file the user produced or one obtained on the fly through
``php artisan tinker``. Source line numbers for issue locations come from
scanning the ``config/*.php`` files for ``'key' =>`` entries.

Usage::

    from larahealth.laravel import ProjectContext, load_laravel_config

    config = load_laravel_config(root, dump_path=root / 'config.json')
    ctx = ProjectContext(base_path=root, config=config, settings=settings)
    ctx.config.get('cache.stores.redis.prefix')
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from larahealth._run import CommandResult, CommandRunner, TimeoutExpired, run_command
from larahealth.config import Settings
from larahealth.errors import E, LaraHealthError
from larahealth.logging import get_logger

logger = get_logger(__name__)

_MISSING = object()

DUMP_CONFIG_CODE = 'echo json_encode(config()->all());'


def run_tinker(
    base_path: Path,
    code: str,
    *,
    runner: CommandRunner = run_command,
    timeout: int = 60,
) -> CommandResult:
    """Run PHP ``code`` inside the application through ``php artisan tinker``."""
    return runner(['php', 'artisan', 'tinker', '--execute', code], cwd=base_path, timeout=timeout)


class ConfigRepository:
    """Dot-notation access to a decoded Laravel config tree."""

    def __init__(self, items: Mapping[str, Any] | None = None) -> None:  # noqa: ANN401
        """Wrap ``items`` (the decoded ``config()->all()`` output)."""
        self._items: dict[str, Any] = dict(items or {})  # noqa: ANN401

    def _lookup(self, key: str) -> Any:  # noqa: ANN401
        node: Any = self._items  # noqa: ANN401
        for segment in key.split('.'):
            if isinstance(node, Mapping) and segment in node:
                node = node[segment]
            elif isinstance(node, list) and segment.isdigit() and int(segment) < len(node):
                node = node[int(segment)]
            else:
                return _MISSING
        return node

    def get(self, key: str, default: Any = None) -> Any:  # noqa: ANN401
        """Return the value at dotted ``key`` or ``default``."""
        value = self._lookup(key)
        return default if value is _MISSING else value

    def has(self, key: str) -> bool:
        """Return True if dotted ``key`` exists (even if null)."""
        return self._lookup(key) is not _MISSING

    def all(self) -> dict[str, Any]:  # noqa: ANN401
        """Return the whole tree."""
        return self._items


def load_laravel_config(
    base_path: Path,
    *,
    dump_path: Path | None = None,
    runner: CommandRunner = run_command,
    timeout: int = 60,
) -> ConfigRepository:
    """Load the Laravel configuration as a :class:`ConfigRepository`.

    Args:
        base_path: Laravel project root.
        dump_path: JSON file with the ``config()->all()`` output. When
            ``None``, ``php artisan tinker`` is run in ``base_path``.
        runner: Command runner used for ``artisan``.
        timeout: Seconds allowed for ``artisan``.

    Raises:
        LaraHealthError: ``LH-LARAVEL-CONFIG-UNREADABLE`` if the dump
            cannot be read or decoded, or artisan fails.
    """
    if dump_path is not None:
        try:
            text = dump_path.read_text(encoding='utf-8')
        except OSError as exc:
            raise LaraHealthError(
                code=E.LARAVEL_CONFIG_UNREADABLE,
                message=f'Failed to read config dump {dump_path}: {exc}',
            ) from exc
        source = str(dump_path)
    else:
        if not (base_path / 'artisan').is_file():
            raise LaraHealthError(
                code=E.LARAVEL_ROOT_NOT_FOUND,
                message=f'No artisan file in {base_path}',
                hint='Pass --path pointing at the Laravel project root, or --config-dump.',
            )
        try:
            result = run_tinker(base_path, DUMP_CONFIG_CODE, runner=runner, timeout=timeout)
        except (OSError, TimeoutExpired) as exc:
            raise LaraHealthError(
                code=E.LARAVEL_CONFIG_UNREADABLE,
                message=f'Failed to run php artisan tinker: {exc}',
            ) from exc
        if not result.ok:
            raise LaraHealthError(
                code=E.LARAVEL_CONFIG_UNREADABLE,
                message=f'php artisan tinker exited with {result.return_code}: {result.stderr.strip()[:300]}',
            )
        text = result.stdout
        source = 'php artisan tinker'

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise LaraHealthError(
            code=E.LARAVEL_CONFIG_UNREADABLE,
            message=f'Laravel config from {source} is not valid JSON: {exc}',
        ) from exc
    if not isinstance(data, dict):
        raise LaraHealthError(
            code=E.LARAVEL_CONFIG_UNREADABLE,
            message=f'Laravel config from {source} must be a JSON object, got {type(data).__name__}',
        )
    logger.debug('laravel_config_loaded', source=source, sections=len(data))
    return ConfigRepository(data)


def _key_pattern(key: str) -> re.Pattern[str]:
    return re.compile(r"""['"]""" + re.escape(key) + r"""['"]\s*=>""")


def find_key_line(content: str, key: str, *, parent: str = '', start: int = 0) -> int | None:
    """Find the 1-based line of ``'key' =>`` in a PHP config array.

    Args:
        content: File content.
        key: Array key to look for.
        parent: When given, only search after the ``'parent' =>`` line.
        start: 0-based line index to start searching from.

    Returns:
        The line number, or ``None`` if the key is not present.
    """
    lines = content.splitlines()
    if parent:
        parent_line = find_key_line(content, parent, start=start)
        if parent_line is None:
            return None
        start = parent_line
    pattern = _key_pattern(key)
    for i in range(start, len(lines)):
        if pattern.search(lines[i]):
            return i + 1
    return None


def find_nested_key_line(content: str, parent: str, key: str, nested: str | None = None) -> int | None:
    """Find ``parent => [ key => [ nested => ...`` and return the deepest line found.

    Returns ``None`` when ``key`` cannot be found under ``parent``. If
    ``nested`` is given but missing, the ``key`` line is returned.
    """
    key_line = find_key_line(content, key, parent=parent)
    if key_line is None or nested is None:
        return key_line
    nested_line = find_key_line(content, nested, start=key_line)
    return nested_line if nested_line is not None else key_line


def config_file_line(
    config_file: Path,
    key: str,
    *,
    parent: str = '',
    nested: str | None = None,
) -> int:
    """Line of ``key`` in ``config_file``, falling back to 1."""
    try:
        content = config_file.read_text(encoding='utf-8')
    except OSError:
        return 1
    if nested is not None and parent:
        line = find_nested_key_line(content, parent, key, nested)
    else:
        line = find_key_line(content, key, parent=parent)
    return line or 1


@dataclass
class ProjectContext:
    """Everything an analyzer may look at.

    Attributes:
        base_path: Laravel project root.
        config: The Laravel configuration.
        settings: larahealth's own settings.
        runner: Command runner for external tools.
        is_windows: Whether the host is Windows (some analyzers skip).
        memo: Per-run cache shared by analyzers (e.g. PHPStan output,
            so thirteen PHPStan analyzers cost one PHPStan run).
    """

    base_path: Path
    config: ConfigRepository = field(default_factory=ConfigRepository)
    settings: Settings = field(default_factory=Settings)
    runner: CommandRunner = run_command
    is_windows: bool = False
    memo: dict[Any, Any] = field(default_factory=dict)  # noqa: ANN401

    @property
    def environment(self) -> str:
        """Current app environment (settings override, then ``app.env``)."""
        if self.settings.environment:
            return self.settings.environment
        env = self.config.get('app.env')
        return env if isinstance(env, str) and env else 'production'

    @property
    def is_ci(self) -> bool:
        """Whether analyzers should behave as in CI."""
        return self.settings.ci

    def path(self, *parts: str) -> Path:
        """Join ``parts`` onto the project root."""
        return self.base_path.joinpath(*parts)

    def config_path(self, name: str) -> Path:
        """Path of ``config/<name>.php``."""
        return self.base_path / 'config' / f'{name}.php'

    def relative(self, path: Path | str) -> str:
        """Return ``path`` relative to the project root when possible."""
        p = Path(path)
        try:
            return p.relative_to(self.base_path).as_posix()
        except ValueError:
            return p.as_posix()


__all__ = [
    'ConfigRepository',
    'ProjectContext',
    'config_file_line',
    'find_key_line',
    'find_nested_key_line',
    'load_laravel_config',
    'run_tinker',
]

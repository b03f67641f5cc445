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

"""Configuration reader for larahealth.

Reads ``larahealth.toml`` from the Laravel project root and returns a
validated :class:`Settings` dataclass. A missing file means defaults.

This is the *tool's* configuration. The Laravel application's own
configuration (``config('cache.default')`` and friends) is read by
:mod:`larahealth.laravel`.

Validation Pipeline::

    larahealth.toml
    ┌──────────────────┐
    │ fail_onn = ...   │  ← typo!
    └────────┬─────────┘
             │
             ▼
    ┌──────────────────┐     ┌──────────────────────────────┐
    │ 1. Unknown key   │────→│ LH-CONFIG-INVALID-KEY:       │
    │    detection     │     │ hint: "Did you mean          │
    └────────┬─────────┘     │       'fail_on'?"            │
             │               └──────────────────────────────┘
             ▼
    ┌──────────────────┐     ┌──────────────────────────────┐
    │ 2. Type check    │────→│ LH-CONFIG-INVALID-VALUE:     │
    │    each value    │     │ 'timeout' must be int        │
    └────────┬─────────┘     └──────────────────────────────┘
             │
             ▼
    ┌──────────────────┐     ┌──────────────────────────────┐
    │ 3. Value check   │────→│ LH-CONFIG-INVALID-VALUE:     │
    │    (enums, etc.) │     │ fail_on must be one of ...   │
    └────────┬─────────┘     └──────────────────────────────┘
             │
             ▼
    ┌──────────────────┐
    │ Settings()       │  ← frozen dataclass, ready to use
    └──────────────────┘

Supported keys in ``larahealth.toml``::

    enabled              = true
    timeout              = 300          # seconds for external tools
    skip_env_specific    = false        # skip analyzers tied to an environment
    environment          = "production" # overrides app.env from the dump
    ci                   = false
    disabled_analyzers   = ["cache-status"]
    dont_report          = ["custom-error-pages"]
    paths                = ["app", "config", "database", "routes"]
    excluded_paths       = ["vendor/*", "node_modules/*"]
    database_connections = ["mysql", "reporting"]
    queue_minimum_buffer = 10
    baseline_file        = ".larahealth-baseline.json"
    fail_on              = "critical"   # never|critical|high|medium|low
    fail_threshold       = 80           # minimum score, optional

    [categories]
    reliability = true
    security    = false

    [phpstan]
    level               = 5
    paths               = ["app"]
    categories          = []            # empty = all
    disabled_categories = ["dead-code"]

    [report]
    format               = "console"    # console|json
    output_file          = ""
    show_recommendations = true
    max_issues_per_check = 5

    [ignore_errors]
    phpstan = ["Call to an undefined method App\\\\Legacy::*"]
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomlkit
import tomlkit.exceptions

from larahealth.errors import E, LaraHealthError
from larahealth.logging import get_logger
from larahealth.models import Category

logger = get_logger(__name__)

CONFIG_FILENAME = 'larahealth.toml'

VALID_KEYS: frozenset[str] = frozenset({
    'enabled',
    'timeout',
    'skip_env_specific',
    'environment',
    'ci',
    'categories',
    'disabled_analyzers',
    'dont_report',
    'paths',
    'excluded_paths',
    'database_connections',
    'queue_minimum_buffer',
    'phpstan',
    'report',
    'baseline_file',
    'ignore_errors',
    'fail_on',
    'fail_threshold',
})

VALID_PHPSTAN_KEYS: frozenset[str] = frozenset({
    'level',
    'paths',
    'categories',
    'disabled_categories',
})

VALID_REPORT_KEYS: frozenset[str] = frozenset({
    'format',
    'output_file',
    'show_recommendations',
    'max_issues_per_check',
})

ALLOWED_FAIL_ON: frozenset[str] = frozenset({'never', 'critical', 'high', 'medium', 'low'})
ALLOWED_FORMATS: frozenset[str] = frozenset({'console', 'json'})

DEFAULT_PATHS: tuple[str, ...] = ('app', 'config', 'database', 'routes')
DEFAULT_EXCLUDED_PATHS: tuple[str, ...] = ('vendor/*', 'node_modules/*', 'storage/*', 'bootstrap/cache/*')


@dataclass(frozen=True)
class PHPStanSettings:
    """The ``[phpstan]`` table.

    Attributes:
        level: Rule level passed as ``--level``. Accepts an int or a
            numeric string in the file.
        paths: Paths to analyse. Empty means "use the global ``paths``".
        categories: Issue categories to report. Empty means all.
        disabled_categories: Categories removed after ``categories``.
    """

    level: int = 5
    paths: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    disabled_categories: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ReportSettings:
    """The ``[report]`` table."""

    format: str = 'console'
    output_file: str = ''
    show_recommendations: bool = True
    max_issues_per_check: int = 5


@dataclass(frozen=True)
class Settings:
    """Validated larahealth settings.

    Attributes:
        enabled: Master switch; ``analyze`` exits 0 immediately if off.
        timeout: Seconds allowed for each external tool invocation.
        skip_env_specific: Skip analyzers restricted to particular
            environments instead of evaluating their environment gate.
        environment: Overrides ``app.env`` from the Laravel config.
        ci: Run as if inside CI (analyzers with ``run_in_ci = False``
            are skipped).
        categories: Category name → enabled flag. Missing means enabled.
        disabled_analyzers: Analyzer ids never run.
        dont_report: Analyzer ids that run but never fail the build.
        paths: Project paths analyzers look at.
        excluded_paths: Glob patterns that are never analyzed.
        database_connections: Extra connections checked by
            ``database-status`` besides the default one.
        queue_minimum_buffer: Seconds ``retry_after`` must exceed the
            worker timeout by.
        phpstan: The ``[phpstan]`` table.
        report: The ``[report]`` table.
        baseline_file: Where ``larahealth baseline`` writes.
        ignore_errors: Analyzer id → issue message patterns to drop. ``*``
            matches any run of characters; a pattern without ``*`` must
            equal the whole message.
        fail_on: Lowest severity that fails ``analyze``.
        fail_threshold: Minimum score; below it ``analyze`` fails.
        config_path: The file that was loaded, if any.
    """

    enabled: bool = True
    timeout: int = 300
    skip_env_specific: bool = False
    environment: str = ''
    ci: bool = False
    categories: dict[str, bool] = field(default_factory=dict)
    disabled_analyzers: list[str] = field(default_factory=list)
    dont_report: list[str] = field(default_factory=list)
    paths: list[str] = field(default_factory=lambda: list(DEFAULT_PATHS))
    excluded_paths: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDED_PATHS))
    database_connections: list[str] = field(default_factory=list)
    queue_minimum_buffer: int = 10
    phpstan: PHPStanSettings = field(default_factory=PHPStanSettings)
    report: ReportSettings = field(default_factory=ReportSettings)
    baseline_file: str = '.larahealth-baseline.json'
    ignore_errors: dict[str, list[str]] = field(default_factory=dict)
    fail_on: str = 'critical'
    fail_threshold: int | None = None
    config_path: Path | None = None

    def category_enabled(self, category: Category) -> bool:
        """Return whether analyzers in ``category`` should run."""
        return self.categories.get(category.value, True)


_GLOBAL_TYPE_MAP: dict[str, type | tuple[type, ...]] = {
    'enabled': bool,
    'timeout': int,
    'skip_env_specific': bool,
    'environment': str,
    'ci': bool,
    'categories': dict,
    'disabled_analyzers': list,
    'dont_report': list,
    'paths': list,
    'excluded_paths': list,
    'database_connections': list,
    'queue_minimum_buffer': int,
    'phpstan': dict,
    'report': dict,
    'baseline_file': str,
    'ignore_errors': dict,
    'fail_on': str,
    'fail_threshold': int,
}

_PHPSTAN_TYPE_MAP: dict[str, type | tuple[type, ...]] = {
    'level': (int, str),
    'paths': list,
    'categories': list,
    'disabled_categories': list,
}

_REPORT_TYPE_MAP: dict[str, type | tuple[type, ...]] = {
    'format': str,
    'output_file': str,
    'show_recommendations': bool,
    'max_issues_per_check': int,
}

_STRING_LIST_KEYS: frozenset[str] = frozenset({
    'disabled_analyzers',
    'dont_report',
    'paths',
    'excluded_paths',
    'database_connections',
})


def _check_keys(raw: dict[str, Any], valid: frozenset[str], context: str) -> None:  # noqa: ANN401
    """Raise on the first key not in ``valid``, with a typo suggestion."""
    for key in raw:
        if key in valid:
            continue
        suggestion = difflib.get_close_matches(key, valid, n=1, cutoff=0.6)
        hint = f"Did you mean '{suggestion[0]}'?" if suggestion else 'Check the larahealth docs for valid keys.'
        raise LaraHealthError(
            code=E.CONFIG_INVALID_KEY,
            message=f"Unknown key '{key}' in {context}",
            hint=hint,
        )


def _validate_value_type(
    key: str,
    value: Any,  # noqa: ANN401 - dynamic config values
    type_map: dict[str, type | tuple[type, ...]],
    *,
    context: str = CONFIG_FILENAME,
) -> None:
    """Raise if a config value has the wrong type."""
    expected = type_map.get(key)
    if expected is None:
        return
    # bool is a subclass of int; `timeout = true` is still a mistake.
    wrong_bool = isinstance(value, bool) and expected in (int, (int, str))
    if wrong_bool or not isinstance(value, expected):
        if isinstance(expected, type):
            type_name = expected.__name__
        else:
            type_name = ' or '.join(t.__name__ for t in expected)
        raise LaraHealthError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'{key}' must be {type_name}, got {type(value).__name__}",
            hint=f'Check the value of {key} in {context}.',
        )


def _validate_string_list(key: str, items: list[object], context: str) -> list[str]:
    """Raise if any item in a list is not a string."""
    for item in items:
        if not isinstance(item, str):
            raise LaraHealthError(
                code=E.CONFIG_INVALID_VALUE,
                message=f"'{key}' items must be strings, got {type(item).__name__}: {item!r}",
                hint=f'Each {key} entry should be a string in {context}.',
            )
    return [str(item) for item in items]


def _validate_choice(key: str, value: str, allowed: frozenset[str]) -> None:
    """Raise if ``value`` is not one of ``allowed``."""
    if value not in allowed:
        raise LaraHealthError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"{key} must be one of {sorted(allowed)}, got '{value}'",
        )


def _parse_level(value: int | str) -> int:
    """Accept ``5`` or ``"5"`` for the PHPStan level."""
    if isinstance(value, int):
        return value
    if value.strip().isdigit():
        return int(value.strip())
    raise LaraHealthError(
        code=E.CONFIG_INVALID_VALUE,
        message=f"phpstan.level must be numeric, got '{value}'",
        hint='Use a level between 0 and 9 (or "max" via a phpstan.neon file).',
    )


def _parse_phpstan(raw: dict[str, Any]) -> PHPStanSettings:  # noqa: ANN401
    context = f'[phpstan] in {CONFIG_FILENAME}'
    _check_keys(raw, VALID_PHPSTAN_KEYS, context)
    for key, value in raw.items():
        _validate_value_type(key, value, _PHPSTAN_TYPE_MAP, context=context)
    return PHPStanSettings(
        level=_parse_level(raw.get('level', 5)),
        paths=_validate_string_list('phpstan.paths', list(raw.get('paths', [])), context),
        categories=_validate_string_list('phpstan.categories', list(raw.get('categories', [])), context),
        disabled_categories=_validate_string_list(
            'phpstan.disabled_categories', list(raw.get('disabled_categories', [])), context
        ),
    )


def _parse_report(raw: dict[str, Any]) -> ReportSettings:  # noqa: ANN401
    context = f'[report] in {CONFIG_FILENAME}'
    _check_keys(raw, VALID_REPORT_KEYS, context)
    for key, value in raw.items():
        _validate_value_type(key, value, _REPORT_TYPE_MAP, context=context)
    if 'format' in raw:
        _validate_choice('report.format', raw['format'], ALLOWED_FORMATS)
    return ReportSettings(**raw)


def _parse_categories(raw: dict[str, Any]) -> dict[str, bool]:  # noqa: ANN401
    valid = frozenset(c.value for c in Category)
    _check_keys(raw, valid, f'[categories] in {CONFIG_FILENAME}')
    for key, value in raw.items():
        if not isinstance(value, bool):
            raise LaraHealthError(
                code=E.CONFIG_INVALID_VALUE,
                message=f"categories.{key} must be bool, got {type(value).__name__}",
            )
    return dict(raw)


def _parse_ignore_errors(raw: dict[str, Any]) -> dict[str, list[str]]:  # noqa: ANN401
    result: dict[str, list[str]] = {}
    for analyzer_id, messages in raw.items():
        if not isinstance(messages, list):
            raise LaraHealthError(
                code=E.CONFIG_INVALID_VALUE,
                message=f"ignore_errors.{analyzer_id} must be a list of message patterns, got {type(messages).__name__}",
            )
        result[analyzer_id] = _validate_string_list(f'ignore_errors.{analyzer_id}', messages, CONFIG_FILENAME)
    return result


def load_config(project_root: Path) -> Settings:
    """Load and validate ``larahealth.toml``.

    Args:
        project_root: The Laravel project root.

    Returns:
        A validated :class:`Settings`. Defaults when the file is absent.

    Raises:
        LaraHealthError: If the file cannot be read or holds invalid config.
    """
    config_path = project_root / CONFIG_FILENAME

    if not config_path.is_file():
        logger.debug('no_larahealth_config', path=str(config_path))
        return Settings()

    try:
        text = config_path.read_text(encoding='utf-8')
    except OSError as exc:
        raise LaraHealthError(
            code=E.CONFIG_UNREADABLE,
            message=f'Failed to read {config_path}: {exc}',
        ) from exc

    try:
        doc = tomlkit.parse(text)
    except tomlkit.exceptions.TOMLKitError as exc:
        raise LaraHealthError(
            code=E.CONFIG_UNREADABLE,
            message=f'Failed to parse {config_path}: {exc}',
        ) from exc

    # unwrap() turns tomlkit containers into plain dicts/lists/ints.
    raw: dict[str, Any] = doc.unwrap()  # noqa: ANN401
    if not raw:
        return Settings(config_path=config_path)

    _check_keys(raw, VALID_KEYS, CONFIG_FILENAME)
    for key, value in raw.items():
        _validate_value_type(key, value, _GLOBAL_TYPE_MAP)

    kwargs: dict[str, Any] = {}  # noqa: ANN401
    for key, value in raw.items():
        if key in _STRING_LIST_KEYS:
            kwargs[key] = _validate_string_list(key, value, CONFIG_FILENAME)
        elif key == 'phpstan':
            kwargs[key] = _parse_phpstan(value)
        elif key == 'report':
            kwargs[key] = _parse_report(value)
        elif key == 'categories':
            kwargs[key] = _parse_categories(value)
        elif key == 'ignore_errors':
            kwargs[key] = _parse_ignore_errors(value)
        else:
            kwargs[key] = value

    if 'fail_on' in kwargs:
        _validate_choice('fail_on', kwargs['fail_on'], ALLOWED_FAIL_ON)
    threshold = kwargs.get('fail_threshold')
    if threshold is not None and not 0 <= threshold <= 100:
        raise LaraHealthError(
            code=E.CONFIG_INVALID_VALUE,
            message=f'fail_threshold must be between 0 and 100, got {threshold}',
        )

    logger.debug('larahealth_config_loaded', path=str(config_path), keys=sorted(raw))
    return Settings(**kwargs, config_path=config_path)


__all__ = [
    'CONFIG_FILENAME',
    'PHPStanSettings',
    'ReportSettings',
    'Settings',
    'load_config',
]

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

"""Cache analyzers: prefix configuration and a live store round-trip."""

from __future__ import annotations

import json
import re
import secrets
from typing import Any, Protocol

from larahealth.analyzers._base import Analyzer
from larahealth.laravel import ProjectContext, config_file_line, find_key_line, run_tinker
from larahealth.logging import get_logger
from larahealth.models import AnalysisResult, AnalyzerMetadata, Category, Location, Severity
from larahealth.support.sanitize import sanitize_error_message

logger = get_logger(__name__)

SHARED_CACHE_DRIVERS: tuple[str, ...] = ('redis', 'memcached', 'dynamodb', 'database')

GENERIC_PREFIXES: frozenset[str] = frozenset({
    'laravel_cache',
    'laravel_database_cache',
    'laravel',
    'app',
    'cache',
    'my_app',
    'myapp',
    'test',
    'demo',
    'example',
})

EPHEMERAL_DRIVERS: frozenset[str] = frozenset({'array', 'null'})

_SLUG_SEPARATOR = re.compile(r'[^a-z0-9]+')


def _slug(value: str) -> str:
    return _SLUG_SEPARATOR.sub('_', value.lower()).strip('_')


def is_generic_prefix(prefix: str) -> bool:
    """Return True if ``prefix`` is likely shared with other applications."""
    raw = prefix.strip()
    if raw.lower() in GENERIC_PREFIXES or _slug(raw) in GENERIC_PREFIXES:
        return True
    if len(raw) <= 2:
        return True
    if re.fullmatch(r'[\s_]+', prefix):
        return True
    return raw.isdigit()


class CachePrefixAnalyzer(Analyzer):
    """Shared cache servers need an application-specific key prefix."""

    metadata = AnalyzerMetadata(
        id='cache-prefix-configuration',
        name='Cache Prefix Configuration Analyzer',
        description=(
            'Ensures cache prefix is set to avoid collisions with other applications sharing cache servers'
        ),
        category=Category.RELIABILITY,
        severity=Severity.HIGH,
        tags=('cache', 'configuration', 'reliability', 'multi-tenant'),
        time_to_fix=5,
    )

    def _default_store(self) -> str:
        store = self.ctx.config.get('cache.default')
        return store if isinstance(store, str) else 'unknown'

    def _default_driver(self) -> str:
        store = self._default_store()
        driver = self.ctx.config.get(f'cache.stores.{store}.driver')
        return driver if isinstance(driver, str) else store

    def _store_prefix(self) -> str:
        prefix = self.ctx.config.get(f'cache.stores.{self._default_store()}.prefix')
        return prefix if isinstance(prefix, str) else ''

    def effective_prefix(self) -> str:
        """Store-specific prefix, else ``cache.prefix``, else empty."""
        store_prefix = self._store_prefix()
        if store_prefix:
            return store_prefix
        prefix = self.ctx.config.get('cache.prefix')
        return prefix if isinstance(prefix, str) else ''

    def should_run(self) -> bool:
        """Only shared drivers can collide."""
        return super().should_run() and self._default_driver() in SHARED_CACHE_DRIVERS

    def skip_reason(self) -> str:
        """Name the current driver when it is not a shared one."""
        if not super().should_run():
            return super().skip_reason()
        return (
            f'Not using shared cache driver (current: {self._default_driver()}, '
            f'requires: {"/".join(SHARED_CACHE_DRIVERS)})'
        )

    def _prefix_line(self) -> int:
        config_file = self.ctx.config_path('cache')
        if self._store_prefix():
            return config_file_line(config_file, self._default_store(), parent='stores', nested='prefix')
        return config_file_line(config_file, 'prefix')

    def run_analysis(self) -> AnalysisResult:
        """Flag an empty or generic prefix."""
        config_file = self.ctx.config_path('cache')
        prefix = self.effective_prefix()
        line = self._prefix_line()
        driver = self._default_driver()

        if prefix == '':
            return self.result_by_severity(
                'Cache prefix is not configured',
                [
                    self.issue(
                        'Cache prefix is empty or not set',
                        file=config_file,
                        line=line,
                        recommendation=(
                            'Set a unique cache prefix in config/cache.php to avoid collisions with other '
                            'applications sharing the same cache server. Use your application name or a '
                            'unique identifier.'
                        ),
                        cache_driver=driver,
                        prefix=prefix,
                    )
                ],
            )

        if is_generic_prefix(prefix):
            app_name = self.ctx.config.get('app.name')
            return self.result_by_severity(
                'Cache prefix is too generic',
                [
                    self.issue(
                        f"Cache prefix '{prefix}' is too generic and may cause collisions",
                        file=config_file,
                        line=line,
                        recommendation=(
                            f"The cache prefix '{prefix}' is generic and may collide with other applications "
                            'using the same cache server. Use a unique prefix based on your application name.'
                        ),
                        cache_driver=driver,
                        prefix=prefix,
                        app_name=app_name if isinstance(app_name, str) else None,
                    )
                ],
            )

        return self.passed('Cache prefix is properly configured')


class CacheProbe(Protocol):
    """Minimal cache store API used by :class:`CacheStatusAnalyzer`."""

    def round_trip(self, key: str, value: str, ttl: int) -> Any:  # noqa: ANN401 - whatever the store returns
        """Put ``value`` under ``key``, read it back, then forget ``key``.

        All three steps must hit the same store instance: per-process
        stores such as ``array`` lose the value between processes.

        Returns:
            The value read back (``None`` if the store lost it).

        Raises:
            Exception: The store could not be written or read.
        """
        ...


class CacheProbeError(RuntimeError):
    """The cache store could not be reached."""


def _php_string(value: str) -> str:
    return "'" + value.replace('\\', '\\\\').replace("'", "\\'") + "'"


_ROUND_TRIP_CODE = """\
try {{
    Cache::put({key}, {value}, {ttl});
    $value = Cache::get({key});
    try {{ Cache::forget({key}); }} catch (\\Throwable $e) {{}}
    echo json_encode(['value' => $value, 'error' => null]);
}} catch (\\Throwable $e) {{
    try {{ Cache::forget({key}); }} catch (\\Throwable $ignored) {{}}
    echo json_encode(['value' => null, 'error' => $e->getMessage(), 'class' => get_class($e)]);
}}
"""


class ArtisanCacheProbe:
    """Round-trip a key through the default cache store in one ``php artisan tinker`` run.

    The script prints ``{"value": ..., "error": ...}``; a non-null
    ``error`` is raised as :class:`CacheProbeError`.
    """

    def __init__(self, ctx: ProjectContext, *, timeout: int = 60) -> None:
        """Bind the probe to the project in ``ctx``."""
        self._ctx = ctx
        self._timeout = timeout

    def round_trip(self, key: str, value: str, ttl: int) -> Any:  # noqa: ANN401
        """Put, get and forget ``key`` inside one PHP process."""
        code = _ROUND_TRIP_CODE.format(key=_php_string(key), value=_php_string(value), ttl=int(ttl))
        result = run_tinker(self._ctx.base_path, code, runner=self._ctx.runner, timeout=self._timeout)
        if not result.ok:
            raise CacheProbeError(result.failure_text)
        out = result.stdout.strip()
        try:
            data = json.loads(out)
        except json.JSONDecodeError as exc:
            raise CacheProbeError(f'Unexpected tinker output: {out[:100]}') from exc
        if not isinstance(data, dict):
            raise CacheProbeError(f'Unexpected tinker output: {out[:100]}')
        if data.get('error') is not None:
            error_class = data.get('class')
            prefix = f'{error_class}: ' if isinstance(error_class, str) and error_class else ''
            raise CacheProbeError(f'{prefix}{data["error"]}')
        return data.get('value')


class CacheStatusAnalyzer(Analyzer):
    """Write, read back and delete a random key in the default store."""

    metadata = AnalyzerMetadata(
        id='cache-status',
        name='Cache Status Analyzer',
        description='Ensures the application cache is working properly and can store/retrieve values',
        category=Category.RELIABILITY,
        severity=Severity.CRITICAL,
        tags=('cache', 'infrastructure', 'reliability', 'availability'),
        docs_url='https://laravel.com/docs/cache',
        time_to_fix=15,
    )
    run_in_ci = False

    def __init__(self, ctx: ProjectContext, probe: CacheProbe | None = None) -> None:
        """Use ``probe``, or talk to the store through artisan."""
        super().__init__(ctx)
        self.probe: CacheProbe = probe if probe is not None else ArtisanCacheProbe(ctx)

    def _driver(self) -> str:
        driver = self.ctx.config.get('cache.default')
        return driver if isinstance(driver, str) else 'unknown'

    def _location(self) -> Location:
        config_file = self.ctx.config_path('cache')
        try:
            line = find_key_line(config_file.read_text(encoding='utf-8'), 'default')
        except OSError:
            line = None
        return Location(self.relative(config_file), line)

    def run_analysis(self) -> AnalysisResult:
        """Round-trip a value, then warn about ephemeral drivers in production."""
        key = f'larahealth:cache:test:{secrets.token_hex(5)}'
        value = secrets.token_hex(10)
        location = self._location()

        try:
            retrieved = self.probe.round_trip(key, value, 60)
        except Exception as exc:  # noqa: BLE001 - any store failure is the finding
            logger.debug('cache_probe_failed', driver=self._driver(), error=sanitize_error_message(str(exc)))
            return self.failed(
                'Cache is not accessible or not functioning properly',
                [
                    self.issue(
                        'Cache connection/operation failed',
                        file=location.file,
                        line=location.line,
                        severity=Severity.CRITICAL,
                        recommendation=(
                            'Check your cache configuration and ensure the cache server is running. '
                            f'Error: {sanitize_error_message(str(exc))}. Common issues: 1) Redis/Memcached '
                            'server not running, 2) Incorrect host/port configuration, 3) Authentication '
                            'issues, 4) Firewall blocking connection.'
                        ),
                        cache_driver=self._driver(),
                        exception=type(exc).__name__,
                        error=sanitize_error_message(str(exc)),
                    )
                ],
            )

        if retrieved != value:
            return self.failed(
                'Cache storage is not working correctly - values are not being retrieved as expected',
                [
                    self.issue(
                        'Cache write/read test failed',
                        file=location.file,
                        line=location.line,
                        severity=Severity.CRITICAL,
                        recommendation=(
                            'Check your cache configuration in config/cache.php. Ensure the cache driver is '
                            'properly configured and the cache server (Redis, Memcached, etc.) is running and '
                            'accessible. Test connection to cache server manually.'
                        ),
                        cache_driver=self._driver(),
                        expected=value,
                        received=retrieved,
                    )
                ],
            )

        driver = self._driver()
        if driver.lower() in EPHEMERAL_DRIVERS and self.ctx.environment.lower() in ('production', 'staging'):
            return self.warning(
                f"Cache driver '{driver}' is ephemeral and won't persist across requests",
                [
                    self.issue(
                        f"Cache driver '{driver}' does not persist data across requests",
                        file=location.file,
                        line=location.line,
                        severity=Severity.MEDIUM,
                        recommendation=(
                            f"The '{driver}' cache driver stores data in memory and does not persist across "
                            'requests or application restarts. Configure a persistent cache driver (redis, '
                            'memcached, database, dynamodb, or file) in config/cache.php for production '
                            'environments.'
                        ),
                        cache_driver=driver,
                        environment=self.ctx.environment,
                    )
                ],
            )

        return self.passed('Cache is working correctly')


__all__ = [
    'ArtisanCacheProbe',
    'CachePrefixAnalyzer',
    'CacheProbe',
    'CacheProbeError',
    'CacheStatusAnalyzer',
    'is_generic_prefix',
]

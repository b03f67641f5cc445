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

"""Queue ``retry_after`` vs. worker timeout.

If a job is still running when ``retry_after`` elapses, the queue hands
it to a second worker. The worker timeout plus a safety buffer must
therefore stay below ``retry_after``::

    0s ──────── timeout ──── buffer ──┤ retry_after
                 (60s, or Horizon's     (default 90s)
                  largest timeout)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from larahealth.analyzers._base import Analyzer
from larahealth.laravel import config_file_line
from larahealth.models import AnalysisResult, AnalyzerMetadata, Category, Issue, Severity

DEFAULT_RETRY_AFTER = 90
DEFAULT_WORKER_TIMEOUT = 60
DEFAULT_MINIMUM_BUFFER = 10

# Drivers without retry_after semantics.
_SKIPPED_DRIVERS = frozenset({'sync', 'sqs'})


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value.strip()))
        except ValueError:
            return None
    return None


def collect_values(data: Any, key: str) -> list[int]:  # noqa: ANN401 - arbitrary config tree
    """All numeric ``key`` values found anywhere below ``data``."""
    values: list[int] = []
    items = data.values() if isinstance(data, Mapping) else data if isinstance(data, list) else ()
    for item in items:
        if isinstance(item, Mapping):
            number = _as_int(item.get(key))
            if number is not None:
                values.append(number)
        if isinstance(item, (Mapping, list)):
            values.extend(collect_values(item, key))
    return values


class QueueTimeoutAnalyzer(Analyzer):
    """Catch queue connections that may process a job twice."""

    metadata = AnalyzerMetadata(
        id='queue-timeout-configuration',
        name='Queue Timeout Configuration Analyzer',
        description=(
            'Ensures queue timeout and retry_after values are properly configured to prevent job duplication'
        ),
        category=Category.RELIABILITY,
        severity=Severity.HIGH,
        tags=('queue', 'configuration', 'reliability', 'jobs'),
        docs_url='https://laravel.com/docs/queues#job-expirations-and-timeouts',
        time_to_fix=10,
    )

    @property
    def minimum_buffer(self) -> int:
        """Configured buffer in seconds (positive), else the default."""
        buffer = self.ctx.settings.queue_minimum_buffer
        return buffer if buffer > 0 else DEFAULT_MINIMUM_BUFFER

    def worker_timeout(self, driver: str) -> int:
        """60s, or for redis the largest timeout in the Horizon config."""
        if driver != 'redis':
            return DEFAULT_WORKER_TIMEOUT
        timeouts = collect_values(self.ctx.config.get('horizon.defaults', {}), 'timeout')
        timeouts += collect_values(self.ctx.config.get('horizon.environments', {}), 'timeout')
        return max(timeouts) if timeouts else DEFAULT_WORKER_TIMEOUT

    @staticmethod
    def recommendation(connection: str, timeout: int, retry_after: int, buffer: int) -> str:
        """Explain the conflict and the two ways out."""
        return (
            f'The queue timeout value must be at least {buffer} seconds shorter than the retry_after value to '
            f"prevent duplicate job processing. Your '{connection}' queue connection has timeout={timeout} "
            f'seconds and retry_after={retry_after} seconds (buffer: {retry_after - timeout} seconds). This '
            'configuration can cause jobs to be processed twice or the queue worker to crash. Solution: Either '
            f'increase retry_after to at least {timeout + buffer} seconds, or decrease the timeout to at most '
            f'{retry_after - buffer} seconds. Recommended: retry_after = timeout + {buffer} seconds (buffer).'
        )

    def run_analysis(self) -> AnalysisResult:
        """Check every connection whose driver has ``retry_after``."""
        queue_config = self.ctx.config.get('queue')
        if not isinstance(queue_config, Mapping) or not queue_config:
            return self.warning('Unable to read queue configuration')
        connections = queue_config.get('connections', {})
        if not isinstance(connections, Mapping):
            return self.warning('Unable to read queue connections')

        config_file = self.ctx.config_path('queue')
        buffer = self.minimum_buffer
        issues: list[Issue] = []
        for name, connection in connections.items():
            if not isinstance(connection, Mapping):
                continue
            driver = connection.get('driver', '')
            if not isinstance(driver, str) or driver in _SKIPPED_DRIVERS:
                continue
            retry_after = _as_int(connection.get('retry_after', DEFAULT_RETRY_AFTER))
            if retry_after is None:
                retry_after = DEFAULT_RETRY_AFTER
            timeout = self.worker_timeout(driver)
            if timeout + buffer < retry_after:
                continue
            issues.append(
                self.issue(
                    f"Queue connection '{name}' has improper timeout configuration",
                    file=config_file,
                    line=config_file_line(config_file, name, parent='connections'),
                    severity=Severity.HIGH,
                    recommendation=self.recommendation(name, timeout, retry_after, buffer),
                    connection=name,
                    driver=driver,
                    timeout=timeout,
                    retry_after=retry_after,
                    minimum_buffer=buffer,
                    actual_buffer=retry_after - timeout,
                )
            )

        if not issues:
            return self.passed('Queue timeout configurations are correct')
        return self.failed(f'Found {len(issues)} queue configuration issue(s)', issues)


__all__ = ['QueueTimeoutAnalyzer', 'collect_values']

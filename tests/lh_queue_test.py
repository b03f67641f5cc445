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

"""Tests for the queue timeout analyzer."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from larahealth.analyzers.queue import QueueTimeoutAnalyzer, collect_values
from larahealth.config import Settings
from larahealth.models import Status
from tests._fakes import make_context, write

_QUEUE_PHP = """<?php

return [
    'default' => env('QUEUE_CONNECTION', 'database'),

    'connections' => [
        'sync' => [
            'driver' => 'sync',
        ],
        'redis' => [
            'driver' => 'redis',
            'retry_after' => 90,
        ],
    ],
];
"""


def _queue(connections: dict[str, Any], **extra: Any) -> dict[str, Any]:  # noqa: ANN401
    return {'queue': {'default': 'database', 'connections': connections}, **extra}


class TestCollectValues:
    """Tests for collect_values()."""

    def test_nested(self) -> None:
        """Values are found at any depth, numeric strings included."""
        data = {
            'production': {'supervisor-1': {'timeout': 120}, 'supervisor-2': {'timeout': '300'}},
            'local': {'supervisor-1': {'timeout': True, 'tries': 3}},
        }
        assert sorted(collect_values(data, 'timeout')) == [120, 300]

    def test_non_container(self) -> None:
        """Scalars yield nothing."""
        assert collect_values(5, 'timeout') == []


class TestQueueTimeoutAnalyzer:
    """Tests for queue-timeout-configuration."""

    def test_defaults_are_fine(self, tmp_path: Path) -> None:
        """60s timeout + 10s buffer < 90s retry_after."""
        ctx = make_context(tmp_path, config=_queue({'database': {'driver': 'database', 'retry_after': 90}}))
        result = QueueTimeoutAnalyzer(ctx).analyze()
        assert result.status is Status.PASSED
        assert result.message == 'Queue timeout configurations are correct'

    def test_retry_after_too_short(self, tmp_path: Path) -> None:
        """retry_after at or below timeout + buffer fails."""
        ctx = make_context(tmp_path, config=_queue({'database': {'driver': 'database', 'retry_after': 70}}))
        result = QueueTimeoutAnalyzer(ctx).analyze()
        assert result.status is Status.FAILED
        assert result.message == 'Found 1 queue configuration issue(s)'
        issue = result.issues[0]
        assert issue.message == "Queue connection 'database' has improper timeout configuration"
        assert issue.metadata['actual_buffer'] == 10
        assert 'increase retry_after to at least 70 seconds' in issue.recommendation
        assert 'decrease the timeout to at most 60 seconds' in issue.recommendation

    def test_horizon_timeout(self, tmp_path: Path) -> None:
        """Redis connections use the largest Horizon timeout."""
        write(tmp_path, 'config/queue.php', _QUEUE_PHP)
        config = _queue(
            {'sync': {'driver': 'sync'}, 'redis': {'driver': 'redis', 'retry_after': 90}},
            horizon={
                'defaults': {'supervisor-1': {'timeout': 60}},
                'environments': {'production': {'supervisor-1': {'timeout': 300}}},
            },
        )
        result = QueueTimeoutAnalyzer(make_context(tmp_path, config=config)).analyze()
        assert result.status is Status.FAILED
        assert result.issues[0].metadata['timeout'] == 300
        assert str(result.issues[0].location) == 'config/queue.php:10'

    def test_skipped_drivers(self, tmp_path: Path) -> None:
        """sync and sqs have no retry_after."""
        config = _queue({'sync': {'driver': 'sync'}, 'sqs': {'driver': 'sqs', 'retry_after': 1}})
        assert QueueTimeoutAnalyzer(make_context(tmp_path, config=config)).analyze().status is Status.PASSED

    def test_custom_buffer(self, tmp_path: Path) -> None:
        """queue_minimum_buffer widens the required gap."""
        config = _queue({'database': {'driver': 'database', 'retry_after': 90}})
        ctx = make_context(tmp_path, config=config, settings=Settings(queue_minimum_buffer=30))
        assert QueueTimeoutAnalyzer(ctx).analyze().status is Status.FAILED

    def test_non_positive_buffer_uses_default(self, tmp_path: Path) -> None:
        """A zero buffer falls back to the default."""
        ctx = make_context(tmp_path, settings=Settings(queue_minimum_buffer=0))
        assert QueueTimeoutAnalyzer(ctx).minimum_buffer == 10

    def test_missing_config(self, tmp_path: Path) -> None:
        """No queue config is a warning."""
        result = QueueTimeoutAnalyzer(make_context(tmp_path)).analyze()
        assert result.status is Status.WARNING
        assert result.message == 'Unable to read queue configuration'

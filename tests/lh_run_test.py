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

"""Tests for larahealth._run."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from larahealth._run import CommandResult, TimeoutExpired, run_command


class TestCommandResult:
    """Tests for CommandResult."""

    def test_ok(self) -> None:
        """Only exit status 0 is ok."""
        assert CommandResult(command=['x'], return_code=0).ok
        assert not CommandResult(command=['x'], return_code=1).ok

    def test_command_str(self) -> None:
        """The argv is joined with spaces."""
        assert CommandResult(command=['php', 'artisan', 'up'], return_code=0).command_str == 'php artisan up'

    def test_failure_text(self) -> None:
        """stderr wins, then stdout, then the exit code."""
        assert CommandResult(['x'], 1, stdout='out', stderr=' err \n').failure_text == 'err'
        assert CommandResult(['x'], 1, stdout='out\n').failure_text == 'out'
        assert CommandResult(['x'], 255).failure_text == 'exit code 255'


class TestRunCommand:
    """Tests for run_command() against the running interpreter."""

    def test_captures_output(self, tmp_path: Path) -> None:
        """Stdout is captured as text."""
        result = run_command([sys.executable, '-c', 'print("hello")'], cwd=tmp_path)
        assert result.ok
        assert result.stdout.strip() == 'hello'
        assert result.duration >= 0

    def test_nonzero_exit(self) -> None:
        """A failing command returns its exit code."""
        result = run_command([sys.executable, '-c', 'import sys; sys.exit(3)'])
        assert result.return_code == 3

    def test_timeout_raises(self) -> None:
        """A command that outlives its timeout raises TimeoutExpired."""
        with pytest.raises(TimeoutExpired):
            run_command([sys.executable, '-c', 'import time; time.sleep(5)'], timeout=1)

    def test_missing_binary(self) -> None:
        """A missing executable surfaces as FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            run_command(['larahealth-no-such-binary-xyz'])

    def test_nonzero_exit_keeps_output(self) -> None:
        """Failures are returned, not raised, with their stderr."""
        result = run_command([sys.executable, '-c', 'import sys; sys.stderr.write("boom"); sys.exit(1)'])
        assert not result.ok
        assert result.stderr == 'boom'

    def test_invalid_utf8_is_replaced(self) -> None:
        """Undecodable bytes do not raise."""
        result = run_command([sys.executable, '-c', 'import sys; sys.stdout.buffer.write(b"ok\\xff")'])
        assert result.stdout.startswith('ok')
        assert '\ufffd' in result.stdout

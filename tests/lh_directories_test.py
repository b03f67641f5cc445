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

"""Tests for the filesystem analyzers."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from larahealth.analyzers.directories import (
    CRITICAL_DIRECTORIES,
    CustomErrorPageAnalyzer,
    DirectoryWritePermissionsAnalyzer,
    MaintenanceModeAnalyzer,
    permissions,
)
from larahealth.models import Severity, Status
from tests._fakes import make_context, write


def _make_directories(root: Path) -> None:
    for directory, _purpose, _severity in CRITICAL_DIRECTORIES:
        (root / directory).mkdir(parents=True, exist_ok=True)


class TestDirectoryWritePermissions:
    """Tests for directory-write-permissions."""

    def test_all_present(self, tmp_path: Path) -> None:
        """Writable directories pass."""
        _make_directories(tmp_path)
        result = DirectoryWritePermissionsAnalyzer(make_context(tmp_path)).analyze()
        assert result.status is Status.PASSED
        assert result.message == 'All critical directories have proper write permissions'

    def test_missing_directories(self, tmp_path: Path) -> None:
        """Each missing directory is one issue with its own severity."""
        _make_directories(tmp_path)
        (tmp_path / 'storage' / 'logs').rmdir()
        (tmp_path / 'bootstrap' / 'cache').rmdir()
        result = DirectoryWritePermissionsAnalyzer(make_context(tmp_path)).analyze()
        assert result.status is Status.FAILED
        assert result.message == 'Found 2 directory permission issue(s)'
        assert [i.message for i in result.issues] == [
            "Directory 'storage/logs' does not exist",
            "Directory 'bootstrap/cache' does not exist",
        ]
        assert all(i.severity is Severity.CRITICAL for i in result.issues)
        assert result.issues[0].metadata['exists'] is False

    @pytest.mark.skipif(os.name == 'nt' or (hasattr(os, 'geteuid') and os.geteuid() == 0), reason='needs POSIX non-root')
    def test_not_writable(self, tmp_path: Path) -> None:
        """Read-only directories are reported with their mode."""
        _make_directories(tmp_path)
        logs = tmp_path / 'storage' / 'logs'
        logs.chmod(0o555)
        try:
            result = DirectoryWritePermissionsAnalyzer(make_context(tmp_path)).analyze()
        finally:
            logs.chmod(0o755)
        assert result.issues[0].message == "Directory 'storage/logs' is not writable"
        assert result.issues[0].metadata['permissions'] == '0555'

    def test_skipped_on_windows(self, tmp_path: Path) -> None:
        """The check is POSIX only."""
        result = DirectoryWritePermissionsAnalyzer(make_context(tmp_path, is_windows=True)).analyze()
        assert result.status is Status.SKIPPED

    def test_permissions_helper(self, tmp_path: Path) -> None:
        """Mode bits are formatted as four octal digits."""
        path = write(tmp_path, 'f.txt')
        path.chmod(0o640)
        assert permissions(path) == '0640'
        assert permissions(tmp_path / 'missing') == 'unknown'


class TestMaintenanceMode:
    """Tests for maintenance-mode-status."""

    def test_up(self, tmp_path: Path) -> None:
        """No marker file means the app is up."""
        result = MaintenanceModeAnalyzer(make_context(tmp_path)).analyze()
        assert result.status is Status.PASSED
        assert result.message == 'Application is not in maintenance mode'

    def test_down(self, tmp_path: Path) -> None:
        """The marker file means maintenance mode."""
        write(tmp_path, 'storage/framework/down', '{}')
        result = MaintenanceModeAnalyzer(make_context(tmp_path)).analyze()
        assert result.status is Status.FAILED
        assert result.message == 'Application is in maintenance mode'
        assert str(result.issues[0].location) == 'storage/framework/down:1'


class TestCustomErrorPages:
    """Tests for custom-error-pages."""

    def test_all_pages(self, tmp_path: Path) -> None:
        """404, 500 and 503 pages pass."""
        for code in (404, 500, 503):
            write(tmp_path, f'resources/views/errors/{code}.blade.php', '<h1>oops</h1>')
        result = CustomErrorPageAnalyzer(make_context(tmp_path)).analyze()
        assert result.status is Status.PASSED
        assert result.message == 'Custom error pages are configured'

    def test_some_missing(self, tmp_path: Path) -> None:
        """Each missing page is a low-severity issue."""
        write(tmp_path, 'resources/views/errors/404.blade.php')
        result = CustomErrorPageAnalyzer(make_context(tmp_path)).analyze()
        assert result.status is Status.WARNING
        assert result.message == 'Missing 2 custom error page(s)'
        assert [i.metadata['error_code'] for i in result.issues] == [500, 503]
        assert all(i.severity is Severity.LOW for i in result.issues)

    def test_no_directory(self, tmp_path: Path) -> None:
        """No errors directory at all is one issue."""
        result = CustomErrorPageAnalyzer(make_context(tmp_path)).analyze()
        assert result.status is Status.WARNING
        assert result.message == 'No custom error pages found'
        assert len(result.issues) == 1

    def test_skipped_locally(self, tmp_path: Path) -> None:
        """Local and testing environments are skipped."""
        ctx = make_context(tmp_path, config={'app': {'env': 'local'}})
        assert CustomErrorPageAnalyzer(ctx).analyze().status is Status.SKIPPED

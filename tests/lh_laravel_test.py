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

"""Tests for larahealth.laravel."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from larahealth._run import TimeoutExpired
from larahealth.config import Settings
from larahealth.errors import E, LaraHealthError
from larahealth.laravel import (
    ConfigRepository,
    ProjectContext,
    config_file_line,
    find_key_line,
    find_nested_key_line,
    load_laravel_config,
)
from tests._fakes import FakeRunner, fail, ok, write

_CACHE_PHP = """<?php

return [
    'default' => env('CACHE_STORE', 'file'),

    'stores' => [
        'file' => [
            'driver' => 'file',
        ],
        'redis' => [
            'driver' => 'redis',
            'connection' => 'cache',
        ],
    ],

    'prefix' => env('CACHE_PREFIX', 'laravel_cache_'),
];
"""


class TestConfigRepository:
    """Tests for dot-notation access."""

    def test_get_nested(self) -> None:
        """Dotted keys walk into nested mappings."""
        repo = ConfigRepository({'cache': {'stores': {'redis': {'driver': 'redis'}}}})
        assert repo.get('cache.stores.redis.driver') == 'redis'

    def test_get_default(self) -> None:
        """Missing keys return the default."""
        assert ConfigRepository({}).get('app.env', 'production') == 'production'

    def test_get_list_index(self) -> None:
        """Numeric segments index into lists."""
        assert ConfigRepository({'a': {'b': ['x', 'y']}}).get('a.b.1') == 'y'

    def test_has_null_value(self) -> None:
        """A key holding null still exists."""
        repo = ConfigRepository({'cache': {'prefix': None}})
        assert repo.has('cache.prefix')
        assert repo.get('cache.prefix', 'fallback') is None
        assert not repo.has('cache.missing')

    def test_all(self) -> None:
        """all() returns the whole tree."""
        assert ConfigRepository({'app': {}}).all() == {'app': {}}


class TestLoadLaravelConfig:
    """Tests for load_laravel_config()."""

    def test_from_dump(self, tmp_path: Path) -> None:
        """A JSON dump file is read directly."""
        dump = write(tmp_path, 'config.json', json.dumps({'app': {'env': 'local'}}))
        assert load_laravel_config(tmp_path, dump_path=dump).get('app.env') == 'local'

    def test_dump_missing(self, tmp_path: Path) -> None:
        """An unreadable dump is reported."""
        with pytest.raises(LaraHealthError) as excinfo:
            load_laravel_config(tmp_path, dump_path=tmp_path / 'nope.json')
        assert excinfo.value.code is E.LARAVEL_CONFIG_UNREADABLE

    def test_dump_invalid_json(self, tmp_path: Path) -> None:
        """Bad JSON is reported."""
        dump = write(tmp_path, 'config.json', '{not json')
        with pytest.raises(LaraHealthError) as excinfo:
            load_laravel_config(tmp_path, dump_path=dump)
        assert excinfo.value.code is E.LARAVEL_CONFIG_UNREADABLE

    def test_dump_not_an_object(self, tmp_path: Path) -> None:
        """The dump must decode to an object."""
        dump = write(tmp_path, 'config.json', '[1, 2]')
        with pytest.raises(LaraHealthError):
            load_laravel_config(tmp_path, dump_path=dump)

    def test_no_artisan(self, tmp_path: Path) -> None:
        """Without a dump, the project needs an artisan file."""
        with pytest.raises(LaraHealthError) as excinfo:
            load_laravel_config(tmp_path, runner=FakeRunner())
        assert excinfo.value.code is E.LARAVEL_ROOT_NOT_FOUND

    def test_via_tinker(self, tmp_path: Path) -> None:
        """Without a dump, artisan tinker prints the config."""
        write(tmp_path, 'artisan')
        runner = FakeRunner({'tinker': ok(json.dumps({'app': {'name': 'Shop'}}))})
        repo = load_laravel_config(tmp_path, runner=runner)
        assert repo.get('app.name') == 'Shop'
        assert runner.calls[0][:4] == ['php', 'artisan', 'tinker', '--execute']
        assert runner.cwds[0] == tmp_path

    def test_tinker_fails(self, tmp_path: Path) -> None:
        """A failing artisan call is reported."""
        write(tmp_path, 'artisan')
        runner = FakeRunner({'tinker': fail('PHP Fatal error')})
        with pytest.raises(LaraHealthError) as excinfo:
            load_laravel_config(tmp_path, runner=runner)
        assert 'PHP Fatal error' in str(excinfo.value)

    def test_tinker_timeout(self, tmp_path: Path) -> None:
        """A timed-out artisan call is reported."""
        write(tmp_path, 'artisan')
        runner = FakeRunner({'tinker': TimeoutExpired(['php'], 60)})
        with pytest.raises(LaraHealthError) as excinfo:
            load_laravel_config(tmp_path, runner=runner)
        assert excinfo.value.code is E.LARAVEL_CONFIG_UNREADABLE


class TestFindKeyLine:
    """Tests for the config source line finders."""

    def test_top_level_key(self) -> None:
        """A plain key is found on its own line."""
        assert find_key_line(_CACHE_PHP, 'prefix') == 16

    def test_missing_key(self) -> None:
        """Absent keys return None."""
        assert find_key_line(_CACHE_PHP, 'serializer') is None

    def test_parent_scopes_search(self) -> None:
        """With a parent, the search starts after the parent line."""
        assert find_key_line(_CACHE_PHP, 'driver', parent='redis') == 11

    def test_missing_parent(self) -> None:
        """A missing parent means no match."""
        assert find_key_line(_CACHE_PHP, 'driver', parent='memcached') is None

    def test_nested(self) -> None:
        """The deepest key found is returned."""
        assert find_nested_key_line(_CACHE_PHP, 'stores', 'redis', 'connection') == 12

    def test_nested_falls_back_to_key(self) -> None:
        """A missing nested key yields the key line."""
        assert find_nested_key_line(_CACHE_PHP, 'stores', 'redis', 'lock_connection') == 10

    def test_config_file_line(self, tmp_path: Path) -> None:
        """Lines are read from the file, defaulting to 1."""
        path = write(tmp_path, 'config/cache.php', _CACHE_PHP)
        assert config_file_line(path, 'prefix') == 16
        assert config_file_line(path, 'serializer') == 1
        assert config_file_line(tmp_path / 'config/missing.php', 'prefix') == 1


class TestProjectContext:
    """Tests for ProjectContext helpers."""

    def test_environment_defaults_to_production(self, tmp_path: Path) -> None:
        """No app.env means production."""
        assert ProjectContext(base_path=tmp_path).environment == 'production'

    def test_environment_from_config(self, tmp_path: Path) -> None:
        """app.env from the dump is used."""
        ctx = ProjectContext(base_path=tmp_path, config=ConfigRepository({'app': {'env': 'staging'}}))
        assert ctx.environment == 'staging'

    def test_environment_override(self, tmp_path: Path) -> None:
        """The settings override wins over app.env."""
        ctx = ProjectContext(
            base_path=tmp_path,
            config=ConfigRepository({'app': {'env': 'staging'}}),
            settings=Settings(environment='local'),
        )
        assert ctx.environment == 'local'

    def test_paths(self, tmp_path: Path) -> None:
        """Path helpers resolve against the root."""
        ctx = ProjectContext(base_path=tmp_path)
        assert ctx.config_path('cache') == tmp_path / 'config' / 'cache.php'
        assert ctx.relative(tmp_path / 'app' / 'User.php') == 'app/User.php'
        assert ctx.relative('/elsewhere/file.php') == '/elsewhere/file.php'
        assert not ctx.is_ci

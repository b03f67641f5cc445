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

"""Shared test fakes for larahealth.

Provides stand-ins for the command runner, the cache store and the
database connection checker so analyzers can be tested without PHP,
Composer, PHPStan or live services.

Usage::

    from tests._fakes import FakeRunner, ok

    runner = FakeRunner({'phpstan': ok(stdout='{"files": {}}')})
    ctx = make_context(tmp_path, runner=runner)
"""

from tests._fakes._project import make_context as make_context, write as write
from tests._fakes._runner import FakeRunner as FakeRunner, fail as fail, ok as ok, phpstan_json as phpstan_json
from tests._fakes._services import (
    FakeCacheProbe as FakeCacheProbe,
    FakeConnectionChecker as FakeConnectionChecker,
)

__all__ = [
    'FakeCacheProbe',
    'FakeConnectionChecker',
    'FakeRunner',
    'fail',
    'make_context',
    'ok',
    'phpstan_json',
    'write',
]

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

"""Locate the composer executable for a project."""

from __future__ import annotations

from pathlib import Path


def composer_command(base_path: Path, *, php: str = 'php') -> list[str]:
    """Return the argv prefix that runs composer in ``base_path``.

    A project-local ``composer.phar`` is preferred (run through ``php``);
    otherwise the ``composer`` on ``PATH`` is used.
    """
    phar = base_path / 'composer.phar'
    if phar.is_file():
        return [php, str(phar)]
    return ['composer']


__all__ = ['composer_command']

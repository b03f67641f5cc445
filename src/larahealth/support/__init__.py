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

"""Small helpers shared by analyzers.

- :mod:`~larahealth.support.sanitize`: redact secrets from error text.
- :mod:`~larahealth.support.paths`: analyze/exclude path filtering.
- :mod:`~larahealth.support.suppression`: ``@larahealth-ignore`` comments.
- :mod:`~larahealth.support.env`: dotenv file parsing.
- :mod:`~larahealth.support.suggest`: env var → config key suggestions.
- :mod:`~larahealth.support.composer`: locating the composer binary.
"""

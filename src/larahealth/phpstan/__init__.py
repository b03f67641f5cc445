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

"""PHPStan integration: run the binary, classify messages, cap the output.

- :mod:`~larahealth.phpstan.runner`: invocation and JSON flattening.
- :mod:`~larahealth.phpstan.categories`: the message classification table.
- :mod:`~larahealth.phpstan.aggregate`: issue building and the 50-issue cap.
"""

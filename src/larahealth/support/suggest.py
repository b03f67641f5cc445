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

"""Map environment variable names to the config key that should hold them."""

from __future__ import annotations

# (prefix, config file). Checked in order; the first match wins.
_PREFIXES: tuple[tuple[str, str], ...] = (
    ('app_', 'app'),
    ('database_', 'database'),
    ('db_', 'database'),
    ('cache_', 'cache'),
    ('mail_', 'mail'),
    ('queue_', 'queue'),
    ('session_', 'session'),
    ('log_', 'logging'),
    ('broadcast_', 'broadcasting'),
    ('filesystem_', 'filesystems'),
    ('aws_', 'filesystems'),
)

_ENV_CALL_ADVICE = (
    'Do not call env() outside of configuration files. Once config is cached '
    '(php artisan config:cache), the .env file is not loaded and env() returns null. '
)


class ConfigSuggester:
    """Suggest where an env variable belongs in ``config/``."""

    @staticmethod
    def suggest(env_var: str) -> tuple[str, str]:
        """Return ``(config_file, config_key)`` for ``env_var``.

        >>> ConfigSuggester.suggest('DB_HOST')
        ('database', 'database.host')
        >>> ConfigSuggester.suggest('STRIPE_KEY')
        ('custom', 'custom.stripe_key')
        """
        lower = env_var.lower()
        for prefix, config_file in _PREFIXES:
            if lower.startswith(prefix):
                return config_file, f'{config_file}.{lower[len(prefix):]}'
        return 'custom', f'custom.{lower}'

    @classmethod
    def recommendation(cls, env_var: str | None) -> str:
        """Advice for reading ``env_var`` through ``config()``."""
        if not env_var:
            return _ENV_CALL_ADVICE + 'Move this env() call to a configuration file and use config() to retrieve the value instead.'
        config_file, config_key = cls.suggest(env_var)
        return (
            f"{_ENV_CALL_ADVICE}Add '{env_var}' to a config file (e.g., config/{config_file}.php) "
            f"and use config('{config_key}') instead of env('{env_var}')."
        )


__all__ = ['ConfigSuggester']

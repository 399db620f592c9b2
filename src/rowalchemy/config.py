# SPDX-FileCopyrightText: 2025 FanaticPythoner
# SPDX-License-Identifier: Apache-2.0

"""
Database session configuration.

Only ``driver`` is interpreted by the session. ``log`` and ``setup_session``
are optional hooks, and every other key is kept as-is and handed to the
driver as connection parameters.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict

QueryLogHook = Callable[..., Any]
SetupSessionHook = Callable[..., Awaitable[Any]]


class DatabaseConfig(BaseModel):
    """
    Validated session configuration.

    Attributes:
        driver: Driver name (``"sqlite"``, ``"pg"``) or a ready driver instance
        log: Called as ``log(sql, params, results, options)`` after each
            successful query instead of the default debug logging
        setup_session: Coroutine function run once after connecting; it may
            issue queries through the database it receives
    """

    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    driver: Any
    log: Optional[QueryLogHook] = None
    setup_session: Optional[SetupSessionHook] = None

    def connection_options(self) -> Dict[str, Any]:
        """Driver-specific keys, i.e. everything the session does not interpret."""
        return dict(self.model_extra or {})

    def option(self, key: str, default: Any = None) -> Any:
        return self.connection_options().get(key, default)

    @classmethod
    def coerce(cls, config: Union["DatabaseConfig", Mapping[str, Any]]) -> "DatabaseConfig":
        if isinstance(config, cls):
            return config
        return cls.model_validate(dict(config))

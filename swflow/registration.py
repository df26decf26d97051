"""Registration of the domain and the types used by swflow."""

from __future__ import annotations

import logging

from .config import SwflowConfig
from .transports import BaseTransport

logger = logging.getLogger(__name__)


class Registrar:
    """Register the configured domain, workflow type and activity type."""

    def __init__(self, transport: BaseTransport, config: SwflowConfig) -> None:
        self._transport = transport
        self._config = config

    async def register_domain(self, description: str, retention_days: int = 3) -> None:
        await self._transport.register_domain(description, retention_days)
        logger.info(f"Registered domain {self._config.domain}")

    async def register_workflow_type(self) -> None:
        await self._transport.register_workflow_type(
            self._config.workflow_name, self._config.type_version
        )
        logger.info(
            f"Registered workflow type {self._config.workflow_name} {self._config.type_version}"
        )

    async def register_activity_type(self) -> None:
        await self._transport.register_activity_type(
            self._config.activity_name, self._config.type_version
        )
        logger.info(
            f"Registered activity type {self._config.activity_name} {self._config.type_version}"
        )

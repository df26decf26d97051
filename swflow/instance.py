"""Composition of every swflow capability around one configuration."""

from __future__ import annotations

from typing import Any, Optional

from .activity_worker import ActivityWorker
from .client import Client
from .config import SwflowConfig, load_config
from .decision_worker import DecisionWorker
from .notify import LoggingNotifier, Notifier
from .registration import Registrar
from .transports import BaseTransport, get_transport


class Swflow:
    """A worker with every capability, sharing config, transport and notifier."""

    def __init__(
        self,
        config: SwflowConfig,
        transport: BaseTransport,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.config = config
        self.transport = transport
        self.notifier = notifier or LoggingNotifier()
        self.client = Client(transport, config)
        self.decision_worker = DecisionWorker(transport, config, self.notifier)
        self.activity_worker = ActivityWorker(transport, config, self.notifier)
        self.registrar = Registrar(transport, config)


def create(
    config: Optional[SwflowConfig] = None,
    transport: Optional[BaseTransport] = None,
    notifier: Optional[Notifier] = None,
    **overrides: Any,
) -> Swflow:
    """Build a :class:`Swflow` from ``config`` (or loaded configuration).

    Keyword ``overrides`` replace individual configuration fields, e.g.
    ``create(unit="reports", activity_task_lists={"reports": "reports-atl"})``.
    """
    config = config or load_config()
    if overrides:
        config = SwflowConfig(**{**config.model_dump(), **overrides})
    transport = transport or get_transport(config=config)
    return Swflow(config, transport, notifier)

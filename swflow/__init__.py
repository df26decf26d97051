"""swflow: decision and activity workers for durable workflow services."""

from .activity_worker import ActivityWorker
from .client import Client, Finder, Starter
from .config import SwflowConfig, load_config
from .contracts import (
    ActivityContext,
    ExecutionStatus,
    ExecutionSummary,
    HistoryEvent,
    TaskOptions,
    WorkflowExecution,
)
from .decision_worker import DecisionWorker
from .engine import RETRY, DecisionEngine
from .history import summarize
from .instance import Swflow, create
from .notify import CallbackNotifier, LoggingNotifier, Notifier
from .registration import Registrar
from .transports import get_transport

__version__ = "0.1.0"
__all__ = [
    "ActivityContext",
    "ActivityWorker",
    "CallbackNotifier",
    "Client",
    "DecisionEngine",
    "DecisionWorker",
    "ExecutionStatus",
    "ExecutionSummary",
    "Finder",
    "HistoryEvent",
    "LoggingNotifier",
    "Notifier",
    "RETRY",
    "Registrar",
    "Starter",
    "Swflow",
    "SwflowConfig",
    "TaskOptions",
    "WorkflowExecution",
    "create",
    "get_transport",
    "load_config",
    "summarize",
]

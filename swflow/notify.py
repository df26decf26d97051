"""Notification hooks for faults observed by workers."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Protocol, Union

logger = logging.getLogger(__name__)

Message = Union[str, BaseException]


class Notifier(Protocol):
    """Receives faults and noteworthy conditions together with their context."""

    def notify(self, message: Message, **params: Any) -> None:
        """Report ``message`` with identifying ``params``."""


class LoggingNotifier:
    """Write notifications to the log, including exception tracebacks."""

    def notify(self, message: Message, **params: Any) -> None:
        if isinstance(message, BaseException):
            logger.error(
                f"{type(message).__name__}: {message} {params}",
                exc_info=(type(message), message, message.__traceback__),
            )
        else:
            logger.warning(f"{message} {params}")


class CallbackNotifier(LoggingNotifier):
    """Forward notifications to a user callable, then log them.

    The callable receives ``{"message": message, "params": params}``.
    """

    def __init__(self, callback: Callable[[Dict[str, Any]], Any]) -> None:
        self._callback = callback

    def notify(self, message: Message, **params: Any) -> None:
        self._callback({"message": message, "params": params})
        super().notify(message, **params)

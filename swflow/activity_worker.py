"""Worker loop for activity tasks."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Optional

from . import codec
from .config import SwflowConfig
from .contracts import ActivityContext, ActivityTask, TaskOptions
from .engine import RETRY
from .notify import LoggingNotifier, Notifier
from .results import ActivityReport, interpret, interpret_exception, truncate
from .task_lists import TaskListResolver
from .transports import BaseTransport

logger = logging.getLogger(__name__)

ActivityCallback = Callable[[ActivityContext], Any]


class ActivityWorker:
    """Run user code for activity tasks and report the outcome.

    The callback's return value is interpreted by key:

    * ``error``: fails the task with the given error. Together with
      ``seconds_until_retry`` the task is rescheduled immediately instead.
    * ``outcome``: completes the task, storing the value as JSON.
    * ``seconds_until_retry``: reschedules the task after the given delay.
    * ``seconds_until_restart``: starts the execution as new after the delay.
    """

    def __init__(
        self,
        transport: BaseTransport,
        config: SwflowConfig,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self._transport = transport
        self._config = config
        self._notifier = notifier or LoggingNotifier()
        self._resolver = TaskListResolver(config)
        self._callback: Optional[ActivityCallback] = None

    def on_activity(self, callback: Optional[ActivityCallback] = None) -> Any:
        """Configure the callable run for each activity task.

        Usable directly or as a decorator. The callable may be a coroutine
        function.
        """
        if callback is None:
            return self.on_activity
        self._callback = callback
        return callback

    @property
    def task_list(self) -> str:
        return self._resolver.activity_task_list()

    async def process_activity_task(self) -> bool:
        """Poll for one activity task, run it and report the result.

        Returns:
            ``True`` if a task was processed, ``False`` if the poll was empty.
        """
        task_list = self.task_list
        logger.debug(f"polling for activity task {task_list}")
        task = await self._transport.poll_for_activity_task(
            task_list, identity=self._config.identity
        )
        if task is None:
            return False

        logger.info(f"got activity task {task.activity_id} {task.input}")
        report = await self.process_single_task(task)
        await self.submit(task, report)
        return True

    async def process_single_task(self, task: ActivityTask) -> ActivityReport:
        """Run the callback for ``task`` and decide how to report it.

        Faults raised by the callback never escape: they are notified and
        turned into an ``Exception`` failure report.
        """
        try:
            context = self.describe(task)
            if self._is_too_new(context.options):
                logger.info(
                    f"task version {context.version} exceeds "
                    f"{self._config.execution_version}, handing it back"
                )
                return ActivityReport.failed(
                    RETRY, {"error": truncate(f"Unsupported version {context.version}")}
                )
            value = self._callback(context) if self._callback else None
            if inspect.isawaitable(value):
                value = await value
            return interpret(value)
        except Exception as exception:
            self._notifier.notify(
                exception,
                activity_type=task.activity_type.name if task.activity_type else None,
                input=task.input,
            )
            return interpret_exception(exception)

    async def submit(self, task: ActivityTask, report: ActivityReport) -> None:
        if report.status == "completed":
            await self._transport.respond_activity_task_completed(
                task.task_token, result=report.result
            )
        else:
            await self._transport.respond_activity_task_failed(
                task.task_token, reason=report.reason, details=report.details
            )
        logger.info(f"reported activity task {task.activity_id} as {report.status}")

    def describe(self, task: ActivityTask) -> ActivityContext:
        options = codec.decode(task.input)
        return ActivityContext(
            name=options.name,
            params=options.params,
            version=options.version,
            options=options,
            workflow_id=task.workflow_id,
            run_id=task.run_id,
            activity_task=task,
        )

    async def run(self, lifespan: Optional[float] = None) -> None:
        """Process activity tasks until ``lifespan`` seconds have elapsed.

        Args:
            lifespan: Maximum time in seconds to keep polling. If None, runs indefinitely.
        """
        loop = asyncio.get_running_loop()
        start_time = loop.time()
        while lifespan is None or loop.time() - start_time < lifespan:
            try:
                await self.process_activity_task()
            except Exception as e:
                logger.error(f"activity cycle failed, polling again: {e!r}", exc_info=True)

    def _is_too_new(self, options: TaskOptions) -> bool:
        if options.version is None or self._config.execution_version is None:
            return False
        try:
            return float(options.version) > self._config.execution_version
        except (TypeError, ValueError):
            return False

"""Worker loop for decision tasks."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .config import SwflowConfig
from .decisions import NoOp
from .engine import DecisionEngine
from .notify import LoggingNotifier, Notifier
from .task_lists import TaskListResolver
from .transports import BaseTransport

logger = logging.getLogger(__name__)


class DecisionWorker:
    """Poll decision tasks and answer them with the engine's decisions."""

    def __init__(
        self,
        transport: BaseTransport,
        config: SwflowConfig,
        notifier: Optional[Notifier] = None,
        engine: Optional[DecisionEngine] = None,
    ) -> None:
        self._transport = transport
        self._config = config
        self._notifier = notifier or LoggingNotifier()
        self._resolver = TaskListResolver(config)
        self.engine = engine or DecisionEngine(config, self._notifier, self._resolver)

    @property
    def task_list(self) -> str:
        return self._resolver.decision_task_list()

    async def process_decision_task(self) -> bool:
        """Poll for one decision task and respond to it.

        Returns:
            ``True`` if a task was processed, ``False`` if the poll was empty.

        Raises:
            Exception: Any fault while deciding is notified and re-raised; the
                task stays undecided and is handed out again by the service.
        """
        task_list = self.task_list
        logger.debug(f"polling for decision task {task_list}")
        task = await self._transport.poll_for_decision_task(
            task_list, identity=self._config.identity
        )
        if task is None:
            return False

        logger.info(f"got decision task {task.workflow_id} | {task.run_id}")
        try:
            decisions = [
                d for d in self.engine.decide(task) if not isinstance(d, NoOp)
            ]
        except Exception as e:
            self._notifier.notify(e, workflow_id=task.workflow_id, run_id=task.run_id)
            raise

        await self._transport.respond_decision_task_completed(task.task_token, decisions)
        logger.info(
            f"submitted {[d.decision_type for d in decisions]} "
            f"for {task.workflow_id} | {task.run_id}"
        )
        return True

    async def run(self, lifespan: Optional[float] = None) -> None:
        """Process decision tasks until ``lifespan`` seconds have elapsed.

        A fault ends only the current cycle; the task it came from is left
        unanswered for the service to hand out again.

        Args:
            lifespan: Maximum time in seconds to keep polling. If None, runs indefinitely.
        """
        loop = asyncio.get_running_loop()
        start_time = loop.time()
        while lifespan is None or loop.time() - start_time < lifespan:
            try:
                await self.process_decision_task()
            except Exception as e:
                logger.warning(f"decision cycle failed, polling again: {e!r}")

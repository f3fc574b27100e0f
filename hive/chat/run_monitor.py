"""
Drives an assistant run to a terminal status.
"""
import logging
import threading
import time
from typing import Callable, Optional

from hive.client.openai_client import AssistantServiceClient
from hive.errors import RunFailed
from hive.models.config import PollingConfig
from hive.utils.polling import poll_until

logger = logging.getLogger(__name__)

PENDING_STATUSES = frozenset({"queued", "in_progress", "cancelling"})
COMPLETED_STATUS = "completed"


class RunCompletionMonitor:
    """
    Polls a run until it completes or fails.
    """

    def __init__(
        self,
        service: AssistantServiceClient,
        config: Optional[PollingConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
        cancel_event: Optional[threading.Event] = None,
    ):
        """
        Initialize the monitor.

        Args:
            service: Remote service client
            config: Poll interval and attempt cap, defaults to 1s and unbounded
            sleep: Suspension function between checks
            cancel_event: Optional event that aborts the wait when set
        """
        self.service = service
        self.config = config or PollingConfig()
        self.sleep = sleep
        self.cancel_event = cancel_event

    def start_run(self, thread_id: str, assistant_id: str):
        run = self.service.create_run(thread_id, assistant_id)
        logger.info(f"Started run {run.id} on thread {thread_id}")
        return run

    def wait(self, thread_id: str, run_id: str):
        """
        Block until the run reaches a terminal status.

        Args:
            thread_id: Thread the run belongs to
            run_id: Run to watch

        Returns:
            The completed run record

        Raises:
            RunFailed: If the run ended in any status other than completed
            PollTimeout: If the attempt cap was reached
            RemoteUnavailable: If a status check failed
        """
        run = poll_until(
            lambda: self.service.retrieve_run(thread_id, run_id),
            lambda current: current.status not in PENDING_STATUSES,
            self.config,
            sleep=self.sleep,
            cancel_event=self.cancel_event,
            describe=f"run {run_id}",
        )

        if run.status != COMPLETED_STATUS:
            logger.error(f"Run {run_id} ended with status {run.status}")
            raise RunFailed(run_id, run.status)

        logger.info(f"Run {run_id} completed")
        return run

"""Bounded poll-sleep-poll loop shared by run and file batch waits."""
import logging
import threading
import time
from typing import Callable, Optional, TypeVar

from hive.errors import PollCancelled, PollTimeout
from hive.models.config import PollingConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


def poll_until(
    fetch: Callable[[], T],
    is_terminal: Callable[[T], bool],
    config: PollingConfig,
    sleep: Callable[[float], None] = time.sleep,
    cancel_event: Optional[threading.Event] = None,
    describe: str = "remote operation",
) -> T:
    """Fetch a status until it is terminal.

    Only the status check is repeated. Errors raised by fetch propagate
    immediately.

    Args:
        fetch: Returns the current state of the remote operation.
        is_terminal: True once the state will no longer change.
        config: Interval and optional attempt cap.
        sleep: Suspends between attempts when no cancel_event is given.
        cancel_event: When set during a wait, the loop stops.
        describe: Label used in log messages and errors.

    Returns:
        The first terminal state observed.

    Raises:
        PollTimeout: If max_attempts fetches saw no terminal state.
        PollCancelled: If cancel_event was set.
    """
    attempts = 0
    while True:
        if cancel_event is not None and cancel_event.is_set():
            raise PollCancelled(f"Stopped waiting for {describe}")

        result = fetch()
        attempts += 1
        if is_terminal(result):
            logger.debug(f"{describe} finished after {attempts} checks")
            return result

        if config.max_attempts is not None and attempts >= config.max_attempts:
            logger.warning(f"{describe} still pending after {attempts} checks")
            raise PollTimeout(describe, attempts)

        if cancel_event is not None:
            if cancel_event.wait(config.interval_seconds):
                raise PollCancelled(f"Stopped waiting for {describe}")
        else:
            sleep(config.interval_seconds)

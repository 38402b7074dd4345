"""
Bounded status polling.

Runs and vector store files are asynchronous on the provider side; the only
way to observe them is to re-read their status. ``StatusPoller`` does that in
a blocking loop with a fixed interval, and always terminates: on success, on
a failure status, on deadline or attempt exhaustion, or on cancellation.
"""

import logging
import threading
import time
from typing import Any, Callable, Collection, Optional

from ..client import translate_errors
from ..config import PollPolicy
from ..errors import PollCancelled, RunFailed, RunTimeout
from .base import RUN_PENDING_STATUSES, RunStatus

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str], None]


class StatusPoller:
    """
    Re-read an object's status until it settles.

    Args:
        policy: Interval and bounds for polling
        sleep: Function used to wait between reads
        clock: Monotonic clock used for the deadline
    """

    def __init__(
        self,
        policy: PollPolicy,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        policy.validate()
        self.policy = policy
        self._sleep = sleep
        self._clock = clock

    def wait(
        self,
        fetch: Callable[[], Any],
        object_id: str,
        success: Collection[str],
        pending: Collection[str],
        on_failure: Callable[[Any], Exception],
        cancel_event: Optional[threading.Event] = None,
        on_status: Optional[StatusCallback] = None
    ) -> Any:
        """
        Poll ``fetch`` until its result has a settled status.

        Every iteration performs exactly one ``fetch`` call. Statuses that are
        neither in ``success`` nor ``pending`` are failures.

        Args:
            fetch: Reads the object; the result must have a ``status`` attribute
            object_id: Id used in log lines and timeout errors
            success: Statuses that end polling successfully
            pending: Statuses that keep polling
            on_failure: Builds the exception raised for a failure status
            cancel_event: Set by the caller to stop polling
            on_status: Called with each newly observed status

        Returns:
            The last fetched object, whose status is in ``success``

        Raises:
            PollCancelled: If ``cancel_event`` is set
            RunTimeout: If the deadline or attempt budget is exhausted
        """
        started = self._clock()
        attempts = 0
        last_status = None

        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise PollCancelled(f"Polling {object_id} was cancelled")

            obj = fetch()
            attempts += 1
            status = obj.status

            if status != last_status:
                logger.info(f"{object_id} status: {status}")
                if on_status is not None:
                    on_status(status)
                last_status = status

            if status in success:
                return obj

            if status not in pending:
                raise on_failure(obj)

            if self._exhausted(started, attempts):
                raise RunTimeout(object_id, status, attempts)

            logger.debug(f"{object_id} still {status}; next read in {self.policy.interval}s")
            if cancel_event is not None:
                if cancel_event.wait(self.policy.interval):
                    raise PollCancelled(f"Polling {object_id} was cancelled")
            else:
                self._sleep(self.policy.interval)

    def _exhausted(self, started: float, attempts: int) -> bool:
        if self.policy.max_attempts is not None and attempts >= self.policy.max_attempts:
            return True

        if self.policy.timeout is not None:
            elapsed = self._clock() - started
            return elapsed + self.policy.interval > self.policy.timeout

        return False


def wait_for_run(
    client,
    thread_id: str,
    run_id: str,
    poller: StatusPoller,
    cancel_event: Optional[threading.Event] = None,
    on_status: Optional[StatusCallback] = None
):
    """
    Block until a run completes.

    Args:
        client: OpenAI client
        thread_id: Thread the run belongs to
        run_id: Run to wait for
        poller: Poller carrying the polling policy
        cancel_event: Set by the caller to stop polling
        on_status: Called with each newly observed status

    Returns:
        The completed run object

    Raises:
        RunFailed: If the run ends in any status other than completed
        RunTimeout: If polling gives up first
        PollCancelled: If ``cancel_event`` is set
        RemoteError: If a status read fails
    """
    def fetch():
        with translate_errors(f"Reading run {run_id}"):
            return client.beta.threads.runs.retrieve(run_id=run_id, thread_id=thread_id)

    def failure(run) -> Exception:
        return RunFailed(run.id, run.status, getattr(run, "last_error", None))

    return poller.wait(
        fetch,
        object_id=run_id,
        success={RunStatus.COMPLETED.value},
        pending=RUN_PENDING_STATUSES,
        on_failure=failure,
        cancel_event=cancel_event,
        on_status=on_status,
    )

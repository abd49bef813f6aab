"""
core.runs.run_poller

Wait for a run on the assistant service to finish.

The poller retrieves the run once per tick, at a fixed interval, and never
for the same run in parallel. Each tick's status goes through classify():

  - queued / in_progress / requires_action / cancelling -> keep waiting
  - completed                                           -> fetch the reply
  - failed / incomplete / cancelled / expired           -> RunFailureException
  - a status this client does not know                  -> run cancelled,
                                                           RunFailureException

Progress goes to a status sink as a side channel. A status that repeats the
previous tick is not announced again; a repeated in_progress prints a
single "." so the user can see the run is alive without a flood of lines.
Once the run completes, an open waiting line is cleared in place so the
reply starts on a clean line.

requires_action is not supported (no tool outputs are ever submitted). It is
announced once and the poller keeps waiting; only max_wait bounds that
wait.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, NoReturn, Optional

from core.api.assistant_client import AssistantClient
from core.runs.models import CompletedRunOutcome
from core.runs.run_state import RunFailureKind, RunState, TickAction, classify, failure_kind
from exceptions.exceptions import RunFailureException, UnknownRunStatusException

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0

_ANNOUNCEMENTS = {
    RunState.QUEUED: "--- Run Queued",
    RunState.REQUIRES_ACTION: "--- Run Requires Action (not supported, still waiting)",
    RunState.CANCELLING: "--- Run Cancelling",
}

WAITING_TEXT = "--- Waiting for response..."
PROGRESS_MARK = "."


def describe_failure(run: Any) -> str:
    """Best available diagnostic text for a run that did not complete."""
    last_error = getattr(run, "last_error", None)
    if last_error is not None:
        code = getattr(last_error, "code", None)
        message = getattr(last_error, "message", None) or str(last_error)
        return f"{code}: {message}" if code else message

    incomplete = getattr(run, "incomplete_details", None)
    if incomplete is not None:
        reason = getattr(incomplete, "reason", None) or str(incomplete)
        return f"incomplete: {reason}"

    if hasattr(run, "model_dump_json"):
        return run.model_dump_json(indent=2)
    return repr(run)


class RunPoller:
    """Poll a run until it reaches a terminal status.

    Parameters
    ----------
    client:
        AssistantClient used for retrieve_run / cancel_run / the final
        message lookup.
    status:
        Status sink (see runtime.status.StatusSink) for progress output.
    poll_interval:
        Seconds to sleep between ticks.
    max_wait:
        Optional limit in seconds. When exceeded the run is cancelled on
        the service and the poll ends as "cancelled". None waits forever.
    sleep, clock:
        Injected for tests; default to time.sleep / time.monotonic.
    """

    def __init__(
        self,
        client: AssistantClient,
        status,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_wait: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.status = status
        self.poll_interval = poll_interval
        self.max_wait = max_wait
        self._sleep = sleep
        self._clock = clock

    def poll_until_terminal(self, thread_id: str, run_id: str) -> CompletedRunOutcome:
        """
        Block until the run finishes.

        Returns
        -------
        CompletedRunOutcome
            The newest message of the thread, as text.

        Raises
        ------
        RunFailureException
            On failed / incomplete / cancelled / expired, on a status this
            client does not know (the run is cancelled, kind "failed"), on
            max_wait expiry, or when the user interrupts the wait (Ctrl-C).
        UnsupportedContentException
            If the reply is not text.
        """
        previous: Optional[RunState] = None
        started = self._clock()

        try:
            while True:
                run = self.client.retrieve_run(thread_id, run_id)
                try:
                    state = RunState.parse(run.status)
                except UnknownRunStatusException as e:
                    self._abandon(thread_id, run_id, str(e), RunFailureKind.FAILED)
                logger.debug("Run %s status: %s", run_id, state.value)

                self._report(state, previous)
                action = classify(state)

                if action is TickAction.SUCCESS:
                    break

                if action is TickAction.FAILURE:
                    self.status.end_partial()
                    detail = describe_failure(run)
                    logger.info("Run %s ended as %s: %s", run_id, state.value, detail)
                    raise RunFailureException(failure_kind(state), run_id, detail)

                previous = state

                if self.max_wait is not None and self._clock() - started >= self.max_wait:
                    self._abandon(
                        thread_id,
                        run_id,
                        f"no result after {self.max_wait:g}s (last status: {state.value})",
                    )

                self._sleep(self.poll_interval)
        except KeyboardInterrupt:
            self._abandon(thread_id, run_id, "interrupted by user")

        # The run is finished; the waiting line is replaced by the reply.
        if self.status.partial:
            self.status.clear_line()
        return self._collect(thread_id, run_id)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _report(self, state: RunState, previous: Optional[RunState]) -> None:
        """Emit the progress indication for this tick, if any."""
        if state is previous:
            if state is RunState.IN_PROGRESS:
                self.status.write(PROGRESS_MARK)
            return

        if state is RunState.IN_PROGRESS:
            self.status.end_partial()
            self.status.write(WAITING_TEXT)
        elif state in _ANNOUNCEMENTS:
            self.status.line(_ANNOUNCEMENTS[state])
            if state is RunState.REQUIRES_ACTION:
                logger.warning(
                    "Run requires an action this client cannot perform; "
                    "it will wait until the service gives up or max_wait is reached."
                )

    def _collect(self, thread_id: str, run_id: str) -> CompletedRunOutcome:
        message_id, text = self.client.latest_message_text(thread_id)
        return CompletedRunOutcome(run_id=run_id, message_id=message_id, text=text)

    def _abandon(
        self,
        thread_id: str,
        run_id: str,
        reason: str,
        kind: RunFailureKind = RunFailureKind.CANCELLED,
    ) -> NoReturn:
        """Cancel the run on the service and end the poll with `kind`."""
        self.status.end_partial()
        try:
            self.client.cancel_run(thread_id, run_id)
        except Exception as e:
            # The run may already be terminal; the local outcome is the same.
            logger.warning("Could not cancel run %s: %s", run_id, e)
        raise RunFailureException(kind, run_id, reason)

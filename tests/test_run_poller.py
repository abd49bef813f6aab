"""Unit tests for RunPoller."""
from types import SimpleNamespace

import pytest

from core.runs.run_poller import RunPoller, describe_failure
from core.runs.run_state import RunFailureKind, RunState, TickAction, classify
from exceptions.exceptions import (
    RunFailureException,
    UnknownRunStatusException,
    UnsupportedContentException,
)


def make_poller(client, status, **kwargs):
    kwargs.setdefault("sleep", lambda seconds: None)
    return RunPoller(client, status, poll_interval=0.5, **kwargs)


class TestClassify:
    """Test suite for the per-tick dispatch."""

    @pytest.mark.parametrize(
        "state",
        [RunState.QUEUED, RunState.IN_PROGRESS, RunState.REQUIRES_ACTION, RunState.CANCELLING],
    )
    def test_waiting_states(self, state):
        assert classify(state) is TickAction.WAIT

    @pytest.mark.parametrize(
        "state",
        [RunState.FAILED, RunState.CANCELLED, RunState.EXPIRED, RunState.INCOMPLETE],
    )
    def test_failure_states(self, state):
        assert classify(state) is TickAction.FAILURE

    def test_completed(self):
        assert classify(RunState.COMPLETED) is TickAction.SUCCESS

    def test_unknown_status(self):
        """Test an unrecognized status string is rejected."""
        with pytest.raises(UnknownRunStatusException, match="paused"):
            RunState.parse("paused")


class TestRunPoller:
    """Test suite for RunPoller.poll_until_terminal."""

    def test_completed_returns_reply(self, make_client, make_message, status):
        """Test a completed run yields the newest message text."""
        client = make_client(["completed"], [make_message.text("msg_1", "Hi there")])

        outcome = make_poller(client, status).poll_until_terminal("thread_1", "run_1")

        assert outcome.text == "Hi there"
        assert outcome.message_id == "msg_1"
        assert outcome.run_id == "run_1"
        assert len(client.called("latest_message_text")) == 1

    def test_progress_is_not_repeated(self, make_client, make_message, status, status_stream):
        """Test repeated statuses do not print duplicate lines."""
        client = make_client(
            ["queued", "queued", "in_progress", "in_progress", "completed"],
            [make_message.text("msg_1", "done")],
        )

        make_poller(client, status).poll_until_terminal("thread_1", "run_1")

        output = status_stream.getvalue()
        assert output.count("--- Run Queued") == 1
        assert output.count("--- Waiting for response...") == 1
        assert output == "--- Run Queued\n--- Waiting for response....\r\x1b[2K"
        assert status.partial is False

    def test_one_retrieval_and_sleep_per_tick(self, make_client, make_message, status):
        """Test the poller sleeps the configured interval between ticks."""
        slept = []
        client = make_client(
            ["queued", "in_progress", "completed"],
            [make_message.text("msg_1", "ok")],
        )

        make_poller(client, status, sleep=slept.append).poll_until_terminal("thread_1", "run_1")

        assert len(client.called("retrieve_run")) == 3
        assert slept == [0.5, 0.5]

    def test_failed_run_raises_with_detail(self, make_client, status):
        """Test a failed run surfaces the service's error detail."""
        error = SimpleNamespace(code="server_error", message="Something went wrong")
        client = make_client(["in_progress", "failed"], last_error=error)

        with pytest.raises(RunFailureException) as exc_info:
            make_poller(client, status).poll_until_terminal("thread_1", "run_1")

        assert exc_info.value.kind is RunFailureKind.FAILED
        assert exc_info.value.detail == "server_error: Something went wrong"
        assert client.called("latest_message_text") == []

    @pytest.mark.parametrize(
        "status_value, kind",
        [("cancelled", RunFailureKind.CANCELLED), ("expired", RunFailureKind.EXPIRED)],
    )
    def test_cancelled_and_expired(self, make_client, status, status_value, kind):
        """Test cancelled / expired end the poll as non-success."""
        client = make_client(["cancelling", status_value])

        with pytest.raises(RunFailureException) as exc_info:
            make_poller(client, status).poll_until_terminal("thread_1", "run_1")

        assert exc_info.value.kind is kind

    def test_requires_action_keeps_waiting(self, make_client, make_message, status, status_stream):
        """Test requires_action is announced once and polling continues."""
        client = make_client(
            ["requires_action", "requires_action", "completed"],
            [make_message.text("msg_1", "ok")],
        )

        outcome = make_poller(client, status).poll_until_terminal("thread_1", "run_1")

        assert outcome.text == "ok"
        assert status_stream.getvalue().count("Requires Action") == 1

    def test_dotted_line_is_terminated_before_next_notice(self, make_client, status, status_stream):
        """Test a status change after waiting dots starts on a new line."""
        client = make_client(["in_progress", "in_progress", "cancelling", "cancelled"])

        with pytest.raises(RunFailureException):
            make_poller(client, status).poll_until_terminal("thread_1", "run_1")

        assert status_stream.getvalue() == "--- Waiting for response....\n--- Run Cancelling\n"

    def test_max_wait_cancels_run(self, make_client, status):
        """Test exceeding max_wait cancels the run on the service."""
        ticks = iter([0.0, 1.0, 2.0, 3.0])
        client = make_client(["in_progress"] * 5)
        poller = make_poller(client, status, max_wait=2.0, clock=lambda: next(ticks))

        with pytest.raises(RunFailureException) as exc_info:
            poller.poll_until_terminal("thread_1", "run_1")

        assert exc_info.value.kind is RunFailureKind.CANCELLED
        assert "2s" in exc_info.value.detail
        assert client.called("cancel_run") == [("cancel_run", "thread_1", "run_1")]
        assert len(client.called("retrieve_run")) == 2

    def test_keyboard_interrupt_cancels_run(self, make_client, status):
        """Test Ctrl-C while waiting ends the poll as cancelled."""
        client = make_client(["queued", "queued"])

        def interrupt(seconds):
            raise KeyboardInterrupt

        with pytest.raises(RunFailureException) as exc_info:
            make_poller(client, status, sleep=interrupt).poll_until_terminal("thread_1", "run_1")

        assert exc_info.value.kind is RunFailureKind.CANCELLED
        assert exc_info.value.detail == "interrupted by user"
        assert len(client.called("cancel_run")) == 1

    def test_interrupt_while_fetching_reply_is_not_a_cancel(self, make_client, status):
        """Test Ctrl-C after completion propagates and leaves the run alone."""
        client = make_client(["completed"])

        def interrupt(thread_id):
            raise KeyboardInterrupt

        client.latest_message_text = interrupt

        with pytest.raises(KeyboardInterrupt):
            make_poller(client, status).poll_until_terminal("thread_1", "run_1")

        assert client.called("cancel_run") == []

    def test_unknown_status_cancels_and_fails(self, make_client, status, status_stream):
        """Test an unrecognized status cancels the run and ends it as failed."""
        client = make_client(["queued", "paused"])

        with pytest.raises(RunFailureException) as exc_info:
            make_poller(client, status).poll_until_terminal("thread_1", "run_1")

        assert exc_info.value.kind is RunFailureKind.FAILED
        assert "paused" in exc_info.value.detail
        assert client.called("cancel_run") == [("cancel_run", "thread_1", "run_1")]
        assert client.called("latest_message_text") == []
        assert status_stream.getvalue() == "--- Run Queued\n"

    def test_waiting_line_is_cleared_on_completion(self, make_client, make_message, status, status_stream):
        """Test the dotted waiting line is erased before the reply is fetched."""
        client = make_client(["in_progress", "completed"], [make_message.text("msg_1", "ok")])

        make_poller(client, status).poll_until_terminal("thread_1", "run_1")

        assert status_stream.getvalue() == "--- Waiting for response...\r\x1b[2K"
        assert status.partial is False

    def test_completed_notice_line_is_not_cleared(self, make_client, make_message, status, status_stream):
        """Test nothing is erased when no partial line is pending."""
        client = make_client(["queued", "completed"], [make_message.text("msg_1", "ok")])

        make_poller(client, status).poll_until_terminal("thread_1", "run_1")

        assert status_stream.getvalue() == "--- Run Queued\n"

    def test_non_text_reply_is_an_error(self, make_client, make_message, status):
        """Test an image reply raises instead of being dropped."""
        client = make_client(["completed"], [make_message.image("msg_1")])

        with pytest.raises(UnsupportedContentException) as exc_info:
            make_poller(client, status).poll_until_terminal("thread_1", "run_1")

        assert exc_info.value.content_kind == "image_file"

    def test_silent_sink_prints_nothing(self, make_client, make_message, status_stream):
        """Test a silent sink swallows all progress output."""
        from runtime.status import StatusSink

        client = make_client(["queued", "in_progress", "completed"], [make_message.text("m", "x")])
        poller = make_poller(client, StatusSink(stream=status_stream, silent=True))

        poller.poll_until_terminal("thread_1", "run_1")

        assert status_stream.getvalue() == ""


class TestDescribeFailure:
    """Test suite for failure detail extraction."""

    def test_last_error_without_code(self):
        run = SimpleNamespace(last_error=SimpleNamespace(code=None, message="quota"))
        assert describe_failure(run) == "quota"

    def test_incomplete_details(self):
        run = SimpleNamespace(
            last_error=None,
            incomplete_details=SimpleNamespace(reason="max_completion_tokens"),
        )
        assert describe_failure(run) == "incomplete: max_completion_tokens"

    def test_falls_back_to_repr(self):
        run = SimpleNamespace(last_error=None, incomplete_details=None, status="failed")
        assert "failed" in describe_failure(run)

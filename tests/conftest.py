"""Shared fixtures: an in-memory stand-in for the assistant service."""
import io
from types import SimpleNamespace

import pytest

from core.api.assistant_client import extract_text
from runtime.status import StatusSink


def text_message(message_id, text):
    part = SimpleNamespace(type="text", text=SimpleNamespace(value=text))
    return SimpleNamespace(id=message_id, content=[part])


def image_message(message_id):
    part = SimpleNamespace(type="image_file", image_file=SimpleNamespace(file_id="file_1"))
    return SimpleNamespace(id=message_id, content=[part])


class FakeAssistantClient:
    """Scripted AssistantClient.

    `statuses` is consumed one entry per retrieve_run call, across runs.
    `messages` is consumed one entry per completed run.
    """

    def __init__(self, statuses, messages=None, last_error=None):
        self.statuses = list(statuses)
        self.messages = list(messages or [])
        self.last_error = last_error
        self.calls = []
        self._runs = 0

    def create_thread(self):
        self.calls.append(("create_thread",))
        return "thread_1"

    def create_assistant(self, name, instructions, model):
        self.calls.append(("create_assistant", name, instructions, model))
        return "asst_1"

    def delete_assistant(self, assistant_id):
        self.calls.append(("delete_assistant", assistant_id))

    def delete_thread(self, thread_id):
        self.calls.append(("delete_thread", thread_id))

    def submit_message(self, thread_id, content):
        self.calls.append(("submit_message", thread_id, content))
        return "msg_user"

    def start_run(self, thread_id, assistant_id):
        self._runs += 1
        run_id = f"run_{self._runs}"
        self.calls.append(("start_run", thread_id, assistant_id))
        return run_id

    def retrieve_run(self, thread_id, run_id):
        self.calls.append(("retrieve_run", thread_id, run_id))
        status = self.statuses.pop(0)
        last_error = self.last_error if status == "failed" else None
        return SimpleNamespace(
            id=run_id,
            status=status,
            last_error=last_error,
            incomplete_details=None,
        )

    def cancel_run(self, thread_id, run_id):
        self.calls.append(("cancel_run", thread_id, run_id))

    def latest_message_text(self, thread_id):
        self.calls.append(("latest_message_text", thread_id))
        message = self.messages.pop(0)
        return message.id, extract_text(message, thread_id)

    def called(self, name):
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def make_client():
    """Factory for scripted assistant clients."""
    return FakeAssistantClient


@pytest.fixture
def make_message():
    """Builders for assistant messages: .text(id, value) and .image(id)."""
    return SimpleNamespace(text=text_message, image=image_message)


@pytest.fixture
def status_stream():
    return io.StringIO()


@pytest.fixture
def status(status_stream):
    return StatusSink(stream=status_stream)

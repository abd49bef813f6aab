"""
core.api.assistant_client

Thin wrapper around the OpenAI Assistants API (threads, messages, runs)
for Morpha.

Used by:
  - core/runs/run_poller.py        (run status + final message)
  - runtime/agents/session_loop.py (thread/assistant lifecycle, submissions)

Errors raised by the SDK (openai.OpenAIError) are not caught here; they
propagate to the caller unchanged. There are no retries.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from openai import OpenAI

from configs.settings import settings
from exceptions.exceptions import EmptyResponseException, UnsupportedContentException

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Client construction
# -------------------------------------------------------------------


def build_openai_client() -> OpenAI:
    """Create an OpenAI SDK client from central settings."""
    return OpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
    )


# -------------------------------------------------------------------
# Content helpers
# -------------------------------------------------------------------


def extract_text(message: Any, thread_id: str = "") -> str:
    """
    Return the text of the first content part of an assistant message.

    Raises
    ------
    EmptyResponseException
        If the message has no content parts.
    UnsupportedContentException
        If the first part is not text (e.g. "image_file", "image_url").
    """
    content = getattr(message, "content", None) or []
    if not content:
        raise EmptyResponseException(thread_id, "Assistant message has no content.")

    part = content[0]
    kind = getattr(part, "type", None) or type(part).__name__
    if kind != "text":
        raise UnsupportedContentException(kind)

    return part.text.value


# -------------------------------------------------------------------
# Public client
# -------------------------------------------------------------------


class AssistantClient:
    """Remote assistant operations consumed by the session.

    Parameters
    ----------
    client:
        An `openai.OpenAI` instance (or anything exposing the same
        `beta.threads` / `beta.assistants` surface). If omitted, one is
        built from settings on first use so that importing this module
        never requires OPENAI_API_KEY.
    """

    def __init__(self, client: Optional[OpenAI] = None) -> None:
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = build_openai_client()
        return self._client

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_thread(self) -> str:
        thread = self.client.beta.threads.create()
        logger.debug("Created thread %s", thread.id)
        return thread.id

    def create_assistant(self, name: str, instructions: str, model: str) -> str:
        assistant = self.client.beta.assistants.create(
            name=name,
            instructions=instructions,
            model=model,
        )
        logger.debug("Created assistant %s (model=%s)", assistant.id, model)
        return assistant.id

    def delete_assistant(self, assistant_id: str) -> None:
        self.client.beta.assistants.delete(assistant_id)
        logger.debug("Deleted assistant %s", assistant_id)

    def delete_thread(self, thread_id: str) -> None:
        self.client.beta.threads.delete(thread_id)
        logger.debug("Deleted thread %s", thread_id)

    # ------------------------------------------------------------------
    # Messages and runs
    # ------------------------------------------------------------------

    def submit_message(self, thread_id: str, content: str) -> str:
        """Attach a user message to the thread and return its id."""
        message = self.client.beta.threads.messages.create(
            thread_id,
            role="user",
            content=content,
        )
        return message.id

    def start_run(self, thread_id: str, assistant_id: str) -> str:
        run = self.client.beta.threads.runs.create(
            thread_id=thread_id,
            assistant_id=assistant_id,
        )
        logger.debug("Started run %s on thread %s", run.id, thread_id)
        return run.id

    def retrieve_run(self, thread_id: str, run_id: str) -> Any:
        return self.client.beta.threads.runs.retrieve(run_id, thread_id=thread_id)

    def cancel_run(self, thread_id: str, run_id: str) -> Any:
        logger.info("Requesting cancellation of run %s", run_id)
        return self.client.beta.threads.runs.cancel(run_id, thread_id=thread_id)

    def latest_message(self, thread_id: str) -> Any:
        """
        Return the single most recent message of the thread.

        The list call is limited to one message (newest first); the message
        is then fetched by id so the caller gets the full object.
        """
        page = self.client.beta.threads.messages.list(
            thread_id,
            limit=1,
            order="desc",
        )
        if not page.data:
            raise EmptyResponseException(thread_id)

        message_id = page.data[0].id
        return self.retrieve_message(thread_id, message_id)

    def retrieve_message(self, thread_id: str, message_id: str) -> Any:
        return self.client.beta.threads.messages.retrieve(
            message_id,
            thread_id=thread_id,
        )

    def latest_message_text(self, thread_id: str) -> tuple[str, str]:
        """Return (message_id, text) for the newest message in the thread."""
        message = self.latest_message(thread_id)
        return message.id, extract_text(message, thread_id)

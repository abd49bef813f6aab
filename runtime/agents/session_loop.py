"""SessionLoop implementation.

Responsible for:
- creating the remote thread and assistant for this session
- reading user turns (one line at a time, or all of stdin at once)
- submitting each turn and waiting for its run via RunPoller
- printing the rendered reply
- archiving the exchange (conversation header together with the first turn,
  then one row per turn)
- deleting the remote thread and assistant when the session ends

Turns are handled strictly one after another. A run that fails, is
cancelled or expires, or a reply that cannot be displayed, is reported and
the session moves on; nothing is archived for that turn. Archive write
errors and remote-service errors are not caught here.
"""

import logging
import sys
from typing import Optional, TextIO

from core.render.text_renderer import render
from exceptions.exceptions import (
    EmptyResponseException,
    RunFailureException,
    UnsupportedContentException,
)
from ..models.conversation_models import ConversationHeader, Personality, Turn
from ..status import StatusSink

logger = logging.getLogger(__name__)

QUIT_COMMANDS = {"q", "quit", "exit"}
PROMPT = "> "
GREETING = "How may I assist you?"
BLANK_HINT = 'Type a message and press Enter, or "quit" to exit.'


class SessionLoop:
    """Drive one chat session against the assistant service.

    Parameters
    ----------
    client:
        AssistantClient for thread / assistant / message / run calls.
    poller:
        RunPoller used to wait for each run.
    personality:
        Assistant name, instructions and wrap width.
    model:
        Model identifier used when creating the assistant.
    archive:
        ConversationArchive, or None to disable archiving.
    status:
        StatusSink for prompts and progress.
    stdin, stdout, stderr:
        Streams for user input, rendered replies and error reports.
        Default to the sys streams.
    blank_hint_after:
        Number of consecutive blank lines after which a usage hint is shown.
    """

    def __init__(
        self,
        client,
        poller,
        personality: Personality,
        model: str,
        archive=None,
        status: Optional[StatusSink] = None,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        blank_hint_after: int = 3,
    ) -> None:
        self.client = client
        self.poller = poller
        self.personality = personality
        self.model = model
        self.archive = archive
        self.status = status or StatusSink()
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        self.blank_hint_after = blank_hint_after

        self.thread_id: Optional[str] = None
        self.assistant_id: Optional[str] = None
        self.interactive = False

        # Session state
        self.header_written = False
        self.blank_lines = 0

    @property
    def conversation_id(self) -> Optional[str]:
        """Archived conversations are keyed by the assistant id."""
        return self.assistant_id

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Create the remote thread and assistant."""
        self.thread_id = self.client.create_thread()
        self.assistant_id = self.client.create_assistant(
            name=self.personality.name,
            instructions=self.personality.instructions,
            model=self.model,
        )
        logger.info(
            "Session started: assistant=%s thread=%s model=%s",
            self.assistant_id,
            self.thread_id,
            self.model,
        )

    def close(self) -> None:
        """Delete the remote assistant and thread created by start()."""
        if self.assistant_id is not None:
            try:
                self.client.delete_assistant(self.assistant_id)
            except Exception as e:
                logger.warning("Could not delete assistant %s: %s", self.assistant_id, e)
        if self.thread_id is not None:
            try:
                self.client.delete_thread(self.thread_id)
            except Exception as e:
                logger.warning("Could not delete thread %s: %s", self.thread_id, e)
        self.assistant_id = None
        self.thread_id = None

    def __enter__(self) -> "SessionLoop":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    def run_interactive(self) -> None:
        """Read and answer one line at a time until quit or end of input."""
        self.interactive = True
        self._print_lines(render(GREETING, self.personality.wrap_width))
        self.stdout.write("\n")
        self.stdout.flush()

        while True:
            self.status.write(PROMPT)
            line = self.stdin.readline()
            if line == "":
                # End of input stream.
                self.status.end_partial()
                break
            # The user's Enter already ended the prompt line.
            self.status.partial = False

            text = line.strip()
            if text.lower() in QUIT_COMMANDS:
                break
            if not self._accept(text):
                continue

            self.handle_turn(text)

    def run_once(self, text: Optional[str] = None) -> Optional[Turn]:
        """Answer the whole of `text` (or of stdin) as a single turn."""
        self.interactive = False
        if text is None:
            text = self.stdin.read()
        text = text.strip()
        if not text:
            self._report("--- No input received. " + BLANK_HINT)
            return None
        return self.handle_turn(text)

    # ------------------------------------------------------------------
    # One exchange
    # ------------------------------------------------------------------

    def handle_turn(self, prompt: str) -> Optional[Turn]:
        """Submit `prompt`, wait for the reply, print it and archive it.

        Returns the archived Turn, or None if the run did not produce a
        displayable reply.
        """
        if self.thread_id is None or self.assistant_id is None:
            raise RuntimeError("Session not started: call start() first.")

        if self.interactive:
            self.stdout.write("\n")
            self.stdout.flush()

        self.client.submit_message(self.thread_id, prompt)
        run_id = self.client.start_run(self.thread_id, self.assistant_id)

        try:
            outcome = self.poller.poll_until_terminal(self.thread_id, run_id)
        except RunFailureException as e:
            label = e.kind.value.capitalize()
            message = f"--- Run {label}"
            if e.detail:
                message += f": {e.detail}"
            self._report(message)
            return None
        except (UnsupportedContentException, EmptyResponseException) as e:
            self._report(f"--- Cannot display reply: {e}")
            return None

        self._print_lines(render(outcome.text, self.personality.wrap_width))
        if self.interactive:
            self.stdout.write("\n")
            self.stdout.flush()

        turn = Turn(
            conversation_id=self.conversation_id,
            prompt=prompt,
            response=outcome.text,
        )
        self._archive(turn)
        return turn

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _accept(self, text: str) -> bool:
        """Count blank lines; return True when `text` is a real turn."""
        if text:
            self.blank_lines = 0
            return True

        self.blank_lines += 1
        if self.blank_hint_after > 0 and self.blank_lines >= self.blank_hint_after:
            self.status.line(BLANK_HINT)
            self.blank_lines = 0
        return False

    def _archive(self, turn: Turn) -> None:
        if self.archive is None:
            return
        if self.header_written:
            self.archive.record_turn(turn)
            return
        # Header and first turn commit together; no header without a turn.
        self.archive.record_first_turn(ConversationHeader(id=turn.conversation_id), turn)
        self.header_written = True

    def _print_lines(self, lines) -> None:
        for line in lines:
            self.stdout.write(line + "\n")
        self.stdout.flush()

    def _report(self, message: str) -> None:
        """Show a problem to the user, even when the status sink is silent."""
        logger.info(message)
        self.status.end_partial()
        self.stderr.write(message + "\n")
        self.stderr.flush()

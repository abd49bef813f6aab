"""
Custom exceptions for Morpha.

These exceptions are intentionally simple and descriptive.
They are used across:

  - core/api/       (remote assistant responses)
  - core/runs/      (run polling outcomes)
  - runtime/store/  (conversation archive)
  - cli/            (startup checks)

Placing them in a top-level package (exceptions/) avoids circular imports
and keeps exception types consistent across modules.
"""


class RunFailureException(Exception):
    """
    Raised when a run reaches a terminal state other than completed.

    `kind` is one of "failed", "cancelled" or "expired" (see
    core.runs.run_state.RunFailureKind). `detail` carries whatever
    diagnostic text the service reported, so it can be shown to the user.
    """

    def __init__(self, kind, run_id, detail=None):
        self.kind = kind
        self.run_id = run_id
        self.detail = detail or ""
        label = getattr(kind, "value", kind)
        msg = f"Run {run_id} {label}"
        if self.detail:
            msg += f": {self.detail}"
        super().__init__(msg)


class UnsupportedContentException(Exception):
    """
    Raised when an assistant message carries content that cannot be shown
    in a terminal (e.g. an image file).

    The exception names the unsupported content kind.
    """

    def __init__(self, content_kind):
        self.content_kind = content_kind
        super().__init__(
            f"Unsupported message content '{content_kind}': "
            "only text can be displayed in the terminal."
        )


class EmptyResponseException(Exception):
    """Raised when a completed run leaves no readable assistant message."""

    def __init__(self, thread_id, details=None):
        self.thread_id = thread_id
        self.details = details or "No assistant message found."
        super().__init__(f"Empty response in thread {thread_id}: {self.details}")


class UnknownRunStatusException(Exception):
    """Raised when the service reports a run status we do not recognize."""

    def __init__(self, status):
        self.status = status
        super().__init__(f"Unknown run status: {status!r}")


class ArchiveStorageException(Exception):
    """
    Raised when the conversation archive cannot write a record.

    The underlying sqlite3 error (if any) is kept on `cause`.
    """

    def __init__(self, message, cause=None):
        self.cause = cause
        super().__init__(message)


class DuplicateConversationException(ArchiveStorageException):
    """Raised when a conversation header with the same id already exists."""

    def __init__(self, conversation_id, cause=None):
        self.conversation_id = conversation_id
        super().__init__(
            f"Conversation already recorded: {conversation_id}", cause=cause
        )


class ProfileNotFoundException(Exception):
    """Raised when the personality/instructions file cannot be read."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"Personality profile not found: {path}")

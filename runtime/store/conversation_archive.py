"""Conversation archive for Morpha.

Every successful exchange is written to a local SQLite database so that
past conversations can be searched later with any SQLite tool.

Layout:

    conversations(id, created_at)
    messages(id, conversation_id, created_at, prompt, response)

`conversations.id` is the assistant id of the session. `created_at` values
are milliseconds since the epoch.

The archive only performs plain inserts; record_first_turn() stores a header
and its first turn in one transaction. Ordering (header before the first
turn, header written once) is the session loop's job; the archive reports a
duplicate header as an error and does not check that a turn's conversation
exists.
"""

import logging
import sqlite3
from pathlib import Path
from typing import List, Union

from exceptions.exceptions import ArchiveStorageException, DuplicateConversationException
from ..models.conversation_models import ConversationHeader, Turn

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS conversations (
    id          TEXT PRIMARY KEY NOT NULL,
    created_at  REAL NOT NULL
);

CREATE TABLE IF NOT EXISTS messages (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    conversation_id TEXT NOT NULL REFERENCES conversations(id),
    created_at      REAL NOT NULL,
    prompt          TEXT NOT NULL,
    response        TEXT NOT NULL
);
"""


class ConversationArchive:
    """SQLite-backed, append-only store of conversations and turns.

    Parameters
    ----------
    db_path:
        Database file. Parent directories are created if needed.
        ":memory:" gives a throwaway in-memory database.
    """

    def __init__(self, db_path: Union[str, Path]) -> None:
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)
            self.db_path = str(Path(self.db_path).expanduser())

        try:
            self._conn = sqlite3.connect(self.db_path)
            self._conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            raise ArchiveStorageException(
                f"Cannot open conversation archive at {self.db_path}: {e}", cause=e
            )
        logger.debug("Opened conversation archive at %s", self.db_path)

    def __enter__(self) -> "ConversationArchive":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._conn.close()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def record_header(self, header: ConversationHeader) -> None:
        """Insert the conversation row.

        Raises DuplicateConversationException if the id is already stored.
        """
        try:
            with self._conn:
                self._insert_header(header)
        except sqlite3.IntegrityError as e:
            raise DuplicateConversationException(header.id, cause=e)
        except sqlite3.Error as e:
            raise ArchiveStorageException(
                f"Failed to record conversation {header.id}: {e}", cause=e
            )
        logger.info("Recorded conversation %s", header.id)

    def record_turn(self, turn: Turn) -> None:
        """Append one prompt/response exchange."""
        try:
            with self._conn:
                self._insert_turn(turn)
        except sqlite3.Error as e:
            raise ArchiveStorageException(
                f"Failed to record turn for conversation {turn.conversation_id}: {e}",
                cause=e,
            )
        logger.info("Recorded turn for conversation %s", turn.conversation_id)

    def record_first_turn(self, header: ConversationHeader, turn: Turn) -> None:
        """Insert the conversation row and its first turn in one transaction.

        Either both rows are stored or neither is, so a failed turn never
        leaves a conversation without messages behind.
        """
        try:
            with self._conn:
                self._insert_header(header)
                self._insert_turn(turn)
        except sqlite3.IntegrityError as e:
            raise DuplicateConversationException(header.id, cause=e)
        except sqlite3.Error as e:
            raise ArchiveStorageException(
                f"Failed to record conversation {header.id}: {e}", cause=e
            )
        logger.info("Recorded conversation %s with its first turn", header.id)

    def _insert_header(self, header: ConversationHeader) -> None:
        self._conn.execute(
            "INSERT INTO conversations (id, created_at) VALUES (?, ?)",
            (header.id, header.created_at),
        )

    def _insert_turn(self, turn: Turn) -> None:
        self._conn.execute(
            "INSERT INTO messages (conversation_id, created_at, prompt, response) "
            "VALUES (?, ?, ?, ?)",
            (turn.conversation_id, turn.created_at, turn.prompt, turn.response),
        )

    # ------------------------------------------------------------------
    # Reads (debugging / tests)
    # ------------------------------------------------------------------

    def count_conversations(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM conversations").fetchone()[0]

    def count_turns(self, conversation_id: str) -> int:
        return self._conn.execute(
            "SELECT COUNT(*) FROM messages WHERE conversation_id = ?",
            (conversation_id,),
        ).fetchone()[0]

    def list_turns(self, conversation_id: str) -> List[Turn]:
        """Turns of a conversation, oldest first."""
        rows = self._conn.execute(
            "SELECT conversation_id, created_at, prompt, response FROM messages "
            "WHERE conversation_id = ? ORDER BY id",
            (conversation_id,),
        ).fetchall()
        return [
            Turn(conversation_id=r[0], created_at=r[1], prompt=r[2], response=r[3])
            for r in rows
        ]

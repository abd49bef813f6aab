"""
Conversation-related models for the Morpha runtime.

These describe:
- ConversationHeader: one archived session (keyed by assistant id)
- Turn: one archived prompt/response exchange
- Personality: assistant name, instructions and rendering width
"""

import time
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from exceptions.exceptions import ProfileNotFoundException


def current_msec() -> float:
    """Wall-clock time in milliseconds since the epoch."""
    return float(int(time.time() * 1000))


class ConversationHeader(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    created_at: float = Field(default_factory=current_msec)


class Turn(BaseModel):
    model_config = ConfigDict(frozen=True)

    conversation_id: str
    prompt: str
    response: str
    created_at: float = Field(default_factory=current_msec)


class Personality(BaseModel):
    """
    How the assistant presents itself.

    `instructions` is sent to the service when the assistant is created.
    `wrap_width` of None means raw output (no word wrap).
    """
    name: str = "Morpha"
    instructions: str = ""
    wrap_width: Optional[int] = 80

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        name: str = "Morpha",
        wrap_width: Optional[int] = 80,
    ) -> "Personality":
        """Build a personality whose instructions are the file's contents."""
        path = Path(path).expanduser()
        if not path.is_file():
            raise ProfileNotFoundException(str(path))
        instructions = path.read_text(encoding="utf-8")
        return cls(name=name, instructions=instructions, wrap_width=wrap_width)

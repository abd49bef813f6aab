"""
core.render.text_renderer

Reflow assistant replies for the terminal.

Plain lines are word-wrapped to a fixed column width; fenced code blocks
(```) pass through untouched, delimiters included. Each input line is
wrapped on its own: consecutive lines are never merged into a paragraph.
"""

from __future__ import annotations

from typing import List, Optional

FENCE = "```"

DEFAULT_WIDTH = 80


def is_fence(line: str) -> bool:
    """Return True if the line opens or closes a fenced code block."""
    return line.lstrip().startswith(FENCE)


def split_lines(text: str) -> List[str]:
    r"""
    Split on line terminators only ("\n", with "\r\n" handled too).

    Unlike str.splitlines(), form feeds, vertical tabs and Unicode line
    separators stay inside their line, so fenced code is not altered.
    A single trailing newline does not produce an extra empty line.
    """
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def wrap_line(line: str, width: Optional[int]) -> List[str]:
    """
    Greedy word wrap of a single line.

    Words are never split: a word longer than `width` (or any word when
    width <= 0) ends up alone on its own line. A blank line yields a single
    empty line. `width=None` returns the line unchanged.
    """
    if width is None:
        return [line]

    words = line.split()
    if not words:
        return [""]

    lines: List[str] = []
    current = ""
    for word in words:
        if not current:
            current = word
        elif len(current) + 1 + len(word) > width:
            lines.append(current)
            current = word
        else:
            current = f"{current} {word}"
    lines.append(current)
    return lines


def render(text: str, width: Optional[int] = DEFAULT_WIDTH) -> List[str]:
    """
    Render `text` into terminal lines.

    Parameters
    ----------
    text : str
        Raw assistant output.
    width : int, optional
        Column width in characters. None disables wrapping ("raw" mode).

    Returns
    -------
    List[str]
        Rendered lines in order. Empty input gives an empty list.

    An unterminated fence leaves every remaining line verbatim.
    """
    rendered: List[str] = []
    in_fence = False

    for line in split_lines(text):
        if is_fence(line):
            in_fence = not in_fence
            rendered.append(line)
        elif in_fence:
            rendered.append(line)
        else:
            rendered.extend(wrap_line(line, width))

    return rendered


def render_text(text: str, width: Optional[int] = DEFAULT_WIDTH) -> str:
    """Same as render(), joined with newlines."""
    return "\n".join(render(text, width))

"""In-process rich-text document implementing the host editor contract.

Content is kept the way Quill keeps it: a flat string that always ends
with one implicit newline, so an empty document has length 1. Positions
are character offsets into that string.
"""

import html
from dataclasses import dataclass, field
from typing import Protocol

from sketchtext.utils.logger import get_logger

logger = get_logger(__name__)

SOURCE_USER = "user"
SOURCE_API = "api"


class HostEditor(Protocol):
    """The editor operations the merge controller relies on."""

    def get_length(self) -> int: ...

    def insert_text(self, position: int, text: str, source: str = SOURCE_API) -> None: ...

    def set_selection(self, position: int) -> None: ...

    @property
    def content(self) -> str: ...


@dataclass(frozen=True)
class TextChange:
    """A recorded insertion, tagged with who made it."""

    position: int
    text: str
    source: str


@dataclass
class RichTextDocument:
    """Plain-text backed document rendering to paragraph HTML.

    Args:
        text: Initial visible text, without the trailing terminator.
    """

    text: str = ""
    selection: int = 0
    changes: list[TextChange] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.text.endswith("\n"):
            self.text += "\n"

    def get_length(self) -> int:
        return len(self.text)

    def get_text(self) -> str:
        """Return the visible text, without the trailing terminator."""
        return self.text[:-1]

    def insert_text(self, position: int, text: str, source: str = SOURCE_API) -> None:
        """Insert ``text`` before the character at ``position``.

        Positions past the terminator are clamped so the terminator always
        stays last.

        Args:
            position: Character offset to insert at.
            text: Text to insert.
            source: Origin of the edit, ``"user"`` or ``"api"``.
        """
        position = min(max(position, 0), len(self.text) - 1)
        self.text = self.text[:position] + text + self.text[position:]
        if self.selection >= position:
            self.selection += len(text)
        self.changes.append(TextChange(position=position, text=text, source=source))
        logger.debug("Inserted %d chars at %d (%s)", len(text), position, source)

    def set_selection(self, position: int) -> None:
        """Place the cursor, clamped to the document bounds."""
        self.selection = min(max(position, 0), self.get_length())

    @property
    def content(self) -> str:
        """Serialized HTML, one ``<p>`` per line."""
        paragraphs = []
        for line in self.get_text().split("\n"):
            body = html.escape(line) if line else "<br>"
            paragraphs.append(f"<p>{body}</p>")
        return "".join(paragraphs)

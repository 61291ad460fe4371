"""Merging recognized text into the host document."""

from sketchtext.utils.logger import get_logger

from .document import SOURCE_USER, HostEditor

logger = get_logger(__name__)

PARAGRAPH_SEPARATOR = "\n\n"


class DocumentMergeController:
    """Appends recognized text to the end of a document.

    Text goes in before the document's implicit trailing terminator. A
    blank-line separator keeps it off the last existing line, except in an
    empty document where it would only add a leading blank line.
    """

    def merge(self, document: HostEditor, text: str) -> str | None:
        """Insert ``text`` at the end of ``document`` and move the cursor after it.

        Args:
            document: Host editor to modify.
            text: Recognized text; surrounding whitespace is dropped.

        Returns:
            The document's serialized content after the edit, or ``None``
            if ``text`` was blank and nothing changed.
        """
        trimmed = text.strip()
        if not trimmed:
            logger.debug("Nothing to merge, recognized text is blank")
            return None

        length = document.get_length()
        prefix = PARAGRAPH_SEPARATOR if length > 1 else ""
        inserted = prefix + trimmed

        document.insert_text(length - 1, inserted, source=SOURCE_USER)
        document.set_selection(length + len(inserted))

        logger.info("Merged %d characters at position %d", len(inserted), length - 1)
        return document.content

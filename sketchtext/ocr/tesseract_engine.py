"""Tesseract OCR engine handle for handwriting snapshots.

An engine is created for one language, recognizes one or more images, and
is terminated when its owner is done with it. ``pytesseract`` spawns a
process per call, so termination only closes the handle.
"""

from dataclasses import dataclass
from typing import Callable, Protocol

import pytesseract
from PIL import Image

from sketchtext.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class OCRResult:
    """Text recognized in one image."""

    text: str
    language: str
    confidence: float
    word_count: int


class OCREngine(Protocol):
    """A language-scoped OCR engine instance."""

    def recognize(self, image: Image.Image) -> OCRResult: ...

    def terminate(self) -> None: ...


EngineFactory = Callable[[str], OCREngine]


class EngineClosedError(RuntimeError):
    """Raised when a terminated engine is asked to recognize an image."""


class TesseractEngine:
    """OCR engine backed by the Tesseract executable.

    Args:
        lang: Tesseract language code, e.g. ``"eng"``.
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        psm: Tesseract page segmentation mode.
    """

    def __init__(
        self,
        lang: str = "eng",
        tesseract_cmd: str | None = None,
        psm: int = 3,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.lang = lang
        self.psm = psm
        self.closed = False

    def recognize(self, image: Image.Image) -> OCRResult:
        """Recognize the text in an image.

        Args:
            image: Prepared grayscale image.

        Returns:
            OCRResult with the full text and average word confidence.

        Raises:
            EngineClosedError: If the engine was already terminated.
        """
        if self.closed:
            raise EngineClosedError("Tesseract engine has been terminated")

        config = f"--psm {self.psm}"
        text = pytesseract.image_to_string(image, lang=self.lang, config=config)
        data = pytesseract.image_to_data(
            image,
            lang=self.lang,
            config=config,
            output_type=pytesseract.Output.DICT,
        )

        total_conf = 0.0
        word_count = 0
        for conf, word in zip(data["conf"], data["text"]):
            if float(conf) > 0 and word.strip():
                total_conf += float(conf)
                word_count += 1

        avg_conf = (total_conf / word_count / 100.0) if word_count > 0 else 0.0

        logger.info(
            "OCR recognized %d words with average confidence %.2f",
            word_count,
            avg_conf,
        )
        return OCRResult(
            text=text,
            language=self.lang,
            confidence=avg_conf,
            word_count=word_count,
        )

    def terminate(self) -> None:
        """Release the engine. Further recognition calls fail."""
        self.closed = True
        logger.debug("Tesseract engine (%s) terminated", self.lang)


def tesseract_factory(
    tesseract_cmd: str | None = None, psm: int = 3
) -> EngineFactory:
    """Build an engine factory for the given Tesseract setup.

    The returned factory verifies that Tesseract is installed before
    handing out an engine, so a missing binary fails at acquisition.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
        psm: Tesseract page segmentation mode.

    Returns:
        Callable creating a :class:`TesseractEngine` for a language code.
    """

    def create(lang: str) -> TesseractEngine:
        engine = TesseractEngine(lang=lang, tesseract_cmd=tesseract_cmd, psm=psm)
        version = pytesseract.get_tesseract_version()
        logger.debug("Created Tesseract %s engine for '%s'", version, lang)
        return engine

    return create

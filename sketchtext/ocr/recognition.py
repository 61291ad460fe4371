"""Asynchronous recognition of surface snapshots.

Each call acquires a fresh engine for the configured language and
terminates it before returning, whether recognition succeeded or not.
Image preparation and engine calls run in worker threads so the event
loop stays free to handle drawing input.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from PIL import Image

from sketchtext.canvas.surface import Snapshot
from sketchtext.preprocessing.snapshot import prepare_for_ocr
from sketchtext.utils.config import PreprocessingConfig
from sketchtext.utils.logger import get_logger

from .tesseract_engine import EngineFactory, OCREngine

logger = get_logger(__name__)


class RecognitionError(Exception):
    """Raised when the OCR engine cannot be created or fails to recognize."""


class RecognitionService:
    """Turns snapshots into text using short-lived OCR engines.

    The service does not serialize calls; callers must not overlap them
    if they need ordering.

    Args:
        engine_factory: Creates an engine for a language code.
        language: Language code passed to the factory.
        preprocessing: Snapshot preparation settings.
    """

    def __init__(
        self,
        engine_factory: EngineFactory,
        language: str = "eng",
        preprocessing: PreprocessingConfig | None = None,
    ) -> None:
        self.engine_factory = engine_factory
        self.language = language
        self.preprocessing = preprocessing or PreprocessingConfig()

    @asynccontextmanager
    async def _engine(self) -> AsyncIterator[OCREngine]:
        try:
            engine = await asyncio.to_thread(self.engine_factory, self.language)
        except Exception as exc:
            raise RecognitionError(
                f"Failed to start OCR engine for '{self.language}': {exc}"
            ) from exc

        try:
            yield engine
        finally:
            await asyncio.to_thread(engine.terminate)

    def _prepare(self, snapshot: Snapshot) -> Image.Image:
        return prepare_for_ocr(snapshot.to_image(), self.preprocessing)

    async def recognize(self, snapshot: Snapshot) -> str:
        """Recognize the text drawn in a snapshot.

        Args:
            snapshot: PNG export of the drawing surface.

        Returns:
            The raw recognized text, possibly empty or whitespace.

        Raises:
            RecognitionError: If the engine fails at any stage, from
                startup to termination.
        """
        logger.info(
            "Recognizing %dx%d snapshot (%s)",
            snapshot.width,
            snapshot.height,
            self.language,
        )
        try:
            image = await asyncio.to_thread(self._prepare, snapshot)
            async with self._engine() as engine:
                result = await asyncio.to_thread(engine.recognize, image)
        except RecognitionError:
            raise
        except Exception as exc:
            raise RecognitionError(f"Recognition failed: {exc}") from exc

        return result.text

"""A drawing panel wired to a document: the unit the API and CLI drive.

Gesture handlers are synchronous and never wait on recognition; only
:meth:`HandwritingSession.convert` suspends.
"""

from sketchtext.canvas.coordinates import Bounds, InputEvent, TouchEvent, map_event
from sketchtext.canvas.surface import StrokeSurface
from sketchtext.editor.document import RichTextDocument
from sketchtext.ocr.recognition import RecognitionService
from sketchtext.ocr.tesseract_engine import EngineFactory, tesseract_factory
from sketchtext.utils.config import AppConfig
from sketchtext.utils.logger import get_logger

from .orchestrator import ConversionResult, PipelineOrchestrator
from .state import PipelineState

logger = get_logger(__name__)


class HandwritingSession:
    """Owns the drawing surface and document of one user, plus their pipeline.

    Args:
        config: Application configuration.
        engine_factory: OCR engine factory. Defaults to Tesseract as
            configured in ``config.ocr``.
        document: Document to merge into. Defaults to an empty one.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        engine_factory: EngineFactory | None = None,
        document: RichTextDocument | None = None,
    ) -> None:
        self.config = config or AppConfig()
        if engine_factory is None:
            engine_factory = tesseract_factory(
                tesseract_cmd=self.config.ocr.tesseract_cmd,
                psm=self.config.ocr.psm,
            )
        self.surface = StrokeSurface(self.config.surface)
        self.document = document if document is not None else RichTextDocument()
        self.state = PipelineState()
        self.orchestrator = PipelineOrchestrator(
            recognizer=RecognitionService(
                engine_factory,
                language=self.config.ocr.default_lang,
                preprocessing=self.config.preprocessing,
            ),
            state=self.state,
            config=self.config.pipeline,
        )

    def initialize(self, container: Bounds) -> None:
        self.surface.initialize(container)

    def resize(self, container: Bounds) -> None:
        self.surface.resize(container)

    def clear(self) -> None:
        self.surface.clear()

    def pointer_down(self, event: InputEvent, bounds: Bounds) -> None:
        """Start a stroke where the event landed."""
        if not self.surface.is_initialized:
            return
        if not _has_position(event):
            logger.debug("Ignoring touch event without contact points")
            return
        self.surface.begin_stroke(map_event(event, bounds))
        if not self.state.is_processing:
            self.state.start_drawing()

    def pointer_move(self, event: InputEvent, bounds: Bounds) -> None:
        if not self.surface.is_drawing or not _has_position(event):
            return
        self.surface.extend_stroke(map_event(event, bounds))

    def pointer_up(self) -> None:
        if not self.surface.is_drawing:
            return
        self.surface.end_stroke()
        self.state.finish_drawing()

    async def convert(self) -> ConversionResult:
        """Recognize the drawing and merge it into the document."""
        return await self.orchestrator.run(self.surface, self.document)


def _has_position(event: InputEvent) -> bool:
    if isinstance(event, TouchEvent):
        return event.primary_touch() is not None
    return True

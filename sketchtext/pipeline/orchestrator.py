"""End-to-end conversion of a drawing into document text.

Drives one run of snapshot -> recognize -> merge, keeping the shared
:class:`PipelineState` in step and making sure no run leaves the
processing indicator on.
"""

import asyncio
from dataclasses import dataclass

from sketchtext.canvas.surface import StrokeSurface
from sketchtext.editor.document import HostEditor
from sketchtext.editor.merge import DocumentMergeController
from sketchtext.ocr.recognition import RecognitionService
from sketchtext.utils.config import PipelineConfig
from sketchtext.utils.logger import get_logger

from .state import PipelineState, PipelineStatus

logger = get_logger(__name__)


@dataclass
class ConversionResult:
    """Outcome of a single pipeline run."""

    outcome: PipelineStatus
    text: str = ""
    content: str | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.outcome is PipelineStatus.SUCCEEDED


class PipelineOrchestrator:
    """Runs snapshot export and recognition, then merges the text.

    Args:
        recognizer: Service turning snapshots into text.
        state: Shared status object updated by every run.
        merger: Controller inserting text into the document.
        config: Success display duration and user-facing error message.
    """

    def __init__(
        self,
        recognizer: RecognitionService,
        state: PipelineState,
        merger: DocumentMergeController | None = None,
        config: PipelineConfig | None = None,
    ) -> None:
        self.recognizer = recognizer
        self.state = state
        self.merger = merger or DocumentMergeController()
        self.config = config or PipelineConfig()
        self._revert_handle: asyncio.TimerHandle | None = None

    async def run(self, surface: StrokeSurface, document: HostEditor) -> ConversionResult:
        """Convert the current drawing to text and merge it into ``document``.

        Never raises. Failures are logged and reported through the state's
        error message; the result then has a FAILED outcome.

        Args:
            surface: Drawing surface to snapshot.
            document: Host editor receiving the recognized text.

        Returns:
            What happened during the run.
        """
        if not surface.is_initialized:
            logger.debug("Conversion skipped, surface not initialized")
            return ConversionResult(outcome=self.state.status)

        if self.state.is_processing:
            logger.warning("Conversion already in progress, ignoring request")
            return ConversionResult(outcome=PipelineStatus.PROCESSING)

        # The snapshot must only contain finished strokes.
        surface.end_stroke()
        self.state.finish_drawing()

        self._cancel_revert()
        self.state.start_processing()
        try:
            snapshot = surface.export_snapshot()
            text = await self.recognizer.recognize(snapshot)
            trimmed = text.strip()
            content = self.merger.merge(document, trimmed) if trimmed else None
        except Exception as exc:
            logger.error("Handwriting conversion failed: %s", exc)
            self.state.fail(self.config.error_message)
            return ConversionResult(
                outcome=PipelineStatus.FAILED,
                error=self.config.error_message,
            )
        else:
            self.state.succeed()
            self._schedule_revert()
            logger.info("Conversion succeeded with %d characters", len(trimmed))
            return ConversionResult(
                outcome=PipelineStatus.SUCCEEDED,
                text=trimmed,
                content=content,
            )
        finally:
            if self.state.status in (PipelineStatus.PROCESSING, PipelineStatus.FAILED):
                self.state.reset()

    def _schedule_revert(self) -> None:
        loop = asyncio.get_running_loop()
        self._revert_handle = loop.call_later(
            self.config.success_display_seconds, self._revert_success
        )

    def _cancel_revert(self) -> None:
        if self._revert_handle is not None:
            self._revert_handle.cancel()
            self._revert_handle = None

    def _revert_success(self) -> None:
        self._revert_handle = None
        if self.state.status is PipelineStatus.SUCCEEDED:
            self.state.reset()

"""Observable pipeline status shared between the pipeline and its UI.

:class:`PipelineState` is the only writer of the status. Transitions go
through its methods, which enforce the allowed moves and notify
subscribers after every change.
"""

from collections import deque
from collections.abc import Callable
from enum import StrEnum

from sketchtext.utils.logger import get_logger

logger = get_logger(__name__)


class PipelineStatus(StrEnum):
    """Overall progress from drawing through recognition to merge."""

    IDLE = "idle"
    DRAWING = "drawing"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_ALLOWED: dict[PipelineStatus, frozenset[PipelineStatus]] = {
    PipelineStatus.IDLE: frozenset({PipelineStatus.DRAWING, PipelineStatus.PROCESSING}),
    PipelineStatus.DRAWING: frozenset({PipelineStatus.IDLE}),
    PipelineStatus.PROCESSING: frozenset(
        {PipelineStatus.SUCCEEDED, PipelineStatus.FAILED, PipelineStatus.IDLE}
    ),
    PipelineStatus.SUCCEEDED: frozenset(
        {PipelineStatus.IDLE, PipelineStatus.DRAWING, PipelineStatus.PROCESSING}
    ),
    PipelineStatus.FAILED: frozenset(
        {PipelineStatus.IDLE, PipelineStatus.DRAWING, PipelineStatus.PROCESSING}
    ),
}

HISTORY_LIMIT = 64

StateListener = Callable[["PipelineState"], None]


class InvalidTransitionError(RuntimeError):
    """Raised when a status change is not allowed from the current status."""


class PipelineState:
    """Status holder with transition checks and change notification."""

    def __init__(self) -> None:
        self.status = PipelineStatus.IDLE
        self.error_message: str | None = None
        self.history: deque[PipelineStatus] = deque(
            [PipelineStatus.IDLE], maxlen=HISTORY_LIMIT
        )
        self._listeners: list[StateListener] = []

    @property
    def is_processing(self) -> bool:
        return self.status is PipelineStatus.PROCESSING

    @property
    def is_drawing(self) -> bool:
        return self.status is PipelineStatus.DRAWING

    @property
    def show_success(self) -> bool:
        return self.status is PipelineStatus.SUCCEEDED

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a callback run after every transition.

        A listener that raises is logged and skipped; the transition still
        completes.

        Returns:
            A function that removes the listener again.
        """
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _move(self, target: PipelineStatus) -> None:
        if target not in _ALLOWED[self.status]:
            raise InvalidTransitionError(
                f"Cannot move from {self.status} to {target}"
            )
        logger.debug("Pipeline status %s -> %s", self.status, target)
        self.status = target
        self.history.append(target)
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("State listener failed on %s", target)

    def start_drawing(self) -> None:
        """Enter DRAWING, replacing any success or failure display."""
        if self.status is PipelineStatus.DRAWING:
            return
        self._move(PipelineStatus.DRAWING)

    def finish_drawing(self) -> None:
        """Leave DRAWING. Does nothing in any other status."""
        if self.status is PipelineStatus.DRAWING:
            self._move(PipelineStatus.IDLE)

    def start_processing(self) -> None:
        """Enter PROCESSING. Only one recognition may be in flight."""
        self.error_message = None
        self._move(PipelineStatus.PROCESSING)

    def succeed(self) -> None:
        self._move(PipelineStatus.SUCCEEDED)

    def fail(self, message: str) -> None:
        """Enter FAILED and expose ``message`` to the user."""
        self.error_message = message
        self._move(PipelineStatus.FAILED)

    def reset(self) -> None:
        """Return to IDLE once a run or gesture is over."""
        if self.status is not PipelineStatus.IDLE:
            self._move(PipelineStatus.IDLE)

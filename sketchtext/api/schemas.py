"""Pydantic request/response schemas for the FastAPI endpoints."""

from enum import StrEnum

from pydantic import BaseModel, Field

from sketchtext.canvas.coordinates import Bounds, PointerEvent, TouchEvent, TouchPoint


class EventPhase(StrEnum):
    """Where in a gesture an input event belongs."""

    DOWN = "down"
    MOVE = "move"
    UP = "up"


class EventKind(StrEnum):
    """Input modality of an event."""

    POINTER = "pointer"
    TOUCH = "touch"


class BoundsModel(BaseModel):
    """Layout box in viewport coordinates."""

    left: float = 0.0
    top: float = 0.0
    width: float = Field(ge=0)
    height: float = Field(ge=0)

    def to_bounds(self) -> Bounds:
        return Bounds(left=self.left, top=self.top, width=self.width, height=self.height)


class TouchPointModel(BaseModel):
    """A single touch contact."""

    client_x: float
    client_y: float
    identifier: int = 0


class InputEventRequest(BaseModel):
    """A pointer or touch event with the surface's current bounds."""

    phase: EventPhase
    kind: EventKind = EventKind.POINTER
    client_x: float = 0.0
    client_y: float = 0.0
    touches: list[TouchPointModel] = Field(default_factory=list)
    changed_touches: list[TouchPointModel] = Field(default_factory=list)
    bounds: BoundsModel

    def to_event(self) -> PointerEvent | TouchEvent:
        if self.kind == EventKind.TOUCH:
            return TouchEvent(
                touches=tuple(TouchPoint(**t.model_dump()) for t in self.touches),
                changed_touches=tuple(
                    TouchPoint(**t.model_dump()) for t in self.changed_touches
                ),
            )
        return PointerEvent(client_x=self.client_x, client_y=self.client_y)


class SurfaceResponse(BaseModel):
    """Current drawing surface state."""

    initialized: bool
    width: int | None = None
    height: int | None = None
    is_drawing: bool = False
    has_ink: bool = False


class StatusResponse(BaseModel):
    """Current pipeline status."""

    status: str
    is_processing: bool
    show_success: bool
    error_message: str | None = None


class DocumentResponse(BaseModel):
    """Serialized document with its length and cursor."""

    content: str
    text: str
    length: int
    selection: int


class ConvertResponse(BaseModel):
    """Result of converting the drawing to text."""

    success: bool
    outcome: str
    text: str
    content: str | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool

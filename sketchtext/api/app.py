"""FastAPI application exposing a handwriting panel and its document.

The app hosts a single :class:`HandwritingSession`. Clients stream input
events to the drawing surface, then trigger a conversion and read back
the merged document.
"""

import shutil
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware

from sketchtext.pipeline.session import HandwritingSession
from sketchtext.utils.config import load_config
from sketchtext.utils.logger import get_logger

from .schemas import (
    BoundsModel,
    ConvertResponse,
    DocumentResponse,
    EventPhase,
    HealthResponse,
    InputEventRequest,
    StatusResponse,
    SurfaceResponse,
)

logger = get_logger(__name__)

VERSION = "1.0.0"

app = FastAPI(
    title="SketchText API",
    description="Convert hand-drawn strokes to text and merge them into a document",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_session: HandwritingSession | None = None


def get_session() -> HandwritingSession:
    """Return the shared session, creating it from configuration on first use."""
    global _session
    if _session is None:
        _session = HandwritingSession(load_config())
    return _session


SessionDep = Annotated[HandwritingSession, Depends(get_session)]


def _surface_response(session: HandwritingSession) -> SurfaceResponse:
    size = session.surface.size
    return SurfaceResponse(
        initialized=session.surface.is_initialized,
        width=size[0] if size else None,
        height=size[1] if size else None,
        is_drawing=session.surface.is_drawing,
        has_ink=session.surface.has_ink(),
    )


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health status."""
    return HealthResponse(
        status="healthy",
        version=VERSION,
        tesseract_available=shutil.which("tesseract") is not None,
    )


@app.post("/surface/initialize", response_model=SurfaceResponse)
async def initialize_surface(
    container: BoundsModel, session: SessionDep
) -> SurfaceResponse:
    """Create the drawing surface sized to its container."""
    session.initialize(container.to_bounds())
    return _surface_response(session)


@app.post("/surface/resize", response_model=SurfaceResponse)
async def resize_surface(container: BoundsModel, session: SessionDep) -> SurfaceResponse:
    """Resize the drawing surface. Drawn content is discarded."""
    session.resize(container.to_bounds())
    return _surface_response(session)


@app.post("/surface/events", response_model=SurfaceResponse)
async def handle_event(
    request: InputEventRequest, session: SessionDep
) -> SurfaceResponse:
    """Feed one pointer or touch event to the drawing surface."""
    bounds = request.bounds.to_bounds()
    event = request.to_event()

    if request.phase == EventPhase.DOWN:
        session.pointer_down(event, bounds)
    elif request.phase == EventPhase.MOVE:
        session.pointer_move(event, bounds)
    else:
        session.pointer_up()

    return _surface_response(session)


@app.post("/surface/clear", response_model=SurfaceResponse)
async def clear_surface(session: SessionDep) -> SurfaceResponse:
    """Erase everything drawn on the surface."""
    session.clear()
    return _surface_response(session)


@app.get("/surface/snapshot")
async def get_snapshot(session: SessionDep) -> Response:
    """Return the current drawing as a PNG image."""
    if not session.surface.is_initialized:
        raise HTTPException(status_code=400, detail="Drawing surface is not initialized")
    snapshot = session.surface.export_snapshot()
    return Response(content=snapshot.data, media_type="image/png")


@app.post("/convert", response_model=ConvertResponse)
async def convert_drawing(session: SessionDep) -> ConvertResponse:
    """Recognize the drawing and merge the text into the document."""
    if not session.surface.is_initialized:
        raise HTTPException(status_code=400, detail="Drawing surface is not initialized")

    result = await session.convert()
    if not result.success:
        logger.warning("Conversion request finished with outcome %s", result.outcome)
    return ConvertResponse(
        success=result.success,
        outcome=result.outcome.value,
        text=result.text,
        content=result.content,
        error=result.error,
    )


@app.get("/document", response_model=DocumentResponse)
async def get_document(session: SessionDep) -> DocumentResponse:
    """Return the rendered document with its length and cursor."""
    document = session.document
    return DocumentResponse(
        content=document.content,
        text=document.get_text(),
        length=document.get_length(),
        selection=document.selection,
    )


@app.get("/status", response_model=StatusResponse)
async def get_status(session: SessionDep) -> StatusResponse:
    """Return the pipeline status shown by busy and success indicators."""
    state = session.state
    return StatusResponse(
        status=state.status.value,
        is_processing=state.is_processing,
        show_success=state.show_success,
        error_message=state.error_message,
    )

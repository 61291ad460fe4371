"""Command-line interface for offline handwriting conversion.

Subcommands replay recorded strokes into a document or recognize an
image file directly; ``serve`` runs the HTTP API.
"""

import argparse
import asyncio
import io
import json
import sys
from pathlib import Path

import uvicorn
from PIL import Image

from sketchtext.canvas.coordinates import Bounds, PointerEvent
from sketchtext.canvas.surface import Snapshot
from sketchtext.editor.document import RichTextDocument
from sketchtext.ocr.recognition import RecognitionError, RecognitionService
from sketchtext.ocr.tesseract_engine import EngineFactory, tesseract_factory
from sketchtext.pipeline.orchestrator import ConversionResult
from sketchtext.pipeline.session import HandwritingSession
from sketchtext.utils.config import AppConfig, load_config
from sketchtext.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

DEFAULT_CONTAINER_WIDTH = 840

# Recorded points are already surface-local.
_ORIGIN = Bounds(left=0, top=0, width=0, height=0)


def load_strokes(path: Path) -> tuple[list[list[tuple[float, float]]], int]:
    """Read a stroke recording.

    The file holds ``{"width": <container width>, "strokes": [[[x, y], ...], ...]}``;
    a bare list of strokes is accepted too.

    Args:
        path: JSON stroke recording.

    Returns:
        Tuple of (strokes, container_width).

    Raises:
        ValueError: If the file is not a valid stroke recording.
    """
    raw = json.loads(path.read_text())
    if isinstance(raw, list):
        raw = {"strokes": raw}
    if not isinstance(raw, dict) or not isinstance(raw.get("strokes"), list):
        raise ValueError(f"{path} does not contain a 'strokes' list")

    strokes: list[list[tuple[float, float]]] = []
    for stroke in raw["strokes"]:
        points = [(float(p[0]), float(p[1])) for p in stroke]
        if points:
            strokes.append(points)
    return strokes, int(raw.get("width", DEFAULT_CONTAINER_WIDTH))


def replay_strokes(
    session: HandwritingSession, strokes: list[list[tuple[float, float]]]
) -> None:
    """Draw recorded strokes onto the session's surface as pointer gestures."""
    for stroke in strokes:
        first, *rest = stroke
        session.pointer_down(PointerEvent(*first), _ORIGIN)
        for point in rest:
            session.pointer_move(PointerEvent(*point), _ORIGIN)
        session.pointer_up()


def convert_strokes(
    strokes_path: Path,
    document_text: str = "",
    config: AppConfig | None = None,
    engine_factory: EngineFactory | None = None,
) -> tuple[ConversionResult, RichTextDocument]:
    """Replay a stroke recording and merge its recognized text.

    Args:
        strokes_path: JSON stroke recording.
        document_text: Existing document text to merge into.
        config: Application configuration. Loaded from disk if omitted.
        engine_factory: OCR engine factory. Defaults to Tesseract.

    Returns:
        Tuple of (conversion_result, document).
    """
    config = config or load_config()
    strokes, width = load_strokes(strokes_path)
    document = RichTextDocument(document_text)
    session = HandwritingSession(config, engine_factory=engine_factory, document=document)

    session.initialize(Bounds(left=0, top=0, width=width, height=config.surface.height))
    replay_strokes(session, strokes)
    logger.info("Replayed %d strokes from %s", len(strokes), strokes_path.name)

    result = asyncio.run(session.convert())
    return result, document


def recognize_image(
    image_path: Path,
    config: AppConfig | None = None,
    engine_factory: EngineFactory | None = None,
) -> str:
    """Recognize the handwriting in an image file.

    Args:
        image_path: Raster image to recognize.
        config: Application configuration. Loaded from disk if omitted.
        engine_factory: OCR engine factory. Defaults to Tesseract.

    Returns:
        The recognized text with surrounding whitespace removed.

    Raises:
        RecognitionError: If recognition fails.
    """
    config = config or load_config()
    if engine_factory is None:
        engine_factory = tesseract_factory(config.ocr.tesseract_cmd, config.ocr.psm)

    with Image.open(image_path) as img:
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        snapshot = Snapshot(data=buf.getvalue(), width=img.width, height=img.height)

    service = RecognitionService(
        engine_factory,
        language=config.ocr.default_lang,
        preprocessing=config.preprocessing,
    )
    return asyncio.run(service.recognize(snapshot)).strip()


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="SketchText handwriting converter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=Path, help="YAML configuration file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    convert_parser = subparsers.add_parser(
        "convert", help="Replay recorded strokes and merge the recognized text"
    )
    convert_parser.add_argument("strokes", type=Path, help="JSON stroke recording")
    convert_parser.add_argument(
        "-d", "--document", type=Path, help="Text file with existing document content"
    )
    convert_parser.add_argument("-o", "--output", type=Path, help="Output HTML file")

    recognize_parser = subparsers.add_parser(
        "recognize", help="Recognize handwriting in an image file"
    )
    recognize_parser.add_argument("image", type=Path, help="Image file to recognize")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")

    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(config.log_level)

    if args.command == "convert":
        if not args.strokes.exists():
            print(f"Error: {args.strokes} does not exist", file=sys.stderr)
            sys.exit(1)
        document_text = args.document.read_text() if args.document else ""
        try:
            result, document = convert_strokes(args.strokes, document_text, config)
        except ValueError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)
        if not result.success:
            print(f"Error: {result.error}", file=sys.stderr)
            sys.exit(1)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(document.content)
            print(f"Output written to {args.output}")
        else:
            print(document.content)
    elif args.command == "recognize":
        if not args.image.exists():
            print(f"Error: {args.image} does not exist", file=sys.stderr)
            sys.exit(1)
        try:
            print(recognize_image(args.image, config))
        except RecognitionError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)
    elif args.command == "serve":
        uvicorn.run("sketchtext.api.app:app", host=args.host, port=args.port)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()

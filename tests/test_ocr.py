"""Tests for the Tesseract engine and the recognition service."""

import asyncio
import io
import threading
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from conftest import FakeEngineFactory
from sketchtext.canvas.coordinates import Point
from sketchtext.canvas.surface import Snapshot, StrokeSurface
from sketchtext.ocr.recognition import RecognitionError, RecognitionService
from sketchtext.ocr.tesseract_engine import (
    EngineClosedError,
    OCRResult,
    TesseractEngine,
    tesseract_factory,
)
from sketchtext.utils.config import PreprocessingConfig


def _mock_tesseract_data() -> dict:
    """Create mock pytesseract output data."""
    return {
        "text": ["", "Hello", "World", "", "  "],
        "conf": [-1, 95, 85, -1, 40],
    }


def _blank_snapshot(width: int = 40, height: int = 20) -> Snapshot:
    img = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return Snapshot(data=buf.getvalue(), width=width, height=height)


class TestTesseractEngine:
    """Tests for the TesseractEngine class (mocked)."""

    @patch("sketchtext.ocr.tesseract_engine.pytesseract")
    def test_recognize(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.image_to_string.return_value = "Hello World\n"
        mock_pytesseract.image_to_data.return_value = _mock_tesseract_data()
        mock_pytesseract.Output.DICT = "dict"

        engine = TesseractEngine(lang="eng", psm=7)
        result = engine.recognize(Image.new("L", (50, 20), 255))

        assert isinstance(result, OCRResult)
        assert result.text == "Hello World\n"
        assert result.word_count == 2
        assert result.confidence == pytest.approx(0.9)
        assert result.language == "eng"
        _, kwargs = mock_pytesseract.image_to_string.call_args
        assert kwargs == {"lang": "eng", "config": "--psm 7"}

    @patch("sketchtext.ocr.tesseract_engine.pytesseract")
    def test_recognize_nothing(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.image_to_string.return_value = ""
        mock_pytesseract.image_to_data.return_value = {"text": [], "conf": []}

        result = TesseractEngine().recognize(Image.new("L", (50, 20), 255))

        assert result.text == ""
        assert result.word_count == 0
        assert result.confidence == 0.0

    @patch("sketchtext.ocr.tesseract_engine.pytesseract")
    def test_terminated_engine_refuses_work(self, mock_pytesseract: MagicMock) -> None:
        engine = TesseractEngine()
        engine.terminate()

        with pytest.raises(EngineClosedError):
            engine.recognize(Image.new("L", (10, 10), 255))
        mock_pytesseract.image_to_string.assert_not_called()

    @patch("sketchtext.ocr.tesseract_engine.pytesseract")
    def test_custom_tesseract_cmd(self, mock_pytesseract: MagicMock) -> None:
        TesseractEngine(tesseract_cmd="/opt/tesseract")
        assert mock_pytesseract.pytesseract.tesseract_cmd == "/opt/tesseract"

    @patch("sketchtext.ocr.tesseract_engine.pytesseract")
    def test_factory_checks_installation(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.get_tesseract_version.return_value = "5.3.0"

        engine = tesseract_factory(psm=6)("deu")

        assert engine.lang == "deu"
        assert engine.psm == 6
        mock_pytesseract.get_tesseract_version.assert_called_once()

    @patch("sketchtext.ocr.tesseract_engine.pytesseract")
    def test_factory_missing_binary(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.get_tesseract_version.side_effect = OSError("not found")

        with pytest.raises(OSError):
            tesseract_factory()("eng")


class TestRecognitionService:
    """Tests for scoped engine use in RecognitionService."""

    def test_returns_text(self) -> None:
        factory = FakeEngineFactory(text="  hello\n")
        service = RecognitionService(factory, language="fra")

        text = asyncio.run(service.recognize(_blank_snapshot()))

        assert text == "  hello\n"
        assert factory.languages == ["fra"]

    def test_engine_terminated_after_success(self) -> None:
        factory = FakeEngineFactory()
        service = RecognitionService(factory)

        asyncio.run(service.recognize(_blank_snapshot()))
        asyncio.run(service.recognize(_blank_snapshot()))

        assert len(factory.engines) == 2
        assert [e.terminate_calls for e in factory.engines] == [1, 1]

    def test_engine_terminated_after_failure(self) -> None:
        factory = FakeEngineFactory(error=RuntimeError("engine crashed"))
        service = RecognitionService(factory)

        with pytest.raises(RecognitionError) as exc_info:
            asyncio.run(service.recognize(_blank_snapshot()))

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert factory.engines[0].terminate_calls == 1

    def test_engine_creation_failure(self) -> None:
        factory = MagicMock(side_effect=OSError("tesseract not installed"))
        service = RecognitionService(factory)

        with pytest.raises(RecognitionError, match="Failed to start OCR engine"):
            asyncio.run(service.recognize(_blank_snapshot()))

    def test_engine_receives_prepared_image(self) -> None:
        factory = FakeEngineFactory()
        service = RecognitionService(factory, preprocessing=PreprocessingConfig(margin=5))

        asyncio.run(service.recognize(_blank_snapshot(40, 20)))

        image = factory.engines[0].images[0]
        assert image.mode == "L"
        assert image.size == (50, 30)

    def test_drawn_strokes_reach_engine_as_dark_ink(
        self, surface: StrokeSurface
    ) -> None:
        surface.begin_stroke(Point(10, 10))
        surface.extend_stroke(Point(200, 10))
        factory = FakeEngineFactory()
        service = RecognitionService(factory, preprocessing=PreprocessingConfig(margin=0))

        asyncio.run(service.recognize(surface.export_snapshot()))

        image = factory.engines[0].images[0]
        assert image.getpixel((100, 10)) == 0
        assert image.getpixel((100, 300)) == 255

    def test_undecodable_snapshot(self) -> None:
        factory = FakeEngineFactory()
        service = RecognitionService(factory)
        bad = Snapshot(data=b"not an image", width=1, height=1)

        with pytest.raises(RecognitionError):
            asyncio.run(service.recognize(bad))
        assert factory.engines == []

    def test_preparation_runs_off_event_loop_thread(self) -> None:
        service = RecognitionService(FakeEngineFactory())
        loop_thread = threading.get_ident()
        prepared_on: list[int] = []

        def record_thread(image: Image.Image, config: PreprocessingConfig) -> Image.Image:
            prepared_on.append(threading.get_ident())
            return image

        with patch(
            "sketchtext.ocr.recognition.prepare_for_ocr", side_effect=record_thread
        ):
            asyncio.run(service.recognize(_blank_snapshot()))

        assert len(prepared_on) == 1
        assert prepared_on[0] != loop_thread

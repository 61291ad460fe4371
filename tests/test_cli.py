"""Tests for the command-line interface."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image, ImageDraw

from conftest import FakeEngineFactory
from sketchtext.cli import convert_strokes, load_strokes, main, recognize_image
from sketchtext.editor.document import RichTextDocument
from sketchtext.ocr.recognition import RecognitionError
from sketchtext.pipeline.orchestrator import ConversionResult
from sketchtext.pipeline.state import PipelineStatus
from sketchtext.utils.config import AppConfig


def _write_strokes(path: Path, payload: object) -> Path:
    path.write_text(json.dumps(payload))
    return path


class TestLoadStrokes:
    """Tests for reading stroke recordings."""

    def test_object_format(self, tmp_path: Path) -> None:
        path = _write_strokes(
            tmp_path / "s.json", {"width": 500, "strokes": [[[1, 2], [3, 4]], []]}
        )
        strokes, width = load_strokes(path)
        assert strokes == [[(1.0, 2.0), (3.0, 4.0)]]
        assert width == 500

    def test_bare_list_uses_default_width(self, tmp_path: Path) -> None:
        path = _write_strokes(tmp_path / "s.json", [[[1, 2]]])
        strokes, width = load_strokes(path)
        assert strokes == [[(1.0, 2.0)]]
        assert width == 840

    def test_invalid_recording(self, tmp_path: Path) -> None:
        path = _write_strokes(tmp_path / "s.json", {"points": []})
        with pytest.raises(ValueError):
            load_strokes(path)


class TestConvertStrokes:
    """Tests for replaying strokes through the pipeline."""

    def test_merges_into_existing_text(self, tmp_path: Path) -> None:
        path = _write_strokes(tmp_path / "s.json", {"strokes": [[[10, 10], [80, 10]]]})
        factory = FakeEngineFactory(text="world")

        result, document = convert_strokes(
            path, "notes", config=AppConfig(), engine_factory=factory
        )

        assert result.success is True
        assert document.get_text() == "notes\n\nworld"
        image = factory.engines[0].images[0]
        assert image.size == (840, 640)

    def test_failure_result(self, tmp_path: Path) -> None:
        path = _write_strokes(tmp_path / "s.json", {"strokes": []})
        factory = FakeEngineFactory(error=RuntimeError("boom"))

        result, document = convert_strokes(
            path, config=AppConfig(), engine_factory=factory
        )

        assert result.outcome is PipelineStatus.FAILED
        assert document.get_length() == 1


class TestRecognizeImage:
    """Tests for direct image recognition."""

    def test_recognizes_file(self, tmp_path: Path) -> None:
        path = tmp_path / "note.png"
        img = Image.new("RGB", (120, 40), "white")
        ImageDraw.Draw(img).line([(10, 20), (110, 20)], fill="black", width=3)
        img.save(path)

        text = recognize_image(
            path, config=AppConfig(), engine_factory=FakeEngineFactory(text=" hi \n")
        )
        assert text == "hi"

    def test_failure_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "note.png"
        Image.new("RGB", (10, 10), "white").save(path)

        with pytest.raises(RecognitionError):
            recognize_image(
                path,
                config=AppConfig(),
                engine_factory=FakeEngineFactory(error=RuntimeError("boom")),
            )


class TestMain:
    """Tests for argument parsing and dispatch."""

    @patch("sketchtext.cli.convert_strokes")
    def test_convert_prints_html(
        self,
        mock_convert: MagicMock,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        strokes = _write_strokes(tmp_path / "s.json", [])
        document = RichTextDocument("hello")
        mock_convert.return_value = (
            ConversionResult(outcome=PipelineStatus.SUCCEEDED, text="hello"),
            document,
        )

        main(["convert", str(strokes)])

        assert "<p>hello</p>" in capsys.readouterr().out

    @patch("sketchtext.cli.convert_strokes")
    def test_convert_writes_output(self, mock_convert: MagicMock, tmp_path: Path) -> None:
        strokes = _write_strokes(tmp_path / "s.json", [])
        doc_file = tmp_path / "doc.txt"
        doc_file.write_text("existing\n")
        output = tmp_path / "out" / "doc.html"
        mock_convert.return_value = (
            ConversionResult(outcome=PipelineStatus.SUCCEEDED),
            RichTextDocument("existing"),
        )

        main(["convert", str(strokes), "-d", str(doc_file), "-o", str(output)])

        assert output.read_text() == "<p>existing</p>"
        assert mock_convert.call_args.args[1] == "existing\n"

    @patch("sketchtext.cli.convert_strokes")
    def test_convert_failure_exits(self, mock_convert: MagicMock, tmp_path: Path) -> None:
        strokes = _write_strokes(tmp_path / "s.json", [])
        mock_convert.return_value = (
            ConversionResult(outcome=PipelineStatus.FAILED, error="nope"),
            RichTextDocument(),
        )

        with pytest.raises(SystemExit) as exc_info:
            main(["convert", str(strokes)])
        assert exc_info.value.code == 1

    def test_convert_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["convert", str(tmp_path / "missing.json")])
        assert exc_info.value.code == 1

    @patch("sketchtext.cli.recognize_image", return_value="hi there")
    def test_recognize(
        self,
        mock_recognize: MagicMock,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        image = tmp_path / "note.png"
        Image.new("RGB", (10, 10), "white").save(image)

        main(["recognize", str(image)])

        assert capsys.readouterr().out.strip() == "hi there"

    @patch("sketchtext.cli.recognize_image", side_effect=RecognitionError("boom"))
    def test_recognize_failure(self, mock_recognize: MagicMock, tmp_path: Path) -> None:
        image = tmp_path / "note.png"
        Image.new("RGB", (10, 10), "white").save(image)

        with pytest.raises(SystemExit) as exc_info:
            main(["recognize", str(image)])
        assert exc_info.value.code == 1

    @patch("sketchtext.cli.uvicorn")
    def test_serve(self, mock_uvicorn: MagicMock) -> None:
        main(["serve", "--port", "9000"])
        mock_uvicorn.run.assert_called_once_with(
            "sketchtext.api.app:app", host="0.0.0.0", port=9000
        )

    def test_no_command_prints_help(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0

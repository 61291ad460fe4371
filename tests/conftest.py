"""Shared test fixtures for the SketchText test suite."""

from pathlib import Path

import pytest
from PIL import Image

from sketchtext.canvas.coordinates import Bounds
from sketchtext.canvas.surface import StrokeSurface
from sketchtext.ocr.tesseract_engine import OCRResult


class FakeEngine:
    """In-memory OCR engine recording how it was used."""

    def __init__(self, text: str = "hello", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.images: list[Image.Image] = []
        self.terminate_calls = 0

    def recognize(self, image: Image.Image) -> OCRResult:
        self.images.append(image)
        if self.error is not None:
            raise self.error
        return OCRResult(text=self.text, language="eng", confidence=0.9, word_count=1)

    def terminate(self) -> None:
        self.terminate_calls += 1


class FakeEngineFactory:
    """Engine factory handing out :class:`FakeEngine` instances."""

    def __init__(self, text: str = "hello", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.engines: list[FakeEngine] = []
        self.languages: list[str] = []

    def __call__(self, lang: str) -> FakeEngine:
        self.languages.append(lang)
        engine = FakeEngine(self.text, self.error)
        self.engines.append(engine)
        return engine


@pytest.fixture
def container() -> Bounds:
    """Layout box of the element hosting the surface."""
    return Bounds(left=0, top=0, width=440, height=600)


@pytest.fixture
def surface(container: Bounds) -> StrokeSurface:
    """An initialized 400x600 drawing surface."""
    surface = StrokeSurface()
    surface.initialize(container)
    return surface


@pytest.fixture
def engine_factory() -> FakeEngineFactory:
    """Factory for engines that recognize ``hello``."""
    return FakeEngineFactory()


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent

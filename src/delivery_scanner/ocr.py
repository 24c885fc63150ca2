"""
OCR collaborators: the engine interface, a scripted test double and a
Tesseract adapter.
"""

from __future__ import annotations

import asyncio
import io
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

import pytesseract
from PIL import Image

from .components import RecognitionResult
from .exceptions import RecognitionFailedError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class OcrLanguage(str, Enum):
    ENGLISH = "eng"
    MONGOLIAN = "mon"
    COMBINED = "eng+mon"

    @classmethod
    def parse(cls, value: "OcrLanguage | str | None") -> "OcrLanguage":
        if value is None:
            return cls.ENGLISH
        if isinstance(value, OcrLanguage):
            return value
        aliases = {
            "default": cls.ENGLISH,
            "en": cls.ENGLISH,
            "secondary": cls.MONGOLIAN,
            "mn": cls.MONGOLIAN,
            "combined": cls.COMBINED,
            "en+mn": cls.COMBINED,
        }
        token = str(value).strip().lower()
        if token in aliases:
            return aliases[token]
        try:
            return cls(token)
        except ValueError:
            raise ValueError(f"unsupported OCR language: {value!r}") from None


class ProgressReporter:
    """Forward progress to a callback as a clamped, non-decreasing percentage."""

    def __init__(self, callback: Optional[ProgressCallback] = None) -> None:
        self.callback = callback
        self.last: Optional[float] = None

    def __call__(self, percent: float) -> None:
        value = min(max(float(percent), 0.0), 100.0)
        if self.last is not None and value <= self.last:
            return
        self.last = value
        if self.callback is not None:
            self.callback(value)


class OcrEngine(ABC):
    @abstractmethod
    async def recognize(
        self,
        image: bytes,
        language: OcrLanguage = OcrLanguage.ENGLISH,
        progress: Optional[ProgressCallback] = None,
    ) -> RecognitionResult:
        raise NotImplementedError


class StaticOcrEngine(OcrEngine):
    """Scripted engine for tests and demos.

    Each call consumes the next entry of ``script``; the last entry repeats.
    An entry is a ``RecognitionResult``, plain text (full confidence) or an
    exception to raise.
    """

    def __init__(self, *script, delay: float = 0.0, steps: int = 4) -> None:
        if not script:
            raise ValueError("StaticOcrEngine needs at least one scripted outcome")
        self.script = list(script)
        self.delay = delay
        self.steps = max(steps, 1)
        self.calls: List[Tuple[bytes, OcrLanguage]] = []

    async def recognize(
        self,
        image: bytes,
        language: OcrLanguage = OcrLanguage.ENGLISH,
        progress: Optional[ProgressCallback] = None,
    ) -> RecognitionResult:
        index = min(len(self.calls), len(self.script) - 1)
        self.calls.append((image, language))
        outcome = self.script[index]

        reporter = ProgressReporter(progress)
        reporter(0)
        for step in range(1, self.steps + 1):
            if self.delay:
                await asyncio.sleep(self.delay / self.steps)
            reporter(100 * step / self.steps)

        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, str):
            return RecognitionResult(text=outcome, confidence=1.0)
        return outcome


class TesseractOcrEngine(OcrEngine):
    """Runs Tesseract in a worker thread so the event loop stays responsive.

    Args:
        oem: Tesseract OCR engine mode.
        psm: Tesseract page segmentation mode.
    """

    def __init__(self, oem: int = 3, psm: int = 6) -> None:
        self.tesseract_config = f"--oem {oem} --psm {psm}"

    async def recognize(
        self,
        image: bytes,
        language: OcrLanguage = OcrLanguage.ENGLISH,
        progress: Optional[ProgressCallback] = None,
    ) -> RecognitionResult:
        reporter = ProgressReporter(progress)
        reporter(0)
        try:
            result = await asyncio.to_thread(self._run, image, OcrLanguage.parse(language))
        except Exception as exc:
            logger.exception("tesseract recognition failed")
            raise RecognitionFailedError(f"OCR extraction failed: {exc}") from exc
        reporter(100)
        return result

    def _run(self, image: bytes, language: OcrLanguage) -> RecognitionResult:
        with Image.open(io.BytesIO(image)) as source:
            data = pytesseract.image_to_data(
                source.convert("RGB"),
                lang=language.value,
                config=self.tesseract_config,
                output_type=pytesseract.Output.DICT,
            )
        return self._parse_data(data)

    @staticmethod
    def _parse_data(data: Dict[str, list]) -> RecognitionResult:
        lines: Dict[Tuple[int, int, int], List[str]] = {}
        confidences: List[float] = []
        for idx, word in enumerate(data.get("text", [])):
            word = (word or "").strip()
            if not word:
                continue
            line_key = (
                int(data["block_num"][idx]),
                int(data["par_num"][idx]),
                int(data["line_num"][idx]),
            )
            lines.setdefault(line_key, []).append(word)
            conf = float(data["conf"][idx])
            if conf >= 0:
                confidences.append(conf)

        text = "\n".join(" ".join(words) for _, words in sorted(lines.items()))
        confidence = sum(confidences) / len(confidences) / 100 if confidences else 0.0
        return RecognitionResult(text=text, confidence=confidence)

from __future__ import annotations

import asyncio
import io
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from PIL import Image, UnidentifiedImageError

from .components import NewDelivery, RecognitionResult, ScanResult
from .engine import AddressExtractor
from .exceptions import (
    InputRejectedError,
    NoAddressFoundError,
    RecognitionFailedError,
    RecognitionTimeoutError,
    ScanCancelledError,
)
from .geocoder import Geocoder, StaticGeocoder
from .ocr import OcrEngine, OcrLanguage, ProgressCallback, ProgressReporter
from .settings import ScannerSettings

logger = logging.getLogger(__name__)

DeliveryCallback = Callable[[NewDelivery], object]


class CancelToken:
    """Cooperative cancellation flag checked at every suspension point."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


def ensure_image(image: bytes, content_type: Optional[str] = None) -> str:
    """Reject anything that is not a decodable image; return its format name."""
    if content_type is not None and not content_type.strip().lower().startswith("image/"):
        raise InputRejectedError(f"expected an image, got {content_type!r}")
    if not image:
        raise InputRejectedError("empty image payload")
    try:
        with Image.open(io.BytesIO(image)) as probe:
            probe.verify()
            return probe.format or ""
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
        ValueError,
    ) as exc:
        raise InputRejectedError("payload is not a readable image") from exc


def truncate(text: str, limit: int) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_identifier() -> str:
    return uuid.uuid4().hex


class ScanWorkflow:
    """Image in, three-word address and coordinate out.

    Accepted results are handed to ``on_delivery`` as a ``NewDelivery``; the
    owner of the delivery list (usually ``DeliveryBook.receive``) is injected
    here rather than listening on a shared bus.
    """

    def __init__(
        self,
        ocr: OcrEngine,
        geocoder: Geocoder | None = None,
        extractor: AddressExtractor | None = None,
        settings: ScannerSettings | None = None,
        on_delivery: DeliveryCallback | None = None,
        id_factory: Callable[[], str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.settings = settings or ScannerSettings()
        self.ocr = ocr
        self.geocoder = geocoder or StaticGeocoder(
            anchor=self.settings.anchor,
            fuzzy_threshold=self.settings.fuzzy_threshold,
            jitter_degrees=self.settings.jitter_degrees,
        )
        self.extractor = extractor or AddressExtractor()
        self.on_delivery = on_delivery
        self.id_factory = id_factory or _new_identifier
        self.clock = clock or _utcnow

    async def scan(
        self,
        image: bytes,
        *,
        content_type: Optional[str] = None,
        language: OcrLanguage | str | None = None,
        progress: Optional[ProgressCallback] = None,
        cancel: Optional[CancelToken] = None,
    ) -> ScanResult:
        ensure_image(image, content_type)
        lang = OcrLanguage.parse(language or self.settings.ocr_language)
        reporter = ProgressReporter(progress)
        recognition = await self.recognize(image, lang, reporter, cancel)
        reporter(100)
        return self._resolve(recognition.text, recognition.confidence)

    def manual_entry(self, text: str) -> ScanResult:
        """Resolve operator-corrected text without running OCR."""
        return self._resolve(text, 1.0)

    def accept(self, result: ScanResult, identifier: Optional[str] = None) -> NewDelivery:
        event = NewDelivery(
            identifier=identifier or self.id_factory(),
            address=result.address,
            coordinate=result.coordinate,
            created_at=self.clock(),
        )
        if self.on_delivery is not None:
            self.on_delivery(event)
        return event

    async def recognize(
        self,
        image: bytes,
        language: OcrLanguage,
        reporter: ProgressReporter,
        cancel: Optional[CancelToken] = None,
    ) -> RecognitionResult:
        attempts = self.settings.max_attempts
        last_error: Optional[RecognitionFailedError] = None
        for attempt in range(1, attempts + 1):
            if cancel is not None and cancel.cancelled:
                raise ScanCancelledError("scan cancelled")
            try:
                return await self._attempt(image, language, reporter, cancel)
            except RecognitionFailedError as exc:
                last_error = exc
                if attempt == attempts:
                    break
                delay = self.settings.backoff_delay(attempt)
                logger.warning(
                    "recognition attempt %d/%d failed (%s); retrying in %.2fs",
                    attempt,
                    attempts,
                    exc,
                    delay,
                )
                await self._pause(delay, cancel)
        raise last_error

    async def _attempt(
        self,
        image: bytes,
        language: OcrLanguage,
        reporter: ProgressReporter,
        cancel: Optional[CancelToken],
    ) -> RecognitionResult:
        task = asyncio.ensure_future(self.ocr.recognize(image, language, reporter))
        waiters = {task}
        if cancel is not None:
            waiters.add(asyncio.ensure_future(cancel.wait()))
        try:
            done, _ = await asyncio.wait(
                waiters,
                timeout=self.settings.recognition_timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for waiter in waiters:
                if not waiter.done():
                    waiter.cancel()

        if task not in done:
            await asyncio.gather(task, return_exceptions=True)
            if cancel is not None and cancel.cancelled:
                raise ScanCancelledError("scan cancelled")
            raise RecognitionTimeoutError(
                f"recognition did not finish within {self.settings.recognition_timeout:g}s"
            )

        try:
            result = task.result()
        except RecognitionFailedError:
            raise
        except Exception as exc:
            logger.debug("OCR engine fault", exc_info=True)
            raise RecognitionFailedError(f"OCR engine failed: {exc}") from exc

        if result.confidence < self.settings.min_confidence:
            raise RecognitionFailedError(
                f"confidence {result.confidence:.2f} below {self.settings.min_confidence:.2f}"
            )
        return result

    async def _pause(self, delay: float, cancel: Optional[CancelToken]) -> None:
        if cancel is None:
            await asyncio.sleep(delay)
            return
        try:
            await asyncio.wait_for(cancel.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        raise ScanCancelledError("scan cancelled")

    def _resolve(self, text: str, confidence: float) -> ScanResult:
        candidates = self.extractor.extract(text)
        if not candidates:
            raise NoAddressFoundError(truncate(text or "", self.settings.preview_chars))
        address = candidates[0]
        coordinate = self.geocoder.resolve(address)
        return ScanResult(
            address=address,
            coordinate=coordinate,
            confidence=confidence,
            raw_text=text,
            candidates=candidates,
            diagnostics={"candidate_count": str(len(candidates))},
        )

"""Three-word address scanning and delivery ranking."""

from .components import (
    Delivery,
    DeliveryStatus,
    GeoCoordinate,
    NewDelivery,
    RecognitionResult,
    ScanResult,
    SortKey,
)
from .deliveries import DeliveryBook, advance
from .engine import AddressExtractor, ExtractorConfig, extract_addresses
from .exceptions import (
    DeliveryError,
    DeliveryNotFoundError,
    DuplicateDeliveryError,
    InputRejectedError,
    InvalidTransitionError,
    NoAddressFoundError,
    RecognitionFailedError,
    RecognitionTimeoutError,
    ScanCancelledError,
    ScannerError,
)
from .geocoder import Geocoder, StaticGeocoder
from .ocr import OcrEngine, OcrLanguage, StaticOcrEngine, TesseractOcrEngine
from .ranking import format_distance, haversine_km, rank_deliveries
from .scanner import CancelToken, ScanWorkflow
from .settings import ScannerSettings, load_settings

__all__ = [
    "AddressExtractor",
    "CancelToken",
    "Delivery",
    "DeliveryBook",
    "DeliveryError",
    "DeliveryNotFoundError",
    "DeliveryStatus",
    "DuplicateDeliveryError",
    "ExtractorConfig",
    "GeoCoordinate",
    "Geocoder",
    "InputRejectedError",
    "InvalidTransitionError",
    "NewDelivery",
    "NoAddressFoundError",
    "OcrEngine",
    "OcrLanguage",
    "RecognitionFailedError",
    "RecognitionResult",
    "RecognitionTimeoutError",
    "ScanCancelledError",
    "ScanResult",
    "ScanWorkflow",
    "ScannerError",
    "ScannerSettings",
    "SortKey",
    "StaticGeocoder",
    "StaticOcrEngine",
    "TesseractOcrEngine",
    "advance",
    "extract_addresses",
    "format_distance",
    "haversine_km",
    "load_settings",
    "rank_deliveries",
]

"""
Error taxonomy for scanning and delivery management.
"""

from typing import Optional


class ScannerError(Exception):
    """Base exception for the scanning workflow"""

    retryable = False


class InputRejectedError(ScannerError):
    """Raised when the supplied payload is not an image"""
    pass


class NoAddressFoundError(ScannerError):
    """Raised when recognition succeeded but no valid address was extracted"""

    def __init__(self, preview: str, message: Optional[str] = None):
        super().__init__(message or "no three-word address found")
        self.preview = preview


class RecognitionFailedError(ScannerError):
    """Raised when the OCR engine itself fails"""

    retryable = True


class RecognitionTimeoutError(RecognitionFailedError):
    """Raised when recognition does not finish within the configured bound"""
    pass


class ScanCancelledError(ScannerError):
    """Raised when a scan is cancelled through its token"""
    pass


class DeliveryError(Exception):
    """Base exception for delivery list operations"""
    pass


class InvalidTransitionError(DeliveryError):
    """Raised when a status change is not a forward edge of the state machine"""

    def __init__(self, current, requested):
        super().__init__(f"cannot move delivery from {current.value!r} to {requested.value!r}")
        self.current = current
        self.requested = requested


class DuplicateDeliveryError(DeliveryError):
    """Raised when a delivery identifier is already present"""
    pass


class DeliveryNotFoundError(DeliveryError, KeyError):
    """Raised when a delivery identifier is unknown"""
    pass

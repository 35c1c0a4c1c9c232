from __future__ import annotations


class ScanError(RuntimeError):
    """Base class for failures surfaced by the scan core."""

    code = "scan_error"


class ValidationError(ScanError):
    """
    Malformed inbound scan request (missing or undecodable image, etc.).
    Raised before any call to the vision model is made.
    """

    code = "invalid_request"


class ServiceError(ScanError):
    """
    The vision model could not be asked, or its reply could not be read.

    This is distinct from an unclear photo: an unclear photo is a successful
    response with an indeterminate verdict.
    """

    code = "service_failed"


class ServiceTimeout(ServiceError):
    """Raised when the vision model call exceeds the caller's timeout."""

    code = "timeout"


class ServiceInvalidOutput(ServiceError):
    """Raised when the reply is empty, not JSON, or not the expected object shape."""

    code = "invalid_model_output"

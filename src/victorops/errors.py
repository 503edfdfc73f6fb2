class VictorOpsError(Exception):
    """Base exception for all client errors."""


class TransportError(VictorOpsError):
    """Raised when the HTTP request failed before a response arrived (network, timeout)."""

    def __init__(self, message: str):
        super().__init__(f"HTTP request failed: {message}")


class SerializationError(VictorOpsError):
    """Raised when a request payload cannot be encoded as JSON."""

    def __init__(self, message: str):
        super().__init__(f"JSON serialization failed: {message}")


class DeserializationError(VictorOpsError):
    """Raised when a response body does not match the expected shape."""

    def __init__(self, message: str):
        super().__init__(f"JSON deserialization failed: {message}")


class UrlParseError(VictorOpsError):
    """Raised when the base URL or a request URL cannot be parsed."""

    def __init__(self, message: str):
        super().__init__(f"URL parsing failed: {message}")


class InvalidHeaderError(VictorOpsError):
    """Raised when the API id or key is not a legal header value."""

    def __init__(self, header: str):
        self.header = header
        super().__init__(f"Invalid header value: {header}")


class InvalidInputError(VictorOpsError):
    """Raised before any network call when a required argument is missing."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Invalid input: {message}")


class ApiError(VictorOpsError):
    """Raised for non-2xx responses. Carries the status code and raw body."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"API error: {status_code} - {message}")


class AuthenticationError(ApiError):
    """401 or 403: credentials rejected."""

    def __init__(self, status_code: int = 401, message: str = ""):
        super().__init__(status_code, message)

    def __str__(self) -> str:
        return "Authentication failed"


class NotFoundError(ApiError):
    """404: resource does not exist."""

    def __init__(self, status_code: int = 404, message: str = ""):
        super().__init__(status_code, message)

    def __str__(self) -> str:
        return "Resource not found"


def error_for_status(status_code: int, body: str) -> ApiError:
    if status_code in (401, 403):
        return AuthenticationError(status_code, body)
    if status_code == 404:
        return NotFoundError(status_code, body)
    return ApiError(status_code, body)

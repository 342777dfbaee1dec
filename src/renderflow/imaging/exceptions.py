"""Custom exceptions for image loading.

These exceptions wrap low-level fetch and decode errors (httpx, PIL, the
filesystem) with the source that failed, so callers can surface one
classification regardless of where the image came from.
"""


class ImagingError(Exception):
    """Base exception for all image loading errors."""

    def __init__(self, message: str, source: str | None = None) -> None:
        """Initialize imaging error with optional source context.

        Args:
            message: Human-readable error description.
            source: Short description of the image source (URL, path, or
                "<bytes>"). Data URLs are truncated by the loader.
        """
        self.source = source
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with source context if available."""
        if self.source:
            return f"{self.message} (source: {self.source})"
        return self.message


class SourceUnavailableError(ImagingError):
    """Raised when an image source cannot be fetched or decoded.

    This error is raised when:
    - An http(s) fetch fails or returns a non-success status
    - A data URL is malformed or not base64
    - A file does not exist or cannot be read
    - PIL cannot identify or decode the bytes
    - The decoded image has a zero dimension

    It is terminal for the operation that triggered it; nothing retries.
    """

    def __init__(
        self,
        message: str,
        source: str | None = None,
        *,
        status_code: int | None = None,
    ) -> None:
        """Initialize with the HTTP status code when the fetch got one."""
        self.status_code = status_code
        super().__init__(message, source)

    def _format_message(self) -> str:
        parts = [self.message]
        if self.source:
            parts.append(f"source={self.source}")
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")

        if len(parts) == 1:
            return parts[0]
        return f"{parts[0]} ({', '.join(parts[1:])})"

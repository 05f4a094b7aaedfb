"""
Palette extraction error taxonomy.

Lower pipeline layers raise these; only the request handler catches them and
turns them into the single client-facing error response.
"""


class PaletteError(Exception):
    """Base class for all palette extraction failures."""

    kind = "internal"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequestError(PaletteError):
    """Missing image URL or out-of-range request parameters."""

    kind = "invalid_request"


class FetchError(PaletteError):
    """Network or HTTP failure while retrieving the image."""

    kind = "fetch"


class DecodeError(PaletteError):
    """Image bytes could not be interpreted as a supported format."""

    kind = "decode"


class ExtractionCancelled(PaletteError):
    """Cancellation signal observed between pipeline stages."""

    kind = "cancelled"

class QOIError(Exception):
    """Base class for every failure raised by the codec."""


class ValidationError(QOIError, ValueError):
    """Caller input (dimensions, channel count, buffer length) is malformed."""


class FormatError(QOIError):
    """The byte stream is not a valid encoding."""


class TruncatedStreamError(FormatError):
    """The byte stream ended before all pixels or the end marker were read."""


class MissingEndMarkerError(FormatError):
    """All pixels were decoded but the trailing end marker does not match.

    The reconstructed image is kept on ``image`` so a caller may still use it.
    """

    def __init__(self, message, image=None):
        super().__init__(message)
        self.image = image


class TrailingDataWarning(UserWarning):
    """Extra bytes follow the end marker."""

import warnings
from typing import NamedTuple

from .chunks import (END_MARKER, END_MARKER_SIZE, HEADER_SIZE, Diff, Header,
                     Index, Luma, Rgb, Rgba, Run, parse_chunk)
from .errors import (FormatError, MissingEndMarkerError, TrailingDataWarning,
                     TruncatedStreamError, ValidationError)
from .pixel import Pixel, PredictorState


class DecodedImage(NamedTuple):
    pixels: bytes
    width: int
    height: int
    channels: int
    colorspace: int


def wrap(value: int) -> int:
    return value % 256


def reconstruct(chunk, state: PredictorState, source_channels: int) -> Pixel:
    """Turn one non-run chunk into the pixel it stands for."""
    prev = state.previous
    if isinstance(chunk, Index):
        return state.lookup(chunk.index)
    if isinstance(chunk, Diff):
        return Pixel(wrap(prev.red + chunk.dr),
                     wrap(prev.green + chunk.dg),
                     wrap(prev.blue + chunk.db),
                     prev.alpha)
    if isinstance(chunk, Luma):
        return Pixel(wrap(prev.red + chunk.dg + chunk.dr_dg),
                     wrap(prev.green + chunk.dg),
                     wrap(prev.blue + chunk.dg + chunk.db_dg),
                     prev.alpha)
    if isinstance(chunk, Rgb):
        # a 3-channel stream has no alpha to carry over, it is always opaque
        alpha = prev.alpha if source_channels == 4 else 255
        return Pixel(chunk.r, chunk.g, chunk.b, alpha)
    if isinstance(chunk, Rgba):
        return Pixel(chunk.r, chunk.g, chunk.b, chunk.a)
    raise FormatError(f"unexpected chunk {chunk!r}")


def decode_pixels(data, header: Header, channels: int, state=None):
    """Decode the chunk stream that follows the header.

    Returns the pixel buffer in the requested channel layout and the offset
    of the first byte after the last chunk.
    """
    if len(data) < header.min_size:
        raise TruncatedStreamError(
            f"stream holds {len(data)} bytes, {header.pixel_count} pixels need at least {header.min_size}")
    state = state or PredictorState()
    out = bytearray(header.pixel_count * channels)
    total = header.pixel_count
    produced = 0
    pos = HEADER_SIZE

    while produced < total:
        try:
            chunk, pos = parse_chunk(data, pos)
        except TruncatedStreamError as e:
            raise TruncatedStreamError(
                f"{e}; decoded {produced} of {total} pixels") from None

        if isinstance(chunk, Run):
            if produced + chunk.length > total:
                raise FormatError(
                    f"run of {chunk.length} at pixel {produced} overflows {total} pixels")
            pixel = state.previous
            count = chunk.length
        else:
            pixel = reconstruct(chunk, state, header.channels)
            count = 1

        value = pixel.to_bytes(channels)
        if channels > header.channels:
            value = value[:3] + b"\xff"
        for _ in range(count):
            start = produced * channels
            out[start:start + channels] = value
            state.resolve(pixel)
            produced += 1

    return bytes(out), pos


def decode(data, channels=None) -> DecodedImage:
    """Decode a byte stream into a raw pixel buffer.

    ``channels`` selects the output layout (3 or 4); by default the stream's
    own channel count is used. Alpha is dropped, or filled with 255, when the
    requested layout differs from the stream.
    """
    header = Header.unpack(data)
    header.validate()
    if channels is None:
        channels = header.channels
    if channels not in (3, 4):
        raise ValidationError(f"requested channels must be 3 or 4, got {channels}")

    pixels, pos = decode_pixels(data, header, channels)
    image = DecodedImage(pixels, header.width, header.height,
                         header.channels, header.colorspace)

    tail = data[pos:pos + END_MARKER_SIZE]
    if len(tail) < END_MARKER_SIZE:
        raise TruncatedStreamError(
            f"stream ended {END_MARKER_SIZE - len(tail)} bytes short of the end marker")
    if bytes(tail) != END_MARKER:
        raise MissingEndMarkerError(
            f"expected end marker {END_MARKER!r} at byte {pos}, found {bytes(tail)!r}",
            image=image)

    extra = len(data) - pos - END_MARKER_SIZE
    if extra:
        warnings.warn(f"{extra} bytes of trailing data after the end marker",
                      TrailingDataWarning, stacklevel=2)
    return image

from collections import Counter

import numpy as np

from .chunks import (END_MARKER, MAX_RUN, SRGB, Diff, Header, Index, Luma,
                     Rgb, Rgba, Run, pack_chunk)
from .errors import ValidationError
from .pixel import Pixel, PredictorState, pixel_hash


def signed_delta(current: int, previous: int) -> int:
    """Difference of two channel values, wrapped into [-128, 127]."""
    return (384 + current - previous) % 256 - 128


def as_buffer(pixels) -> bytes:
    if isinstance(pixels, np.ndarray):
        if pixels.dtype != np.uint8:
            raise ValidationError(f"pixel array must have dtype uint8, got {pixels.dtype}")
        return np.ascontiguousarray(pixels).tobytes()
    try:
        return bytes(memoryview(pixels))
    except TypeError:
        raise ValidationError(
            f"pixels must be bytes-like or a numpy array, got {type(pixels).__name__}") from None


def iter_pixels(data: bytes, channels: int):
    if channels == 4:
        for i in range(0, len(data), 4):
            yield Pixel(data[i], data[i + 1], data[i + 2], data[i + 3])
    else:
        for i in range(0, len(data), 3):
            yield Pixel(data[i], data[i + 1], data[i + 2], 255)


def select_chunk(px: Pixel, state: PredictorState, channels: int):
    """Pick the cheapest non-run chunk that reproduces ``px``."""
    index = pixel_hash(px)
    if state.lookup(index) == px:
        return Index(index)

    prev = state.previous
    if px.alpha == prev.alpha:
        vr = signed_delta(px.red, prev.red)
        vg = signed_delta(px.green, prev.green)
        vb = signed_delta(px.blue, prev.blue)

        if all(-3 < x < 2 for x in (vr, vg, vb)):
            return Diff(vr, vg, vb)

        vg_r = signed_delta(vr, vg)
        vg_b = signed_delta(vb, vg)
        if -33 < vg < 32 and all(-9 < x < 8 for x in (vg_r, vg_b)):
            return Luma(vg, vg_r, vg_b)

        return Rgb(px.red, px.green, px.blue)

    if channels == 3:
        # only reachable for the first pixel, the register starts transparent
        return Rgb(px.red, px.green, px.blue)
    return Rgba(px.red, px.green, px.blue, px.alpha)


def _prepare(pixels, width, height, channels, colorspace=SRGB):
    header = Header(width, height, channels, colorspace).validate()
    data = as_buffer(pixels)
    if len(data) != header.byte_count:
        raise ValidationError(
            f"pixel buffer holds {len(data)} bytes, "
            f"{width}x{height}x{channels} needs {header.byte_count}")
    return header, data


def generate_chunks(data: bytes, channels: int, state=None):
    state = state or PredictorState()
    run = 0
    for px in iter_pixels(data, channels):
        if px == state.previous:
            run += 1
            if run == MAX_RUN:
                yield Run(run)
                run = 0
            state.resolve(px)
            continue

        if run:
            yield Run(run)
            run = 0

        yield select_chunk(px, state, channels)
        state.resolve(px)

    if run:
        yield Run(run)


def iter_chunks(pixels, width, height, channels):
    """Yield the chunk variants for an image in stream order."""
    _, data = _prepare(pixels, width, height, channels)
    return generate_chunks(data, channels)


def chunk_frequency(pixels, width, height, channels) -> Counter:
    return Counter(type(chunk).__name__ for chunk in iter_chunks(pixels, width, height, channels))


def encode(pixels, width, height, channels, colorspace=SRGB) -> bytes:
    """Encode a raw row-major RGB or RGBA buffer into a byte stream.

    ``pixels`` may be any bytes-like object or a uint8 numpy array whose
    flattened length is ``width * height * channels``. The colorspace tag is
    written to the header untouched.
    """
    header, data = _prepare(pixels, width, height, channels, colorspace)
    writer = bytearray(header.pack())
    for chunk in generate_chunks(data, channels):
        writer += pack_chunk(chunk)
    writer += END_MARKER
    return bytes(writer)

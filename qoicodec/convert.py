"""Bridges between decoded buffers, numpy arrays and Pillow images."""
import numpy as np
from PIL import Image

from .decoder import DecodedImage

PIL_MODES = {3: "RGB", 4: "RGBA"}


def buffer_channels(image: DecodedImage) -> int:
    # the buffer may have been decoded into a layout other than the stream's
    return len(image.pixels) // (image.width * image.height)


def to_array(image: DecodedImage) -> np.ndarray:
    """View a decoded buffer as a (height, width, channels) uint8 array."""
    channels = buffer_channels(image)
    return np.frombuffer(image.pixels, dtype=np.uint8).reshape(image.height, image.width, channels)


def from_pil(img: Image.Image):
    """Return ``(pixels, width, height, channels)`` ready for ``encode``."""
    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA" if "A" in img.getbands() or "transparency" in img.info else "RGB")
    channels = 4 if img.mode == "RGBA" else 3
    return img.tobytes(), img.width, img.height, channels


def to_pil(image: DecodedImage) -> Image.Image:
    return Image.frombytes(PIL_MODES[buffer_channels(image)], (image.width, image.height), image.pixels)

from .chunks import (END_MARKER, HEADER_SIZE, LINEAR, MAGIC, MAX_RUN, SRGB,
                     Diff, Header, Index, Luma, Rgb, Rgba, Run, pack_chunk,
                     parse_chunk)
from .decoder import DecodedImage, decode
from .encoder import chunk_frequency, encode, iter_chunks
from .errors import (FormatError, MissingEndMarkerError, QOIError,
                     TrailingDataWarning, TruncatedStreamError,
                     ValidationError)
from .pixel import CACHE_SIZE, Pixel, PredictorState, pixel_hash

__version__ = "0.1.0"

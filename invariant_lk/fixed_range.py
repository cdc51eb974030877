"""
Fixed-range vector codec and pixel/normalized unit conversion.

Flow vectors rest between pyramid levels as half floats spread over the
format's whole finite range, so sub-pixel and multi-pixel motion share one
representation without a separate scale.
"""

from functools import lru_cache

import numpy as np


def _max_magnitude(exponent_bits, significand_bits):
    """Largest finite value of an IEEE-style binary float format."""
    max_exponent = 2 ** (exponent_bits - 1) - 1
    max_significand = 1.0 + (2 ** significand_bits - 1) / float(2 ** significand_bits)
    return 2.0 ** max_exponent * max_significand


@lru_cache(maxsize=None)
def fixed_range_max(dtype=np.float16):
    """Fixed-range maximum for a numpy floating storage type."""
    info = np.finfo(dtype)
    return _max_magnitude(info.nexp, info.nmant)


# 2**15 * (1 + 1023/1024) = 65504 for half precision
FIXED_MAX = fixed_range_max(np.float16)


def decode_to_normalized(encoded, fixed_max=FIXED_MAX):
    """Encoded vector -> normalized vector clamped to [-1, 1]."""
    return np.clip(np.asarray(encoded, dtype=np.float64) / fixed_max, -1.0, 1.0)


def encode_from_normalized(normalized, fixed_max=FIXED_MAX, dtype=None):
    """
    Normalized vector -> encoded vector.

    Args:
        normalized: Array (..., 2) in [-1, 1]
        fixed_max: Range of the storage format
        dtype: Optional storage dtype to cast into (e.g. np.float16)
    """
    encoded = np.asarray(normalized, dtype=np.float64) * fixed_max
    if dtype is not None:
        encoded = encoded.astype(dtype)
    return encoded


def to_normalized(pixels, pixel_size):
    """Pixel-unit vector -> normalized (texture) units, saturated to [-1, 1]."""
    return np.clip(np.asarray(pixels, dtype=np.float64) * np.abs(pixel_size), -1.0, 1.0)


def to_pixel(normalized, pixel_size):
    """Normalized vector -> pixel units. pixel_size must be nonzero."""
    return np.asarray(normalized, dtype=np.float64) / np.abs(pixel_size)

"""
Photometric-invariant colour representation.

RGB is re-expressed as two angles of a spherical coordinate system. Both
angles are unchanged by a multiplicative change of lighting, so gradients
taken on them survive shading and exposure changes between frames.
"""

import numpy as np

# Fallback ratios where an angle is undefined
HUE_FALLBACK = 1.0 / np.sqrt(2.0)      # r = g = 0: angle bisector
LUMA_FALLBACK = 1.0 / np.sqrt(3.0)     # pure black


def _safe_ratio(num, den, fallback):
    out = np.full(np.broadcast(num, den).shape, fallback, dtype=np.float64)
    np.divide(num, den, out=out, where=den > 0)
    return out


def color_invariant(color):
    """
    Map colour samples to the 2-channel invariant domain.

    Args:
        color: Array (..., 3) of RGB values in [0, 1]

    Returns:
        Array (..., 2) in [0, 1]. Channel 0 is the rg angle, channel 1 the
        elevation of rg over b. Always finite.
    """
    color = np.asarray(color, dtype=np.float64)
    r, g, b = color[..., 0], color[..., 1], color[..., 2]

    len_rg = np.hypot(r, g)
    len_rgb = np.sqrt(len_rg * len_rg + b * b)

    ratios = np.stack([
        _safe_ratio(g, len_rg, HUE_FALLBACK),
        _safe_ratio(len_rg, len_rgb, LUMA_FALLBACK),
    ], axis=-1)

    # arcsin is only defined on [-1, 1]; rounding can overshoot by an ulp
    angles = np.arcsin(np.clip(np.abs(ratios), 0.0, 1.0)) * (2.0 / np.pi)
    return np.clip(angles, 0.0, 1.0)

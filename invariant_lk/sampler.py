"""
Derivative-aware bilinear frame sampler.

Frames are addressed in texture coordinates: (u, v) in [0, 1), with u along
columns and v along rows, and pixel centres at ((x + 0.5) / W, (y + 0.5) / H).
The caller passes the screen-space derivatives of the coordinate explicitly so
the mip level stays correct after the coordinate has been warped.
"""

import math

import cv2
import numpy as np

# cv2.remap rejects maps with a side >= SHRT_MAX
_REMAP_COLS = 4096


def _remap(image, uv):
    """Bilinear fetch of N texture coordinates (N, 2) -> (N, C)."""
    h, w = image.shape[:2]
    channels = image.shape[2] if image.ndim == 3 else 1
    n = uv.shape[0]

    cols = min(n, _REMAP_COLS)
    rows = int(math.ceil(n / float(cols)))
    pad = rows * cols - n

    map_x = np.pad(uv[:, 0] * w - 0.5, (0, pad)).astype(np.float32).reshape(rows, cols)
    map_y = np.pad(uv[:, 1] * h - 0.5, (0, pad)).astype(np.float32).reshape(rows, cols)

    out = cv2.remap(image, map_x, map_y, interpolation=cv2.INTER_LINEAR,
                    borderMode=cv2.BORDER_REPLICATE)
    return out.reshape(-1, channels)[:n]


class FrameSampler:
    """
    Sample a float32 frame at arbitrary texture coordinates.

    Calling the sampler with ``(coords, ddx, ddy)`` returns one colour per
    coordinate. The mip level is picked per sample from the derivative
    footprint; edges are clamped.
    """

    def __init__(self, frame, max_levels=None):
        frame = np.asarray(frame, dtype=np.float32)
        if frame.ndim == 2:
            frame = frame[..., np.newaxis]

        self._mips = [frame]
        while max_levels is None or len(self._mips) < max_levels:
            h, w = self._mips[-1].shape[:2]
            if h < 2 or w < 2:
                break
            down = cv2.pyrDown(self._mips[-1])
            if down.ndim == 2:
                down = down[..., np.newaxis]
            self._mips.append(down)

    @property
    def shape(self):
        return self._mips[0].shape

    @property
    def texel_size(self):
        h, w = self.shape[:2]
        return np.array([1.0 / w, 1.0 / h])

    @property
    def levels(self):
        return len(self._mips)

    def lod(self, ddx, ddy):
        """Mip level for each derivative pair (nearest, clamped)."""
        h, w = self.shape[:2]
        ddx = np.asarray(ddx, dtype=np.float64)
        ddy = np.asarray(ddy, dtype=np.float64)
        footprint = np.maximum(np.hypot(ddx[..., 0] * w, ddx[..., 1] * h),
                               np.hypot(ddy[..., 0] * w, ddy[..., 1] * h))
        lod = np.log2(np.maximum(footprint, 1e-12))
        return np.clip(np.rint(lod), 0, len(self._mips) - 1).astype(np.intp)

    def __call__(self, coords, ddx, ddy):
        coords = np.asarray(coords, dtype=np.float64)
        batch = coords.shape[:-1]
        channels = self.shape[2]

        flat = coords.reshape(-1, 2)
        ddx = np.broadcast_to(np.asarray(ddx, dtype=np.float64), coords.shape).reshape(-1, 2)
        ddy = np.broadcast_to(np.asarray(ddy, dtype=np.float64), coords.shape).reshape(-1, 2)
        level = self.lod(ddx, ddy)

        out = np.empty((flat.shape[0], channels), dtype=np.float64)
        for lvl in np.unique(level):
            idx = level == lvl
            out[idx] = _remap(self._mips[lvl], flat[idx])
        return out.reshape(batch + (channels,))

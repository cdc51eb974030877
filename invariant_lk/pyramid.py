"""
Coarse-to-fine driver around the per-level refinement kernel.

Frames are blurred and downsampled into Gaussian pyramids; the encoded flow
field is refined from the coarsest level to the finest, blurred after each
level, and stored as half floats between levels.
"""

from typing import NamedTuple

import cv2
import numpy as np

from .config import FlowParams
from .fixed_range import decode_to_normalized, to_pixel
from .flow_step import coordinate_derivatives, refine_flow, texture_grid
from .sampler import FrameSampler

FLOW_STORAGE = np.float16


class FlowResult(NamedTuple):
    flow_x: np.ndarray          # pixels, float32 (H, W)
    flow_y: np.ndarray          # pixels, float32 (H, W)
    encoded: np.ndarray         # float16 (H, W, 2)
    levels: int


def prepare_frame(frame, bgr=False):
    """Convert a frame to float32 RGB in [0, 1]."""
    frame = np.asarray(frame)
    if frame.dtype == np.uint8:
        frame = frame.astype(np.float32) / 255.0
    else:
        frame = frame.astype(np.float32)

    if frame.ndim == 2:
        frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2RGB)
    elif bgr:
        frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
    return frame


def build_pyramid(frame, levels, min_size=8):
    """Full-resolution frame followed by up to levels - 1 pyrDown levels."""
    pyramid = [frame]
    while len(pyramid) < levels:
        h, w = pyramid[-1].shape[:2]
        if min((h + 1) // 2, (w + 1) // 2) < min_size:
            break
        pyramid.append(cv2.pyrDown(pyramid[-1]))
    return pyramid


def blur(image, sigma):
    if sigma <= 0:
        return image
    return cv2.GaussianBlur(image, (0, 0), sigma, borderType=cv2.BORDER_REFLECT)


def resize_field(field, width, height):
    """Bilinear resize of an encoded field; normalized units need no rescale."""
    field = np.asarray(field, dtype=np.float32)
    if field.shape[:2] != (height, width):
        field = cv2.resize(field, (width, height), interpolation=cv2.INTER_LINEAR)
    return field


def post_filter(field, sigma):
    """Blur an encoded field and return it in storage precision."""
    return blur(np.asarray(field, dtype=np.float32), sigma).astype(FLOW_STORAGE)


def estimate_flow(previous, current, params=None, initial=None):
    """
    Dense flow from ``previous`` to ``current``.

    Args:
        previous: Previous frame, float32 RGB (see prepare_frame)
        current: Current frame, same shape
        params: FlowParams
        initial: Optional encoded field (H, W, 2) seeding the coarsest level

    Returns:
        FlowResult
    """
    params = (params or FlowParams()).validate()
    previous = np.asarray(previous, dtype=np.float32)
    current = np.asarray(current, dtype=np.float32)
    if previous.shape != current.shape:
        raise ValueError("frame shapes differ: {0} vs {1}".format(previous.shape, current.shape))
    if min(previous.shape[:2]) < 2:
        raise ValueError("frames must be at least 2x2, got {0}".format(previous.shape))

    prev_pyr = build_pyramid(previous, params.levels, params.min_level_size)
    curr_pyr = build_pyramid(current, params.levels, params.min_level_size)

    encoded = None
    for level in reversed(range(len(prev_pyr))):
        prev_level = blur(prev_pyr[level], params.frame_blur_sigma)
        curr_level = blur(curr_pyr[level], params.frame_blur_sigma)
        h, w = prev_level.shape[:2]

        if encoded is not None:
            encoded = resize_field(encoded, w, h)
        elif initial is not None:
            encoded = resize_field(initial, w, h)
        else:
            encoded = np.zeros((h, w, 2), dtype=np.float32)

        grid = texture_grid(h, w)
        ddx, ddy = coordinate_derivatives(grid)
        prev_sampler = FrameSampler(prev_level)
        curr_sampler = FrameSampler(curr_level)

        for _ in range(params.iterations):
            encoded = refine_flow(grid, encoded, curr_sampler, prev_sampler,
                                  ddx, ddy, params).astype(FLOW_STORAGE)

        encoded = post_filter(encoded, params.flow_blur_sigma)

    h, w = previous.shape[:2]
    flow = to_pixel(decode_to_normalized(encoded), np.array([1.0 / w, 1.0 / h])).astype(np.float32)
    return FlowResult(flow_x=flow[..., 0], flow_y=flow[..., 1], encoded=encoded, levels=len(prev_pyr))


class FlowHistory:
    """
    Flow over a stream of frames with single-step carry-over.

    Each pushed frame is compared with the one before it; the previous pair's
    final encoded field seeds the next estimate.
    """

    def __init__(self, params=None):
        self.params = (params or FlowParams()).validate()
        self._previous = None
        self._encoded = None

    @property
    def carried(self):
        return self._encoded

    def push(self, frame):
        """Add a prepared frame; returns a FlowResult, or None for the first."""
        frame = np.asarray(frame, dtype=np.float32)
        result = None
        if self._previous is not None:
            result = estimate_flow(self._previous, frame, self.params, initial=self._encoded)
            self._encoded = result.encoded
        self._previous = frame
        return result

    def reset(self):
        self._previous = None
        self._encoded = None

"""Pyramidal Lucas-Kanade optical flow in a photometric-invariant colour space."""

from .accumulator import StructureTensor, accumulate_window, window_offsets
from .color_invariant import color_invariant
from .config import FlowParams
from .fixed_range import (
    FIXED_MAX,
    decode_to_normalized,
    encode_from_normalized,
    fixed_range_max,
    to_normalized,
    to_pixel,
)
from .flow_step import coordinate_derivatives, refine_flow, texture_grid, warp_coordinate
from .pyramid import FlowHistory, FlowResult, build_pyramid, estimate_flow, prepare_frame
from .sampler import FrameSampler
from .solver import confidence_mask, solve_flow

__all__ = [
    'FIXED_MAX',
    'FlowHistory',
    'FlowParams',
    'FlowResult',
    'FrameSampler',
    'StructureTensor',
    'accumulate_window',
    'build_pyramid',
    'color_invariant',
    'confidence_mask',
    'coordinate_derivatives',
    'decode_to_normalized',
    'encode_from_normalized',
    'estimate_flow',
    'fixed_range_max',
    'prepare_frame',
    'refine_flow',
    'solve_flow',
    'texture_grid',
    'to_normalized',
    'to_pixel',
    'warp_coordinate',
    'window_offsets',
]

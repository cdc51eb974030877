#!/usr/bin/env python
"""
Invariant-space pyramidal Lucas-Kanade optical flow - consume inputs and produce outputs.

Usage:
    invariant-lk-flow -i input_dir/ -o output_dir/
    invariant-lk-flow -i input_dir/ -o output_dir/ --levels 5 --window-size 5
"""

import argparse
import os

import numpy as np

from .config import FlowParams
from .frame_io import describe_flow, describe_frame, load_frame_pair, save_bin, write_parameters
from .pyramid import estimate_flow, prepare_frame


def compute_optical_flow(prev_frame, curr_frame, params=None):
    """Dense flow between two uint8 BGR frames; returns (flow_x, flow_y, result)."""
    result = estimate_flow(
        prepare_frame(prev_frame, bgr=True),
        prepare_frame(curr_frame, bgr=True),
        params,
    )
    return result.flow_x, result.flow_y, result


def save_outputs(prev_frame, curr_frame, flow_x, flow_y, output_dir, lk_params, motion=None):
    """Save outputs to directory."""
    if not os.path.exists(output_dir):
        os.makedirs(output_dir)

    paths = [
        save_bin(prev_frame, output_dir, 'prev_frame.bin'),
        save_bin(curr_frame, output_dir, 'curr_frame.bin'),
        save_bin(flow_x, output_dir, 'flow_x.bin'),
        save_bin(flow_y, output_dir, 'flow_y.bin'),
    ]

    params = {
        "prev_frame": describe_frame('prev_frame.bin', prev_frame),
        "curr_frame": describe_frame('curr_frame.bin', curr_frame),
        "flow_x": describe_flow('flow_x.bin', flow_x),
        "flow_y": describe_flow('flow_y.bin', flow_y),
        "lk_params": lk_params
    }
    if motion is not None:
        params["motion"] = motion
    write_parameters(output_dir, params)

    print("Saved outputs:")
    for path in paths:
        print("  - {0} ({1} bytes)".format(os.path.basename(path), os.path.getsize(path)))
    print("  - parameters.json")


def resolve_params(args, input_params):
    """lk_params from the input directory, overridden by explicit flags."""
    merged = dict(input_params.get('lk_params') or {})
    overrides = {
        'levels': args.levels,
        'iterations': args.iterations,
        'window_size': args.win_size,
        'window_angle': args.win_angle,
        'confidence_threshold': args.confidence,
        'tap_radius': args.tap_radius,
        'frame_blur_sigma': args.frame_blur,
        'flow_blur_sigma': args.flow_blur,
    }
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return FlowParams.from_dict(merged).validate()


def main(argv=None):
    parser = argparse.ArgumentParser(description='Invariant-space pyramidal Lucas-Kanade optical flow')
    parser.add_argument('-i', '--input', required=True, help='Input directory with prev_frame.bin, curr_frame.bin, parameters.json')
    parser.add_argument('-o', '--output', default='output', help='Output directory')
    # Pyramid parameters
    parser.add_argument('--levels', type=int, help='Pyramid levels (default 4)')
    parser.add_argument('--iterations', type=int, help='Refinements per level (default 1)')
    parser.add_argument('--frame-blur', type=float, help='Frame pre-blur sigma (default 1.0)')
    parser.add_argument('--flow-blur', type=float, help='Flow post-blur sigma (default 1.0)')
    # Kernel parameters
    parser.add_argument('--win-size', type=int, help='Sampling window size, odd (default 3)')
    parser.add_argument('--win-angle', type=float, help='Sampling window rotation in degrees (default 45)')
    parser.add_argument('--confidence', type=float, help='Confidence gate threshold (default 0.1)')
    parser.add_argument('--tap-radius', type=float, help='Gradient tap radius in pixels (default 0.5)')

    args = parser.parse_args(argv)

    # Load inputs
    print("Loading inputs from: {0}".format(args.input))
    try:
        prev_frame, curr_frame, input_params = load_frame_pair(args.input)
        params = resolve_params(args, input_params)
    except (OSError, KeyError, ValueError) as e:
        print("Error: {0}".format(e))
        return 1
    print("  prev_frame: {0}".format(prev_frame.shape))
    print("  curr_frame: {0}".format(curr_frame.shape))

    # Compute optical flow
    print("\nComputing optical flow...")
    try:
        flow_x, flow_y, result = compute_optical_flow(prev_frame, curr_frame, params)
    except ValueError as e:
        print("Error: {0}".format(e))
        return 1
    print("  Levels: {0}".format(result.levels))

    moving = (flow_x != 0) | (flow_y != 0)
    print("  Refined: {0}/{1} pixels".format(int(np.sum(moving)), moving.size))
    if np.any(moving):
        print("  Mean flow: x={0:.2f}, y={1:.2f}".format(
            np.mean(flow_x[moving]), np.mean(flow_y[moving])))

    # Save outputs
    print("\nSaving outputs to: {0}".format(args.output))
    save_outputs(prev_frame, curr_frame, flow_x, flow_y, args.output,
                 params.to_dict(), input_params.get('motion'))

    return 0


if __name__ == '__main__':
    exit(main())

#!/usr/bin/env python
"""
Generate test data for invariant-space Lucas-Kanade optical flow.

Usage:
    invariant-lk-gen -o output_dir/ --pattern sinusoid --tx 2 --ty 1
    invariant-lk-gen -i input.jpg -o output_dir/ --motion rotation --angle 3
"""

import argparse
import os

import cv2
import numpy as np

from .frame_io import describe_frame, save_bin, write_parameters

MOTIONS = ['translation', 'rotation', 'scale', 'affine', 'random']
PATTERNS = ['sinusoid', 'checker']


def synthetic_texture(width, height, pattern='sinusoid', period=32.0, dx=0.0, dy=0.0):
    """
    Colour texture sampled at pixel (x - dx, y - dy), as uint8 BGR.

    Each channel varies differently so the texture has chromatic gradients
    along both axes; a grey texture would be flat in the invariant domain.
    """
    y, x = np.mgrid[0:height, 0:width].astype(np.float64)
    x = x - dx
    y = y - dy
    k = 2.0 * np.pi / period

    if pattern == 'sinusoid':
        r = 0.5 + 0.35 * np.sin(k * x)
        g = 0.5 + 0.35 * np.sin(k * y)
        b = 0.5 + 0.2 * np.cos(k * (x + y) * 0.5)
    elif pattern == 'checker':
        cell = np.floor(x / (period / 2.0)) + np.floor(y / (period / 2.0))
        odd = np.mod(cell, 2.0)
        r = 0.2 + 0.6 * odd
        g = 0.8 - 0.6 * odd
        b = np.full_like(x, 0.4)
    else:
        raise ValueError("unknown pattern: {0}".format(pattern))

    rgb = np.stack([r, g, b], axis=-1)
    return np.clip(np.rint(rgb[..., ::-1] * 255.0), 0, 255).astype(np.uint8)


def affine_matrix(width, height, tx=0.0, ty=0.0, angle=0.0, scale=1.0):
    """2x3 matrix: rotate and scale about the frame centre, then translate."""
    center = (width / 2.0, height / 2.0)
    m = cv2.getRotationMatrix2D(center, angle, scale)
    m[0, 2] += tx
    m[1, 2] += ty
    return m


def generate_test_frame(prev_frame, motion_type='translation', rng=None, **kwargs):
    """
    Warp prev_frame by a known motion.

    Returns:
        curr_frame, motion_params
    """
    h, w = prev_frame.shape[:2]
    tx = kwargs.get('tx', 2.0)
    ty = kwargs.get('ty', 1.0)
    angle = kwargs.get('angle', 2.0)
    scale = kwargs.get('scale', 1.02)

    if motion_type == 'translation':
        m = affine_matrix(w, h, tx=tx, ty=ty)
        motion_params = {'type': 'translation', 'tx': tx, 'ty': ty}
    elif motion_type == 'rotation':
        m = affine_matrix(w, h, angle=angle)
        motion_params = {'type': 'rotation', 'angle': angle}
    elif motion_type == 'scale':
        m = affine_matrix(w, h, scale=scale)
        motion_params = {'type': 'scale', 'scale': scale}
    elif motion_type == 'affine':
        m = affine_matrix(w, h, tx, ty, angle, scale)
        motion_params = {'type': 'affine', 'tx': tx, 'ty': ty, 'angle': angle, 'scale': scale}
    elif motion_type == 'random':
        rng = rng or np.random.default_rng()
        tx = float(rng.uniform(-4, 4))
        ty = float(rng.uniform(-4, 4))
        angle = float(rng.uniform(-3, 3))
        scale = float(rng.uniform(0.98, 1.02))
        m = affine_matrix(w, h, tx, ty, angle, scale)
        motion_params = {'type': 'random', 'tx': tx, 'ty': ty, 'angle': angle, 'scale': scale}
    else:
        return prev_frame.copy(), {'type': 'none'}

    curr_frame = cv2.warpAffine(prev_frame, m, (w, h), borderMode=cv2.BORDER_REFLECT)
    return curr_frame, motion_params


def save_outputs(prev_frame, curr_frame, motion_params, output_dir):
    """Save test data outputs."""
    if not os.path.exists(output_dir):
        os.makedirs(output_dir)

    prev_path = save_bin(prev_frame, output_dir, 'prev_frame.bin')
    curr_path = save_bin(curr_frame, output_dir, 'curr_frame.bin')

    params = {
        "prev_frame": describe_frame('prev_frame.bin', prev_frame),
        "curr_frame": describe_frame('curr_frame.bin', curr_frame),
        "motion": motion_params
    }
    write_parameters(output_dir, params)

    print("Generated test data:")
    print("  - prev_frame.bin ({0} bytes)".format(os.path.getsize(prev_path)))
    print("  - curr_frame.bin ({0} bytes)".format(os.path.getsize(curr_path)))
    print("  - parameters.json")
    print("  Motion: {0}".format(motion_params))


def main(argv=None):
    parser = argparse.ArgumentParser(description='Generate test data for invariant-space Lucas-Kanade flow')
    parser.add_argument('-i', '--input', help='Input image path (default: synthetic texture)')
    parser.add_argument('-o', '--output', default='output', help='Output directory')
    parser.add_argument('-p', '--pattern', default='sinusoid', choices=PATTERNS, help='Synthetic texture')
    parser.add_argument('--width', type=int, default=256, help='Synthetic texture width')
    parser.add_argument('--height', type=int, default=192, help='Synthetic texture height')
    parser.add_argument('--period', type=float, default=32.0, help='Synthetic texture period (pixels)')
    parser.add_argument('-m', '--motion', default='translation', choices=MOTIONS, help='Motion type to apply')
    parser.add_argument('--tx', type=float, default=2, help='Translation X')
    parser.add_argument('--ty', type=float, default=1, help='Translation Y')
    parser.add_argument('--angle', type=float, default=2, help='Rotation angle (degrees)')
    parser.add_argument('--scale', type=float, default=1.02, help='Scale factor')
    parser.add_argument('--seed', type=int, help='Seed for --motion random')

    args = parser.parse_args(argv)

    if args.input:
        prev_frame = cv2.imread(args.input)
        if prev_frame is None:
            print("Error: Could not load image: {0}".format(args.input))
            return 1
        print("Input: {0} ({1})".format(args.input, prev_frame.shape))
    else:
        prev_frame = synthetic_texture(args.width, args.height, args.pattern, args.period)
        print("Input: synthetic {0} ({1})".format(args.pattern, prev_frame.shape))

    # Pure translations of a synthetic texture are resampled analytically
    if not args.input and args.motion == 'translation':
        curr_frame = synthetic_texture(args.width, args.height, args.pattern, args.period,
                                       dx=args.tx, dy=args.ty)
        motion_params = {'type': 'translation', 'tx': args.tx, 'ty': args.ty}
    else:
        curr_frame, motion_params = generate_test_frame(
            prev_frame,
            motion_type=args.motion,
            rng=np.random.default_rng(args.seed),
            tx=args.tx,
            ty=args.ty,
            angle=args.angle,
            scale=args.scale
        )

    save_outputs(prev_frame, curr_frame, motion_params, args.output)

    return 0


if __name__ == '__main__':
    exit(main())

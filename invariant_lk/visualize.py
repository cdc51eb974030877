#!/usr/bin/env python
"""
Visualize invariant-space Lucas-Kanade optical flow inputs and outputs.

Usage:
    invariant-lk-visualize -i output_dir/
    invariant-lk-visualize -i output_dir/ --save result.png --no-show
"""

import argparse
import os

import cv2
import matplotlib.pyplot as plt
import numpy as np

from .color_invariant import color_invariant
from .frame_io import load_flow, load_frame_from_bin, load_parameters


def load_data(input_dir):
    """Load all data from directory."""
    params = load_parameters(input_dir)
    data = {'params': params}

    for key in ('prev_frame', 'curr_frame'):
        if key in params:
            info = params[key]
            path = os.path.join(input_dir, info['file'])
            if os.path.exists(path):
                data[key] = load_frame_from_bin(
                    path, info['src_width'], info['src_height'], info['src_channels']
                )

    for key in ('flow_x', 'flow_y'):
        if key in params and os.path.exists(os.path.join(input_dir, params[key]['file'])):
            data[key] = load_flow(input_dir, params, key)

    return data


def _to_rgb(img):
    if img.ndim == 3:
        return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
    return img


def _save(fig, save_path, suffix):
    if save_path:
        root, ext = os.path.splitext(save_path)
        fig.savefig('{0}_{1}{2}'.format(root, suffix, ext or '.png'), dpi=150, bbox_inches='tight')


def flow_to_color(flow_x, flow_y, max_magnitude=None):
    """HSV colour coding: hue is direction, value is magnitude. Returns uint8 RGB."""
    magnitude, angle = cv2.cartToPolar(flow_x.astype(np.float32), flow_y.astype(np.float32))
    if max_magnitude is None:
        max_magnitude = float(magnitude.max())
    if max_magnitude <= 0:
        max_magnitude = 1.0

    hsv = np.zeros(flow_x.shape + (3,), dtype=np.uint8)
    hsv[..., 0] = (angle * 180 / np.pi / 2).astype(np.uint8)
    hsv[..., 1] = 255
    hsv[..., 2] = np.clip(magnitude / max_magnitude * 255, 0, 255).astype(np.uint8)
    return cv2.cvtColor(hsv, cv2.COLOR_HSV2RGB)


def visualize_frames(data, save_path=None):
    """Visualize prev_frame and curr_frame side by side."""
    fig, axes = plt.subplots(1, 2, figsize=(12, 6))

    for ax, key, title in ((axes[0], 'prev_frame', 'Previous Frame'),
                           (axes[1], 'curr_frame', 'Current Frame')):
        if key in data:
            img = _to_rgb(data[key])
            ax.imshow(img, cmap='gray' if img.ndim == 2 else None)
        ax.set_title(title)
        ax.axis('off')

    plt.tight_layout()
    _save(fig, save_path, 'frames')
    return fig


def visualize_invariant(data, save_path=None):
    """Show the two photometric-invariant channels of the previous frame."""
    if 'prev_frame' not in data or data['prev_frame'].ndim != 3:
        print("Missing colour frame for invariant visualization")
        return None

    rgb = _to_rgb(data['prev_frame']).astype(np.float64) / 255.0
    invariant = color_invariant(rgb)

    fig, axes = plt.subplots(1, 2, figsize=(12, 6))
    for c, title in enumerate(('Invariant: rg angle', 'Invariant: elevation')):
        im = axes[c].imshow(invariant[..., c], cmap='viridis', vmin=0, vmax=1)
        axes[c].set_title(title)
        axes[c].axis('off')
        plt.colorbar(im, ax=axes[c])

    plt.tight_layout()
    _save(fig, save_path, 'invariant')
    return fig


def visualize_flow(data, save_path=None):
    """Visualize flow_x and flow_y."""
    fig, axes = plt.subplots(1, 2, figsize=(14, 6))

    for ax, key, title in ((axes[0], 'flow_x', 'Flow X (Horizontal)'),
                           (axes[1], 'flow_y', 'Flow Y (Vertical)')):
        if key in data:
            flow = data[key]
            vmax = float(np.abs(flow).max()) or 1.0
            im = ax.imshow(flow, cmap='RdBu_r', vmin=-vmax, vmax=vmax)
            plt.colorbar(im, ax=ax, label='Displacement (pixels)')
        ax.set_title(title)
        ax.axis('off')

    plt.tight_layout()
    _save(fig, save_path, 'flow')
    return fig


def visualize_flow_overlay(data, save_path=None, step=16):
    """Colour-coded flow with arrows on top."""
    if 'flow_x' not in data or 'flow_y' not in data:
        print("Missing data for flow overlay visualization")
        return None

    flow_x = data['flow_x']
    flow_y = data['flow_y']
    h, w = flow_x.shape

    fig, ax = plt.subplots(figsize=(12, 10))
    ax.imshow(flow_to_color(flow_x, flow_y))

    y, x = np.mgrid[step // 2:h:step, step // 2:w:step]
    fx = flow_x[step // 2::step, step // 2::step]
    fy = flow_y[step // 2::step, step // 2::step]
    mask = (fx != 0) | (fy != 0)
    if np.any(mask):
        ax.quiver(x[mask], y[mask], fx[mask], fy[mask],
                  color='white', angles='xy', scale_units='xy', scale=0.25,
                  width=0.003, headwidth=4)

    ax.set_title('Optical Flow (hue = direction, brightness = magnitude)')
    ax.axis('off')

    plt.tight_layout()
    _save(fig, save_path, 'overlay')
    return fig


def print_statistics(data):
    """Print flow statistics, and the error against a known translation."""
    print("\nStatistics:")

    for key, label in (('flow_x', 'Flow X'), ('flow_y', 'Flow Y')):
        if key in data:
            flow = data[key]
            nonzero = flow[flow != 0]
            if len(nonzero) > 0:
                print("  {0}: min={1:.2f}, max={2:.2f}, mean={3:.2f}, median={4:.2f}".format(
                    label, nonzero.min(), nonzero.max(), nonzero.mean(), np.median(nonzero)))
                print("          Non-zero points: {0}".format(len(nonzero)))

    motion = data['params'].get('motion', {})
    if motion.get('type') == 'translation' and 'flow_x' in data and 'flow_y' in data:
        err = np.hypot(data['flow_x'] - motion['tx'], data['flow_y'] - motion['ty'])
        print("  Endpoint error vs translation: median={0:.3f}, mean={1:.3f}".format(
            np.median(err), np.mean(err)))


def main(argv=None):
    parser = argparse.ArgumentParser(description='Visualize invariant-space Lucas-Kanade optical flow')
    parser.add_argument('-i', '--input', required=True, help='Input directory with binary files and parameters.json')
    parser.add_argument('--save', type=str, help='Save visualizations to file (e.g., result.png)')
    parser.add_argument('--no-show', action='store_true', help='Do not display plots')

    args = parser.parse_args(argv)

    print("Loading data from: {0}".format(args.input))
    try:
        data = load_data(args.input)
    except (OSError, KeyError, ValueError) as e:
        print("Error: {0}".format(e))
        return 1

    print("Loaded:")
    for key in ['prev_frame', 'curr_frame', 'flow_x', 'flow_y']:
        if key in data:
            print("  - {0}: {1}".format(key, data[key].shape))

    print_statistics(data)

    visualize_frames(data, args.save)
    visualize_invariant(data, args.save)
    visualize_flow(data, args.save)
    visualize_flow_overlay(data, args.save)

    if not args.no_show:
        plt.show()
    else:
        plt.close('all')

    return 0


if __name__ == '__main__':
    exit(main())

"""
Raw binary frames with a parameters.json sidecar.

Frames are stored row-major as H x W x C uint8; flow components as H x W
float32. parameters.json describes each file by name, size and stride.
"""

import json
import os

import numpy as np

PARAMETERS_FILE = 'parameters.json'


def load_frame_from_bin(filepath, width, height, channels, dtype=np.uint8):
    """Load frame from binary file."""
    data = np.fromfile(filepath, dtype=dtype)
    if channels == 1:
        return data.reshape((height, width))
    else:
        return data.reshape((height, width, channels))


def load_parameters(input_dir):
    params_path = os.path.join(input_dir, PARAMETERS_FILE)
    with open(params_path, 'r') as f:
        return json.load(f)


def _load_described(input_dir, info, prefix, dtype):
    path = os.path.join(input_dir, info['file'])
    return load_frame_from_bin(
        path,
        info[prefix + '_width'],
        info[prefix + '_height'],
        info[prefix + '_channels'],
        dtype=dtype,
    )


def load_frame_pair(input_dir):
    """Load prev_frame, curr_frame and the parsed parameters."""
    params = load_parameters(input_dir)
    prev_frame = _load_described(input_dir, params['prev_frame'], 'src', np.uint8)
    curr_frame = _load_described(input_dir, params['curr_frame'], 'src', np.uint8)
    return prev_frame, curr_frame, params


def load_flow(input_dir, params, key):
    """Load a float32 flow component described under ``params[key]``."""
    return _load_described(input_dir, params[key], 'dst', np.float32)


def describe_frame(filename, frame):
    h, w = frame.shape[:2]
    channels = frame.shape[2] if frame.ndim == 3 else 1
    return {
        "file": filename,
        "src_width": w,
        "src_height": h,
        "src_channels": channels,
        "src_stride": "{0} * {1}".format(w * channels, np.dtype(frame.dtype).itemsize),
    }


def describe_flow(filename, flow):
    h, w = flow.shape[:2]
    return {
        "file": filename,
        "dst_width": w,
        "dst_height": h,
        "dst_channels": 1,
        "dst_stride": "{0} * {1}".format(w, np.dtype(flow.dtype).itemsize),
    }


def save_bin(array, output_dir, filename):
    """Write an array as raw bytes; returns the path."""
    path = os.path.join(output_dir, filename)
    np.ascontiguousarray(array).tofile(path)
    return path


def write_parameters(output_dir, params):
    if not os.path.exists(output_dir):
        os.makedirs(output_dir)
    params_path = os.path.join(output_dir, PARAMETERS_FILE)
    with open(params_path, 'w') as f:
        json.dump(params, f, indent=4)
    return params_path

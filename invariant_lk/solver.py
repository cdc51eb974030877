"""Gated closed-form solve of the 2x2 Lucas-Kanade normal equations."""

import numpy as np


def confidence_mask(tensor, threshold=0.1):
    """
    1.0 where SSD / (IxIx + IyIy) > threshold, else 0.0.

    Evaluated without the division, so a window with no contrast and no
    residual fails the gate instead of producing 0 / 0.
    """
    passed = np.asarray(tensor.ssd) > threshold * (np.asarray(tensor.ixix) + np.asarray(tensor.iyiy))
    return passed.astype(np.float64)


def determinant(tensor):
    return tensor.ixix * tensor.iyiy - tensor.ixiy * tensor.ixiy


def solve_flow(tensor, threshold=0.1):
    """
    Incremental flow in pixels for each accumulated window.

    Windows failing the confidence gate or with a non-positive determinant
    yield exactly (0, 0).

    Returns:
        Array (..., 2)
    """
    t = tensor.masked(confidence_mask(tensor, threshold))
    det = determinant(t)
    solvable = det > 0
    safe_det = np.where(solvable, det, 1.0)

    bx = -t.ixit
    by = -t.iyit
    u = (t.iyiy * bx - t.ixiy * by) / safe_det
    v = (t.ixix * by - t.ixiy * bx) / safe_det

    return np.stack([np.where(solvable, u, 0.0),
                     np.where(solvable, v, 0.0)], axis=-1)

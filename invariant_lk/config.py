"""
Tunable parameters for invariant-space Lucas-Kanade flow.

The defaults reproduce the reference behaviour: a 3x3 window rotated by
45 degrees and a confidence gate of 0.1. They are the values written to the
``lk_params`` block of ``parameters.json``.
"""

from dataclasses import asdict, dataclass, fields


@dataclass(frozen=True)
class FlowParams:
    """Parameters for the refinement kernel and the pyramid driver."""

    # Kernel
    window_size: int = 3
    window_angle: float = 45.0
    confidence_threshold: float = 0.1
    tap_radius: float = 0.5

    # Pyramid driver
    levels: int = 4
    iterations: int = 1
    frame_blur_sigma: float = 1.0
    flow_blur_sigma: float = 1.0
    min_level_size: int = 8

    def validate(self):
        """Raise ValueError if any parameter is out of range. Returns self."""
        if self.window_size < 1 or self.window_size % 2 == 0:
            raise ValueError("window_size must be a positive odd integer, got {0}".format(self.window_size))
        if self.confidence_threshold < 0:
            raise ValueError("confidence_threshold must be non-negative, got {0}".format(self.confidence_threshold))
        if self.tap_radius <= 0:
            raise ValueError("tap_radius must be positive, got {0}".format(self.tap_radius))
        if self.levels < 1:
            raise ValueError("levels must be >= 1, got {0}".format(self.levels))
        if self.iterations < 1:
            raise ValueError("iterations must be >= 1, got {0}".format(self.iterations))
        if self.frame_blur_sigma < 0 or self.flow_blur_sigma < 0:
            raise ValueError("blur sigmas must be non-negative")
        if self.min_level_size < 1:
            raise ValueError("min_level_size must be >= 1, got {0}".format(self.min_level_size))
        return self

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        """Build params from an ``lk_params`` dict, ignoring unknown keys."""
        known = {f.name: f.type for f in fields(cls)}
        kwargs = {}
        for key, value in (data or {}).items():
            if key in known:
                kwargs[key] = int(value) if known[key] is int else float(value)
        return cls(**kwargs)

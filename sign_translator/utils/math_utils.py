import numpy as np
from typing import Iterable, Sequence, Union


def landmarks_to_array(landmarks: Union[Iterable, Sequence[Sequence[float]]]) -> np.ndarray:
    """Convert landmarks into an Nx3 NumPy array.

    Accepts either an iterable of objects with `.x`, `.y` (and optionally `.z`),
    as produced by MediaPipe, or a nested sequence of numbers such as
    `[[x, y, z], ...]`.

    Args:
        landmarks: iterable of landmark objects or of 3-element sequences

    Returns:
        np.ndarray of shape (N, 3) dtype float with columns (x, y, z).
    """
    rows = []
    for lm in landmarks:
        if hasattr(lm, 'x') and hasattr(lm, 'y'):
            rows.append([lm.x, lm.y, getattr(lm, 'z', 0.0)])
        else:
            rows.append(list(lm))
    if not rows:
        return np.empty((0, 3), dtype=float)
    return np.array(rows, dtype=float)


def euclidean(a, b):
    """Euclidean distance between points.

    - If `a` and `b` are 1-D points, returns a scalar.
    - If arrays of points, returns distances per-row.
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    return np.linalg.norm(a - b, axis=-1)


def angle_deg(a, b, c) -> float:
    """Angle in degrees at vertex `b` formed by the rays b->a and b->c.

    Returns NaN when either ray has zero length (coincident points), so the
    caller can treat the measurement as inconclusive.
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    c = np.asarray(c, dtype=float)
    ba = a - b
    bc = c - b
    norm_ba = float(np.linalg.norm(ba))
    norm_bc = float(np.linalg.norm(bc))
    if norm_ba == 0.0 or norm_bc == 0.0 or not np.isfinite(norm_ba * norm_bc):
        return float('nan')
    cos_angle = float(np.dot(ba, bc)) / (norm_ba * norm_bc)
    # float error can push the cosine just outside [-1, 1]
    cos_angle = float(np.clip(cos_angle, -1.0, 1.0))
    return float(np.degrees(np.arccos(cos_angle)))


def palm_normal(landmarks) -> np.ndarray:
    """Unit vector approximating the direction the palm faces.

    Normalized cross product of (index MCP - wrist) and (pinky MCP - wrist).
    A zero vector is returned for a degenerate palm.
    """
    pts = np.asarray(landmarks, dtype=float)
    wrist, index_mcp, pinky_mcp = pts[0], pts[5], pts[17]
    normal = np.cross(index_mcp - wrist, pinky_mcp - wrist)
    length = float(np.linalg.norm(normal))
    if length == 0.0 or not np.isfinite(length):
        return np.zeros(3, dtype=float)
    return normal / length


class EWMA:
    """Exponential weighted moving average for smoothing scalars or points.

    Example:
        s = EWMA(alpha=0.2)
        smoothed = s.update([x, y])
    """

    def __init__(self, alpha: float = 0.2, init: Union[None, Iterable] = None) -> None:
        self.alpha = float(alpha)
        self.value = None if init is None else np.array(init, dtype=float)

    def update(self, x: Iterable) -> np.ndarray:
        x = np.array(x, dtype=float)
        if self.value is None:
            self.value = x
        else:
            self.value = self.alpha * x + (1 - self.alpha) * self.value
        return self.value


__all__ = [
    "landmarks_to_array",
    "euclidean",
    "angle_deg",
    "palm_normal",
    "EWMA",
]

import numpy as np
from typing import Dict, Optional, Tuple
from dataclasses import dataclass, field

from sign_translator.utils.math_utils import landmarks_to_array, euclidean, angle_deg


# Hand landmark indices (MediaPipe / handpose ordering)
LANDMARK_NAMES = {
    'WRIST': 0,
    'THUMB_CMC': 1, 'THUMB_MCP': 2, 'THUMB_IP': 3, 'THUMB_TIP': 4,
    'INDEX_MCP': 5, 'INDEX_PIP': 6, 'INDEX_DIP': 7, 'INDEX_TIP': 8,
    'MIDDLE_MCP': 9, 'MIDDLE_PIP': 10, 'MIDDLE_DIP': 11, 'MIDDLE_TIP': 12,
    'RING_MCP': 13, 'RING_PIP': 14, 'RING_DIP': 15, 'RING_TIP': 16,
    'PINKY_MCP': 17, 'PINKY_PIP': 18, 'PINKY_DIP': 19, 'PINKY_TIP': 20,
}

NUM_LANDMARKS = 21

FINGER_NAMES = ('thumb', 'index', 'middle', 'ring', 'pinky')

# (mcp, pip, dip, tip) per finger; for the thumb these are (cmc, mcp, ip, tip)
FINGER_JOINTS = {
    'thumb': (1, 2, 3, 4),
    'index': (5, 6, 7, 8),
    'middle': (9, 10, 11, 12),
    'ring': (13, 14, 15, 16),
    'pinky': (17, 18, 19, 20),
}

PALM_INDICES = [
    LANDMARK_NAMES['WRIST'], LANDMARK_NAMES['INDEX_MCP'], LANDMARK_NAMES['MIDDLE_MCP'],
    LANDMARK_NAMES['RING_MCP'], LANDMARK_NAMES['PINKY_MCP'],
]


@dataclass
class FingerThresholds:
    """
    Per-finger extension thresholds.

    Index and pinky get more permissive values than middle and ring because
    full extension is anatomically harder for them while signing.
    """
    thumb_ratio: float = 0.8
    extension_ratio: Dict[str, float] = field(default_factory=lambda: {
        'index': 1.5, 'middle': 1.7, 'ring': 1.7, 'pinky': 1.5,
    })
    straight_angle: Dict[str, float] = field(default_factory=lambda: {
        'index': 150.0, 'middle': 160.0, 'ring': 160.0, 'pinky': 145.0,
    })
    curl_bent_angle: float = 70.0

    @classmethod
    def from_config(cls, config=None) -> 'FingerThresholds':
        if config is None:
            from sign_translator.config.config_manager import config
        defaults = cls()
        section = 'finger_extension'
        return cls(
            thumb_ratio=float(config.get(section, 'thumb_ratio', default=defaults.thumb_ratio)),
            extension_ratio={
                f: float(config.get(section, 'extension_ratio', f, default=defaults.extension_ratio[f]))
                for f in FINGER_NAMES[1:]
            },
            straight_angle={
                f: float(config.get(section, 'straight_angle', f, default=defaults.straight_angle[f]))
                for f in FINGER_NAMES[1:]
            },
            curl_bent_angle=float(config.get(section, 'curl_bent_angle', default=defaults.curl_bent_angle)),
        )


@dataclass(frozen=True)
class FingerState:
    """
    Per-frame finger state for one hand.
    Ordered thumb, index, middle, ring, pinky.
    """
    extended: Tuple[bool, bool, bool, bool, bool]
    # 0.0 = straight, 1.0 = fully curled; 0.5 when the joint angle is undefined
    curls: Tuple[float, float, float, float, float]
    # joint angle in degrees used for each curl (PIP, or IP for the thumb)
    joint_angles: Tuple[float, float, float, float, float]

    @property
    def count(self) -> int:
        return sum(self.extended)

    def as_list(self):
        return list(self.extended)

    def as_dict(self) -> Dict[str, bool]:
        return dict(zip(FINGER_NAMES, self.extended))


def validate_frame(landmarks) -> Optional[np.ndarray]:
    """
    Return the frame as a (21, 3) float array, or None if it is not a usable hand.

    Rejects wrong point counts, points that are not 3-D, non-finite values and
    the all-zero frame some detectors emit when tracking is lost.
    """
    if landmarks is None:
        return None
    try:
        if isinstance(landmarks, np.ndarray):
            pts = np.asarray(landmarks, dtype=float)
        else:
            pts = landmarks_to_array(landmarks)
    except (TypeError, ValueError):
        return None

    if pts.ndim != 2 or pts.shape != (NUM_LANDMARKS, 3):
        return None
    if not np.all(np.isfinite(pts)):
        return None
    if not np.any(pts):
        return None
    return pts


def palm_center(pts: np.ndarray) -> np.ndarray:
    """Mean of the wrist and the four finger MCP joints."""
    return pts[PALM_INDICES].mean(axis=0)


def curl_from_angle(joint_angle: float, bent_angle: float = 70.0) -> float:
    """Map a joint angle to a 0..1 curl value (180 degrees = straight)."""
    if np.isnan(joint_angle):
        return 0.5
    span = max(180.0 - bent_angle, 1e-6)
    return float(np.clip((180.0 - joint_angle) / span, 0.0, 1.0))


def is_thumb_extended(pts: np.ndarray, thumb_ratio: float) -> bool:
    """
    Sideways thumb test: the tip must be far from the pinky knuckle relative
    to the length of the thumb's base (thumb MCP to wrist).
    """
    tip_to_pinky = euclidean(pts[LANDMARK_NAMES['THUMB_TIP']], pts[LANDMARK_NAMES['PINKY_MCP']])
    base_len = euclidean(pts[LANDMARK_NAMES['THUMB_MCP']], pts[LANDMARK_NAMES['WRIST']])
    return bool(tip_to_pinky > thumb_ratio * base_len)


def is_finger_extended(
    pts: np.ndarray,
    finger_name: str,
    center: np.ndarray,
    extension_ratio: float,
    straight_angle: float,
) -> Tuple[bool, float]:
    """
    Distance-ratio OR straightness test for index..pinky.

    Returns (extended, pip_angle). A NaN angle never counts as straight, so
    the distance ratio alone decides for degenerate joints.
    """
    mcp_idx, pip_idx, dip_idx, tip_idx = FINGER_JOINTS[finger_name]

    # eps to avoid dividing by zero
    eps = 1e-6
    d_tip = euclidean(pts[tip_idx], center)
    d_mcp = euclidean(pts[mcp_idx], center)
    ratio = float(d_tip / (d_mcp + eps))

    pip_angle = angle_deg(pts[mcp_idx], pts[pip_idx], pts[dip_idx])
    straight = (not np.isnan(pip_angle)) and pip_angle > straight_angle

    return (ratio > extension_ratio or straight), pip_angle


def extract_finger_state(landmarks, thresholds: Optional[FingerThresholds] = None) -> Optional[FingerState]:
    """
    Compute which fingers are extended for a single frame.

    Args:
        landmarks: 21 (x, y, z) points, or MediaPipe landmark objects
        thresholds: per-finger thresholds; defaults when omitted

    Returns:
        FingerState, or None when the frame is not a valid hand.
    """
    pts = validate_frame(landmarks)
    if pts is None:
        return None

    if thresholds is None:
        thresholds = FingerThresholds()

    center = palm_center(pts)

    extended = [is_thumb_extended(pts, thresholds.thumb_ratio)]
    thumb_angle = angle_deg(pts[2], pts[3], pts[4])
    angles = [thumb_angle]

    for finger in FINGER_NAMES[1:]:
        is_ext, pip_angle = is_finger_extended(
            pts,
            finger,
            center,
            thresholds.extension_ratio[finger],
            thresholds.straight_angle[finger],
        )
        extended.append(is_ext)
        angles.append(pip_angle)

    curls = tuple(curl_from_angle(a, thresholds.curl_bent_angle) for a in angles)

    return FingerState(
        extended=tuple(extended),
        curls=curls,
        joint_angles=tuple(float(a) for a in angles),
    )


__all__ = [
    'LANDMARK_NAMES',
    'FINGER_NAMES',
    'FINGER_JOINTS',
    'FingerThresholds',
    'FingerState',
    'validate_frame',
    'palm_center',
    'curl_from_angle',
    'is_thumb_extended',
    'is_finger_extended',
    'extract_finger_state',
]

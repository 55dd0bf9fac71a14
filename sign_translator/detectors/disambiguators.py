"""
Confusable-pair discriminators.

Some signs share a finger pattern and only differ in geometry the boolean
vector cannot see (U vs V spread, crossed fingers for R, finger direction
for H, palm orientation for Hello). Each discriminator measures one feature
on the raw landmarks and returns confidence multipliers for the gestures it
resolves. The table runs after the general scoring pass.
"""

import numpy as np
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional

from sign_translator.detectors.finger_state import FingerState, LANDMARK_NAMES
from sign_translator.detectors.gesture_types import MatchCandidate
from sign_translator.detectors.pattern_library import ALL_EXTENDED
from sign_translator.utils.math_utils import euclidean, palm_normal


CAMERA_AXIS = np.array([0.0, 0.0, 1.0])


@dataclass
class DisambiguationSettings:
    enabled: bool = True
    u_spread_max: float = 0.25
    v_spread_min: float = 0.45
    palm_facing_min: float = 0.7
    hello_boost: float = 1.15
    suppress_factor: float = 0.5

    @classmethod
    def from_config(cls, config=None) -> 'DisambiguationSettings':
        if config is None:
            from sign_translator.config.config_manager import config
        d = cls()
        section = 'disambiguation'
        return cls(
            enabled=bool(config.get(section, 'enabled', default=d.enabled)),
            u_spread_max=float(config.get(section, 'u_spread_max', default=d.u_spread_max)),
            v_spread_min=float(config.get(section, 'v_spread_min', default=d.v_spread_min)),
            palm_facing_min=float(config.get(section, 'palm_facing_min', default=d.palm_facing_min)),
            hello_boost=float(config.get(section, 'hello_boost', default=d.hello_boost)),
            suppress_factor=float(config.get(section, 'suppress_factor', default=d.suppress_factor)),
        )


# resolve(landmarks, finger_state, candidates, settings) -> {gesture_name: multiplier}
Resolver = Callable[[np.ndarray, FingerState, List[MatchCandidate], DisambiguationSettings], Dict[str, float]]


@dataclass(frozen=True)
class Disambiguator:
    name: str
    gestures: FrozenSet[str]
    resolve: Resolver


# Geometric features

def palm_width(pts: np.ndarray) -> float:
    return float(euclidean(pts[LANDMARK_NAMES['INDEX_MCP']], pts[LANDMARK_NAMES['PINKY_MCP']]))


def fingertip_spread(pts: np.ndarray) -> float:
    """Index-to-middle fingertip distance in palm widths."""
    eps = 1e-6
    gap = float(euclidean(pts[LANDMARK_NAMES['INDEX_TIP']], pts[LANDMARK_NAMES['MIDDLE_TIP']]))
    return gap / (palm_width(pts) + eps)


def fingers_crossed(pts: np.ndarray) -> bool:
    """Index and middle tips swap their left/right order relative to the knuckles."""
    tip_dx = pts[LANDMARK_NAMES['INDEX_TIP']][0] - pts[LANDMARK_NAMES['MIDDLE_TIP']][0]
    mcp_dx = pts[LANDMARK_NAMES['INDEX_MCP']][0] - pts[LANDMARK_NAMES['MIDDLE_MCP']][0]
    return bool(tip_dx * mcp_dx < 0)


def index_points_sideways(pts: np.ndarray) -> bool:
    direction = pts[LANDMARK_NAMES['INDEX_TIP']] - pts[LANDMARK_NAMES['INDEX_MCP']]
    return bool(abs(direction[0]) > abs(direction[1]))


def palm_facing_camera(pts: np.ndarray, min_alignment: float) -> bool:
    normal = palm_normal(pts)
    return bool(abs(float(np.dot(normal, CAMERA_AXIS))) >= min_alignment)


# Built-in resolvers

def _resolve_u_v(pts, state, candidates, s):
    spread = fingertip_spread(pts)
    if spread >= s.v_spread_min:
        return {'U': s.suppress_factor}
    if spread <= s.u_spread_max:
        return {'V': s.suppress_factor}
    return {}


def _resolve_r(pts, state, candidates, s):
    if fingers_crossed(pts):
        return {'U': s.suppress_factor, 'V': s.suppress_factor}
    return {'R': s.suppress_factor}


def _resolve_h(pts, state, candidates, s):
    if index_points_sideways(pts):
        return {'U': s.suppress_factor, 'V': s.suppress_factor, 'R': s.suppress_factor}
    return {'H': s.suppress_factor}


def _resolve_hello(pts, state, candidates, s):
    if not palm_facing_camera(pts, s.palm_facing_min):
        return {'Hello': s.suppress_factor}
    factors = {'Hello': s.hello_boost}
    for candidate in candidates:
        if candidate.name != 'Hello' and candidate.pattern == ALL_EXTENDED:
            factors[candidate.name] = s.suppress_factor
    return factors


BUILTIN_DISAMBIGUATORS = (
    Disambiguator('u_v_spread', frozenset({'U', 'V'}), _resolve_u_v),
    Disambiguator('r_crossed', frozenset({'R'}), _resolve_r),
    Disambiguator('h_sideways', frozenset({'H'}), _resolve_h),
    Disambiguator('hello_palm', frozenset({'Hello'}), _resolve_hello),
)


class DisambiguatorTable:
    """
    Ordered table of discriminators consulted after general scoring.
    A discriminator only runs when one of its gestures is among the candidates.
    """

    def __init__(
        self,
        entries: Optional[Iterable[Disambiguator]] = None,
        settings: Optional[DisambiguationSettings] = None,
    ):
        self._entries: List[Disambiguator] = list(BUILTIN_DISAMBIGUATORS if entries is None else entries)
        self.settings = settings or DisambiguationSettings()

    def register(self, disambiguator: Disambiguator) -> None:
        self._entries.append(disambiguator)

    def names(self) -> List[str]:
        return [d.name for d in self._entries]

    def apply(self, candidates: List[MatchCandidate], state: FingerState, pts: np.ndarray) -> None:
        """Rescale candidate confidences in place."""
        if not self.settings.enabled or not candidates:
            return

        eligible = [c for c in candidates if 'verify_failed' not in c.adjustments]
        present = {c.name for c in eligible}

        for entry in self._entries:
            if not (entry.gestures & present):
                continue
            factors = entry.resolve(pts, state, eligible, self.settings)
            for candidate in eligible:
                factor = factors.get(candidate.name)
                if factor is None:
                    continue
                candidate.confidence = float(np.clip(candidate.confidence * factor, 0.0, 1.0))
                candidate.adjustments.append(entry.name)


__all__ = [
    'DisambiguationSettings',
    'Disambiguator',
    'DisambiguatorTable',
    'BUILTIN_DISAMBIGUATORS',
    'fingertip_spread',
    'fingers_crossed',
    'index_points_sideways',
    'palm_facing_camera',
]

"""
Pattern Matcher

Scores a frame's finger state against every candidate gesture and returns
the ones that clear the confidence floor for their type, best first.

Scoring per gesture:
1. A failed verification predicate short-circuits to a near-zero confidence.
2. Weighted agreement over the five fingers. A finger that should be
   extended but is curled costs more than an unexpected extra extension.
3. Normalize by total weight and clamp; non-positive scores land on a small
   positive floor.
4. Motion, two-handed and complexity discounts.
5. Confusable-pair discriminators (see disambiguators.py).
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from sign_translator.detectors.finger_state import FingerState, FINGER_NAMES, validate_frame
from sign_translator.detectors.gesture_types import GestureDefinition, MatchCandidate, as_definitions
from sign_translator.detectors.pattern_library import PatternLibrary
from sign_translator.detectors.disambiguators import DisambiguatorTable, DisambiguationSettings


@dataclass
class MatcherSettings:
    finger_weights: Dict[str, float] = field(default_factory=lambda: {
        'thumb': 1.0, 'index': 1.5, 'middle': 1.1, 'ring': 0.8, 'pinky': 1.0,
    })
    missing_extension_penalty: float = 1.0
    extra_extension_penalty: float = 0.5
    curl_softening: float = 0.5
    negative_floor: float = 0.05
    confidence_floor: Dict[str, float] = field(default_factory=lambda: {
        'alphabet': 0.8, 'phrase': 0.7, 'word': 0.7,
    })
    motion_penalty: float = 0.15
    complexity_discount: float = 0.05
    two_handed_penalty: float = 0.05
    verification_fail_confidence: float = 0.01

    @classmethod
    def from_config(cls, config=None) -> 'MatcherSettings':
        if config is None:
            from sign_translator.config.config_manager import config
        d = cls()
        section = 'matching'
        return cls(
            finger_weights={
                f: float(config.get(section, 'finger_weights', f, default=d.finger_weights[f]))
                for f in FINGER_NAMES
            },
            missing_extension_penalty=float(config.get(section, 'missing_extension_penalty', default=d.missing_extension_penalty)),
            extra_extension_penalty=float(config.get(section, 'extra_extension_penalty', default=d.extra_extension_penalty)),
            curl_softening=float(config.get(section, 'curl_softening', default=d.curl_softening)),
            negative_floor=float(config.get(section, 'negative_floor', default=d.negative_floor)),
            confidence_floor={
                t: float(config.get(section, 'confidence_floor', t, default=d.confidence_floor[t]))
                for t in d.confidence_floor
            },
            motion_penalty=float(config.get(section, 'motion_penalty', default=d.motion_penalty)),
            complexity_discount=float(config.get(section, 'complexity_discount', default=d.complexity_discount)),
            two_handed_penalty=float(config.get(section, 'two_handed_penalty', default=d.two_handed_penalty)),
            verification_fail_confidence=float(config.get(section, 'verification_fail_confidence', default=d.verification_fail_confidence)),
        )

    def floor_for(self, gesture_type: str) -> float:
        # unknown types get the strictest floor
        return self.confidence_floor.get(gesture_type, max(self.confidence_floor.values()))


class PatternMatcher:
    """
    Stateless scorer: matching the same finger state twice gives the same
    ranked output.
    """

    def __init__(
        self,
        library: PatternLibrary,
        settings: Optional[MatcherSettings] = None,
        disambiguators: Optional[DisambiguatorTable] = None,
    ):
        self.library = library
        self.settings = settings or MatcherSettings()
        self.disambiguators = disambiguators if disambiguators is not None else DisambiguatorTable()
        self._total_weight = sum(self.settings.finger_weights[f] for f in FINGER_NAMES)

    def score_pattern(
        self,
        extended: Sequence[bool],
        expected: Sequence[bool],
        curls: Optional[Sequence[float]] = None,
    ) -> float:
        """
        Normalized weighted agreement between an extracted vector and a pattern.

        Curls only soften the cost of a mismatch on an ambiguous finger; they
        never turn a mismatch into a match.
        """
        s = self.settings
        raw = 0.0
        for i, finger in enumerate(FINGER_NAMES):
            weight = s.finger_weights[finger]
            if bool(extended[i]) == bool(expected[i]):
                raw += weight
                continue

            penalty = s.missing_extension_penalty if expected[i] else s.extra_extension_penalty
            cost = weight * penalty
            if curls is not None:
                certainty = min(1.0, abs(float(curls[i]) - 0.5) * 2.0)
                cost *= 1.0 - s.curl_softening * (1.0 - certainty)
            raw -= cost

        if raw <= 0.0:
            return s.negative_floor
        return float(np.clip(raw / self._total_weight, s.negative_floor, 1.0))

    def score(self, state: FingerState, gesture: GestureDefinition) -> Optional[MatchCandidate]:
        """Score one gesture; None when the library has no usable pattern for it."""
        entry = self.library.resolve(gesture)
        if entry is None:
            return None

        s = self.settings
        if not self.library.verify_passes(entry, state.extended):
            return MatchCandidate(
                gesture=gesture,
                confidence=s.verification_fail_confidence,
                raw_score=0.0,
                pattern=entry.pattern,
                adjustments=['verify_failed'],
            )

        adjustments = []
        best = self.score_pattern(state.extended, entry.pattern, state.curls)
        best_pattern = entry.pattern
        for variation in entry.variations:
            candidate_score = self.score_pattern(state.extended, variation.pattern, state.curls) * variation.confidence
            if candidate_score > best:
                best = candidate_score
                best_pattern = variation.pattern
        if best_pattern != entry.pattern:
            adjustments.append('variation')

        confidence = best
        # a single frame cannot confirm movement or the second hand
        if gesture.has_motion:
            confidence *= 1.0 - s.motion_penalty
            adjustments.append('motion')
        if gesture.is_two_handed:
            confidence *= 1.0 - s.two_handed_penalty
            adjustments.append('two_handed')

        level = int(np.clip(gesture.complexity, 1, 5))
        if level > 1:
            confidence *= 1.0 - s.complexity_discount * (level - 1)
            adjustments.append('complexity')

        return MatchCandidate(
            gesture=gesture,
            confidence=float(np.clip(confidence, 0.0, 1.0)),
            raw_score=best,
            pattern=best_pattern,
            adjustments=adjustments,
        )

    def score_all(self, state: FingerState, gestures: Iterable[GestureDefinition], landmarks=None) -> List[MatchCandidate]:
        """Every scorable gesture, discriminators applied, unfiltered and unsorted."""
        candidates = []
        for gesture in as_definitions(gestures):
            candidate = self.score(state, gesture)
            if candidate is not None:
                candidates.append(candidate)

        if landmarks is not None and self.disambiguators is not None:
            pts = validate_frame(landmarks)
            if pts is not None:
                self.disambiguators.apply(candidates, state, pts)
        return candidates

    def match(self, state: Optional[FingerState], gestures: Iterable[GestureDefinition], landmarks=None) -> List[MatchCandidate]:
        """
        Ranked candidates (descending confidence) above their type's floor.

        Args:
            state: extracted finger state; None yields no candidates
            gestures: candidate gesture definitions from the dictionary
            landmarks: raw frame for the discriminators; skipped when None
        """
        if state is None:
            return []
        candidates = self.score_all(state, gestures, landmarks)
        ranked = [c for c in candidates if c.confidence > self.settings.floor_for(c.gesture.type)]
        # stable sort keeps dictionary order among ties
        ranked.sort(key=lambda c: c.confidence, reverse=True)
        return ranked


def build_matcher(config=None, library: Optional[PatternLibrary] = None) -> PatternMatcher:
    """Matcher wired from configuration."""
    if library is None:
        library = PatternLibrary.default()
    return PatternMatcher(
        library,
        settings=MatcherSettings.from_config(config),
        disambiguators=DisambiguatorTable(settings=DisambiguationSettings.from_config(config)),
    )


__all__ = [
    'MatcherSettings',
    'PatternMatcher',
    'build_matcher',
]

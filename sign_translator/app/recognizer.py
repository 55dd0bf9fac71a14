"""
Sign recognizer

Ties the per-frame pieces together:
    landmarks -> finger state -> ranked candidates -> temporal confirmation

One SignRecognizer per camera stream. process_frame() never raises; a frame
that cannot be classified simply produces no event.
"""

import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from sign_translator.detectors.finger_state import FingerState, FingerThresholds, extract_finger_state, validate_frame
from sign_translator.detectors.gesture_types import DetectedGesture, GestureDefinition, MatchCandidate, as_definitions
from sign_translator.detectors.pattern_library import PatternLibrary
from sign_translator.detectors.pattern_matcher import PatternMatcher, build_matcher
from sign_translator.detectors.temporal_tracker import TemporalTracker, TrackerSettings


@dataclass
class RecognitionStats:
    """Per-session counters for debugging and threshold tuning."""
    frames: int = 0
    frames_with_hand: int = 0
    rejected_frames: int = 0
    frames_with_candidate: int = 0
    errors: int = 0
    events: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    confidence_sums: Dict[str, float] = field(default_factory=lambda: defaultdict(float))

    def record_event(self, event: DetectedGesture) -> None:
        self.events[event.gesture] += 1
        self.confidence_sums[event.gesture] += event.confidence

    def average_confidence(self, gesture: str) -> float:
        count = self.events.get(gesture, 0)
        if count == 0:
            return 0.0
        return self.confidence_sums[gesture] / count

    def summary(self) -> Dict:
        return {
            'frames': self.frames,
            'frames_with_hand': self.frames_with_hand,
            'rejected_frames': self.rejected_frames,
            'frames_with_candidate': self.frames_with_candidate,
            'errors': self.errors,
            'events': {
                name: {'count': count, 'avg_confidence': round(self.average_confidence(name), 3)}
                for name, count in sorted(self.events.items())
            },
        }


class SignRecognizer:
    """
    Recognition session over a gesture dictionary.
    """

    def __init__(
        self,
        gestures: Iterable,
        config=None,
        library: Optional[PatternLibrary] = None,
        matcher: Optional[PatternMatcher] = None,
        tracker: Optional[TemporalTracker] = None,
        debug: Optional[bool] = None,
    ):
        """
        Args:
            gestures: GestureDefinition objects or raw dictionary records
            config: Config instance; the global config when omitted
            library: pattern table; the shipped one when omitted
            matcher: prebuilt matcher (overrides library)
            tracker: prebuilt tracker
            debug: print events and frame errors; defaults to performance.show_debug_info
        """
        if config is None:
            from sign_translator.config.config_manager import config
        self.config = config

        self.gestures: List[GestureDefinition] = as_definitions(gestures)
        self.thresholds = FingerThresholds.from_config(config)
        self.matcher = matcher or build_matcher(config, library=library)
        self.tracker = tracker or TemporalTracker(TrackerSettings.from_config(config))

        if debug is None:
            debug = bool(config.get('performance', 'show_debug_info', default=False))
        self.debug = debug

        self.stats = RecognitionStats()
        self.last_state: Optional[FingerState] = None
        self.last_candidates: List[MatchCandidate] = []

    @property
    def library(self) -> PatternLibrary:
        return self.matcher.library

    def set_gestures(self, gestures: Iterable) -> None:
        """Swap the dictionary; pending confirmations are discarded."""
        self.gestures = as_definitions(gestures)
        self.tracker.reset()
        self.last_state = None
        self.last_candidates = []

    def classify(self, landmarks) -> List[MatchCandidate]:
        """Ranked candidates for a single frame, without temporal state."""
        state = extract_finger_state(landmarks, self.thresholds)
        if state is None:
            return []
        return self.matcher.match(state, self.gestures, landmarks)

    def process_frame(self, landmarks, now: Optional[float] = None) -> Optional[DetectedGesture]:
        """
        Classify one sampled frame and feed the temporal tracker.

        Args:
            landmarks: 21 hand points, or None when no hand is in view
            now: timestamp in seconds; time.time() when omitted

        Returns:
            DetectedGesture when a sign is confirmed, otherwise None
        """
        if now is None:
            now = time.time()
        self.stats.frames += 1

        try:
            self.tracker.maybe_sweep(now)

            if landmarks is None:
                self.tracker.hand_lost()
                self.last_state = None
                self.last_candidates = []
                return None

            pts = validate_frame(landmarks)
            if pts is None:
                self.stats.rejected_frames += 1
                if self.debug:
                    print("⚠ Rejected malformed landmark frame")
                return None
            self.stats.frames_with_hand += 1

            state = extract_finger_state(pts, self.thresholds)
            self.last_state = state
            if state is None:
                self.stats.rejected_frames += 1
                return None

            candidates = self.matcher.match(state, self.gestures, pts)
            self.last_candidates = candidates
            if not candidates:
                return None
            self.stats.frames_with_candidate += 1

            top = candidates[0]
            event = self.tracker.update(top.name, top.confidence, now)
            if event is not None:
                self.stats.record_event(event)
                if self.debug:
                    print(f"✓ {event.gesture} ({event.confidence:.2f})")
            return event

        except Exception as e:
            self.stats.errors += 1
            if self.debug:
                print(f"⚠ Frame classification failed: {e}")
            return None


__all__ = [
    'RecognitionStats',
    'SignRecognizer',
]

"""
Temporal confirmation of per-frame matches.

A sign is only reported once it has been the top match on several
consecutive frames close together in time. A frame whose top match is a
different sign breaks the run. After a confirmation the count drops to one
below the requirement, so a held sign keeps re-confirming every frame; the
cooldown then decides whether that repeat is actually emitted.
"""

import time
from collections import deque
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Deque, Dict, List, Mapping, Optional

import numpy as np

from sign_translator.detectors.gesture_types import DetectedGesture


@dataclass
class TrackerSettings:
    required_matches: int = 3
    reset_window_s: float = 2.0
    expiration_s: float = 5.0
    history_size: int = 5
    keep_after_confirm: int = 2
    cooldown_frames: int = 10
    sweep_interval_s: float = 1.0

    @classmethod
    def from_config(cls, config=None) -> 'TrackerSettings':
        if config is None:
            from sign_translator.config.config_manager import config
        d = cls()
        section = 'temporal'
        return cls(
            required_matches=int(config.get(section, 'required_matches', default=d.required_matches)),
            reset_window_s=float(config.get(section, 'reset_window_s', default=d.reset_window_s)),
            expiration_s=float(config.get(section, 'expiration_s', default=d.expiration_s)),
            history_size=int(config.get(section, 'history_size', default=d.history_size)),
            keep_after_confirm=int(config.get(section, 'keep_after_confirm', default=d.keep_after_confirm)),
            cooldown_frames=int(config.get(section, 'cooldown_frames', default=d.cooldown_frames)),
            sweep_interval_s=float(config.get(section, 'sweep_interval_s', default=d.sweep_interval_s)),
        )


@dataclass
class ConfidenceHistory:
    """Recent matches of one gesture."""
    count: int = 0
    confidences: Deque[float] = field(default_factory=deque)
    last_seen: float = 0.0


def record_match(
    histories: Dict[str, ConfidenceHistory],
    name: str,
    confidence: float,
    now: float,
    settings: TrackerSettings,
) -> Optional[float]:
    """
    Add one qualifying frame for `name`.

    Returns the mean of the stored confidences when the sign is confirmed,
    otherwise None.
    """
    for other_name, other in histories.items():
        if other_name != name and other.count:
            other.count = 0
            other.confidences.clear()

    history = histories.get(name)
    if history is None or now - history.last_seen > settings.reset_window_s:
        history = ConfidenceHistory(confidences=deque(maxlen=settings.history_size))
        histories[name] = history

    history.count += 1
    history.confidences.append(float(confidence))
    history.last_seen = now

    if history.count < settings.required_matches:
        return None

    mean = float(np.mean(history.confidences))

    # partial decay: stay one frame short of the requirement
    history.count = settings.required_matches - 1
    kept = list(history.confidences)[-settings.keep_after_confirm:] if settings.keep_after_confirm > 0 else []
    history.confidences.clear()
    history.confidences.extend(kept)
    return mean


def sweep_expired(histories: Dict[str, ConfidenceHistory], now: float, settings: TrackerSettings) -> List[str]:
    """Delete histories idle for longer than the expiration window."""
    expired = [name for name, h in histories.items() if now - h.last_seen > settings.expiration_s]
    for name in expired:
        del histories[name]
    return expired


class TemporalTracker:
    """
    Confirmation and cooldown state for one recognition session.

    Not thread-safe; one tracker per camera stream.
    """

    def __init__(self, settings: Optional[TrackerSettings] = None):
        self.settings = settings or TrackerSettings()
        self._histories: Dict[str, ConfidenceHistory] = {}
        self.held_gesture: Optional[str] = None
        self.cooldown_count = 0
        self._last_sweep = None

    @property
    def histories(self) -> Mapping[str, ConfidenceHistory]:
        return MappingProxyType(self._histories)

    def __contains__(self, name: str) -> bool:
        return name in self._histories

    def update(self, name: str, confidence: float, now: Optional[float] = None) -> Optional[DetectedGesture]:
        """
        Feed the frame's top match. Returns an event when the sign is
        confirmed and not suppressed by the cooldown.
        """
        if now is None:
            now = time.time()

        mean = record_match(self._histories, name, confidence, now, self.settings)
        if mean is None:
            return None

        if self.held_gesture != name or self.cooldown_count > self.settings.cooldown_frames:
            self.held_gesture = name
            self.cooldown_count = 0
            return DetectedGesture(gesture=name, confidence=mean, timestamp=int(now * 1000))

        self.cooldown_count += 1
        return None

    def hand_lost(self) -> None:
        """No hand in view: the next confirmation of any sign is emitted."""
        self.held_gesture = None
        self.cooldown_count = 0

    def sweep(self, now: Optional[float] = None) -> List[str]:
        if now is None:
            now = time.time()
        self._last_sweep = now
        return sweep_expired(self._histories, now, self.settings)

    def maybe_sweep(self, now: Optional[float] = None) -> List[str]:
        """Sweep at most once per sweep interval."""
        if now is None:
            now = time.time()
        if self._last_sweep is not None and now - self._last_sweep < self.settings.sweep_interval_s:
            return []
        return self.sweep(now)

    def reset(self) -> None:
        self._histories.clear()
        self.hand_lost()
        self._last_sweep = None


__all__ = [
    'TrackerSettings',
    'ConfidenceHistory',
    'record_match',
    'sweep_expired',
    'TemporalTracker',
]

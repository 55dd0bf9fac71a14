"""
Gesture dictionary types shared by the matcher, tracker and recognizer.

Gesture definitions come from the external dictionary (JSON exported from the
gesture store). The recognizer treats them as read-only reference data.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union


GESTURE_TYPES = ('alphabet', 'phrase', 'word')

FingerPattern = Tuple[bool, bool, bool, bool, bool]


class GestureDictionaryError(ValueError):
    """Raised when a gesture dictionary entry is malformed."""


def to_finger_pattern(value, context: str = 'pattern') -> FingerPattern:
    """Validate a 5-element boolean finger pattern (thumb..pinky)."""
    if isinstance(value, str) or not hasattr(value, '__len__') or len(value) != 5:
        raise ValueError(f"{context}: expected 5 booleans, got {value!r}")
    if not all(isinstance(v, bool) for v in value):
        raise ValueError(f"{context}: expected 5 booleans, got {value!r}")
    return tuple(value)


@dataclass(frozen=True)
class GestureDefinition:
    """One sign from the gesture dictionary."""
    name: str
    type: str = 'alphabet'
    finger_pattern: Optional[FingerPattern] = None
    has_motion: bool = False
    is_two_handed: bool = False
    complexity: int = 1
    msasl_class: Optional[int] = None
    category: Optional[str] = None
    hand_shape: Optional[str] = None
    description: str = ''

    @classmethod
    def from_dict(cls, data: Dict) -> 'GestureDefinition':
        """
        Build a definition from a dictionary record.

        Accepts the dictionary's camelCase keys (fingerPattern, hasMotion,
        isTwoHanded, msaslClass, handShape) as well as snake_case ones.
        """
        if not isinstance(data, dict):
            raise GestureDictionaryError(f"Gesture entry must be an object, got {type(data).__name__}")

        name = data.get('name')
        if not isinstance(name, str) or not name:
            raise GestureDictionaryError(f"Gesture entry without a name: {data!r}")

        gesture_type = data.get('type', 'alphabet')
        if gesture_type not in GESTURE_TYPES:
            raise GestureDictionaryError(f"{name}: unknown gesture type {gesture_type!r}")

        raw_pattern = _pick(data, 'fingerPattern', 'finger_pattern')
        pattern = None
        if raw_pattern is not None:
            # The store keeps jsonb; some exports double-encode it as a string
            if isinstance(raw_pattern, str):
                try:
                    raw_pattern = json.loads(raw_pattern)
                except json.JSONDecodeError as e:
                    raise GestureDictionaryError(f"{name}: unreadable finger pattern ({e})")
            try:
                pattern = to_finger_pattern(raw_pattern, context=name)
            except ValueError as e:
                raise GestureDictionaryError(str(e))

        complexity = _pick(data, 'complexity', 'complexity')
        msasl_class = _pick(data, 'msaslClass', 'msasl_class')

        return cls(
            name=name,
            type=gesture_type,
            finger_pattern=pattern,
            has_motion=bool(_pick(data, 'hasMotion', 'has_motion') or False),
            is_two_handed=bool(_pick(data, 'isTwoHanded', 'is_two_handed') or False),
            complexity=int(complexity) if complexity is not None else 1,
            msasl_class=int(msasl_class) if msasl_class is not None else None,
            category=data.get('category'),
            hand_shape=_pick(data, 'handShape', 'hand_shape'),
            description=data.get('description') or '',
        )


def _pick(data: Dict, camel: str, snake: str):
    if camel in data:
        return data[camel]
    return data.get(snake)


def load_gesture_dictionary(path: Union[str, Path]) -> List[GestureDefinition]:
    """Load a JSON list of gesture records into definitions."""
    with open(path, 'r') as f:
        records = json.load(f)
    if not isinstance(records, list):
        raise GestureDictionaryError(f"{path}: expected a list of gestures")

    gestures = [GestureDefinition.from_dict(record) for record in records]
    names = [g.name for g in gestures]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise GestureDictionaryError(f"{path}: duplicate gesture names {duplicates}")

    print(f"✓ Loaded {len(gestures)} gestures from {path}")
    return gestures


def as_definitions(gestures) -> List[GestureDefinition]:
    """Accept definitions or raw dictionary records."""
    return [g if isinstance(g, GestureDefinition) else GestureDefinition.from_dict(g) for g in gestures]


@dataclass
class MatchCandidate:
    """A gesture scored against one frame's finger state."""
    gesture: GestureDefinition
    confidence: float
    raw_score: float = 0.0
    # the finger pattern the score was computed against
    pattern: Optional[FingerPattern] = None
    adjustments: List[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.gesture.name


@dataclass(frozen=True)
class DetectedGesture:
    """A confirmed detection handed to the UI/API layer."""
    gesture: str
    confidence: float
    timestamp: int  # epoch milliseconds

    def to_dict(self) -> Dict:
        return {
            'gesture': self.gesture,
            'confidence': self.confidence,
            'timestamp': self.timestamp,
        }


__all__ = [
    'GESTURE_TYPES',
    'GestureDictionaryError',
    'GestureDefinition',
    'MatchCandidate',
    'DetectedGesture',
    'load_gesture_dictionary',
    'as_definitions',
    'to_finger_pattern',
]

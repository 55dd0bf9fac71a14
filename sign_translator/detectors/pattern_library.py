"""
Pattern Library

Maps gesture names to the finger pattern a frame must show, an optional
verification predicate and alternative patterns (variations) with a
reliability weight. The table is loaded from a versioned JSON file so it can
be audited and extended without touching the matcher.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from sign_translator.detectors.gesture_types import GestureDefinition, FingerPattern, to_finger_pattern


ALL_EXTENDED: FingerPattern = (True, True, True, True, True)

MISSING_POLICIES = ('definition', 'skip', 'all_extended')


class PatternLibraryError(ValueError):
    """Raised when a pattern table is malformed."""


# Verification predicates over the extracted finger vector (thumb..pinky)

def _fingers_curled(v: Sequence[bool]) -> bool:
    return not any(v[1:])


def _thumb_extended(v: Sequence[bool]) -> bool:
    return bool(v[0])


def _thumb_tucked(v: Sequence[bool]) -> bool:
    return not v[0]


def _index_middle_only(v: Sequence[bool]) -> bool:
    return bool(v[1] and v[2] and not v[3] and not v[4])


def _index_only(v: Sequence[bool]) -> bool:
    return bool(v[1] and not v[2] and not v[3] and not v[4])


def _pinky_only(v: Sequence[bool]) -> bool:
    return bool(v[4] and not v[1] and not v[2] and not v[3])


Predicate = Callable[[Sequence[bool]], bool]

# built-ins; each PatternLibrary copies these into its own registry
VERIFICATION_PREDICATES: Mapping[str, Predicate] = MappingProxyType({
    'fingers_curled': _fingers_curled,
    'thumb_extended': _thumb_extended,
    'thumb_tucked': _thumb_tucked,
    'index_middle_only': _index_middle_only,
    'index_only': _index_only,
    'pinky_only': _pinky_only,
})


@dataclass(frozen=True)
class PatternVariation:
    """Alternative finger pattern and how reliable it is (0..1)."""
    pattern: FingerPattern
    confidence: float = 0.8


@dataclass(frozen=True)
class GesturePattern:
    name: str
    pattern: FingerPattern
    verify: Optional[str] = None
    variations: Tuple[PatternVariation, ...] = ()

    def verify_passes(self, extended: Sequence[bool], predicates: Mapping[str, Predicate] = VERIFICATION_PREDICATES) -> bool:
        """True when there is no predicate or it accepts the vector."""
        if self.verify is None:
            return True
        return bool(predicates[self.verify](extended))


@dataclass
class AuditReport:
    """Differences between a gesture dictionary and the pattern table."""
    missing: List[str] = field(default_factory=list)
    disagreements: List[Tuple[str, FingerPattern, FingerPattern]] = field(default_factory=list)
    unknown_predicates: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not (self.missing or self.disagreements or self.unknown_predicates)


class PatternLibrary:
    """
    Lookup table from gesture name to GesturePattern.

    Gestures absent from the table are handled by `missing_policy`:
      - 'definition': use the dictionary's own finger pattern, skip if it has none
      - 'skip': never match them
      - 'all_extended': assume every finger is extended
    Every such gesture is recorded in `missing_names`.
    """

    def __init__(
        self,
        patterns: Dict[str, GesturePattern],
        version: str = 'unversioned',
        missing_policy: str = 'definition',
        predicates: Optional[Mapping[str, Predicate]] = None,
    ):
        if missing_policy not in MISSING_POLICIES:
            raise PatternLibraryError(f"Unknown missing-pattern policy {missing_policy!r}")
        self._patterns = dict(patterns)
        self.version = version
        self.missing_policy = missing_policy
        self.missing_names = set()
        self.predicates: Dict[str, Predicate] = dict(VERIFICATION_PREDICATES)
        self.predicates.update(predicates or {})

    @classmethod
    def from_dict(
        cls,
        data: Dict,
        missing_policy: str = 'definition',
        predicates: Optional[Mapping[str, Predicate]] = None,
    ) -> 'PatternLibrary':
        if not isinstance(data, dict) or 'patterns' not in data:
            raise PatternLibraryError("Pattern table must be an object with a 'patterns' map")
        version = data.get('version')
        if not version:
            raise PatternLibraryError("Pattern table has no version")

        registry = dict(VERIFICATION_PREDICATES)
        registry.update(predicates or {})
        patterns = {}
        for name, entry in data['patterns'].items():
            patterns[name] = _parse_entry(name, entry, registry)
        return cls(patterns, version=str(version), missing_policy=missing_policy, predicates=predicates)

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        missing_policy: str = 'definition',
        predicates: Optional[Mapping[str, Predicate]] = None,
    ) -> 'PatternLibrary':
        with open(path, 'r') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise PatternLibraryError(f"{path}: {e}")
        library = cls.from_dict(data, missing_policy=missing_policy, predicates=predicates)
        print(f"✓ Loaded {len(library)} gesture patterns (v{library.version}) from {path}")
        return library

    @classmethod
    def default(cls, missing_policy: Optional[str] = None) -> 'PatternLibrary':
        """Library shipped in config/gesture_patterns.json."""
        from sign_translator.config.config_manager import get_recognition_setting, DEFAULT_PATTERNS_PATH
        if missing_policy is None:
            missing_policy = get_recognition_setting('patterns', 'missing_policy', default='definition')
        return cls.from_file(DEFAULT_PATTERNS_PATH, missing_policy=missing_policy)

    def __len__(self) -> int:
        return len(self._patterns)

    def __contains__(self, name: str) -> bool:
        return name in self._patterns

    def names(self) -> List[str]:
        return list(self._patterns)

    def get(self, name: str) -> Optional[GesturePattern]:
        return self._patterns.get(name)

    def register_predicate(self, name: str, predicate: Predicate) -> None:
        """Make a verification predicate available to this library only."""
        self.predicates[name] = predicate

    def verify_passes(self, entry: GesturePattern, extended: Sequence[bool]) -> bool:
        return entry.verify_passes(extended, self.predicates)

    def resolve(self, gesture: GestureDefinition) -> Optional[GesturePattern]:
        """
        Pattern to match `gesture` against, or None if it cannot be matched.
        """
        entry = self._patterns.get(gesture.name)
        if entry is not None:
            return entry

        if gesture.name not in self.missing_names:
            self.missing_names.add(gesture.name)
            print(f"⚠ No pattern entry for '{gesture.name}' (policy: {self.missing_policy})")

        if self.missing_policy == 'definition' and gesture.finger_pattern is not None:
            return GesturePattern(name=gesture.name, pattern=gesture.finger_pattern)
        if self.missing_policy == 'all_extended':
            return GesturePattern(name=gesture.name, pattern=ALL_EXTENDED)
        return None

    def audit(self, gestures: Iterable[GestureDefinition]) -> AuditReport:
        """Compare a gesture dictionary with this table."""
        report = AuditReport()
        for gesture in gestures:
            entry = self._patterns.get(gesture.name)
            if entry is None:
                report.missing.append(gesture.name)
                continue
            if gesture.finger_pattern is not None and gesture.finger_pattern != entry.pattern:
                report.disagreements.append((gesture.name, gesture.finger_pattern, entry.pattern))
        for entry in self._patterns.values():
            if entry.verify is not None and entry.verify not in self.predicates:
                report.unknown_predicates.append((entry.name, entry.verify))
        return report


def _parse_entry(name: str, entry, predicates: Mapping[str, Predicate]) -> GesturePattern:
    if isinstance(entry, list):
        entry = {'pattern': entry}
    if not isinstance(entry, dict) or 'pattern' not in entry:
        raise PatternLibraryError(f"{name}: entry needs a 'pattern'")

    try:
        pattern = to_finger_pattern(entry['pattern'], context=name)
        variations = tuple(
            PatternVariation(
                pattern=to_finger_pattern(v['pattern'], context=f"{name} variation"),
                confidence=float(v.get('confidence', 0.8)),
            )
            for v in entry.get('variations', [])
        )
    except (KeyError, TypeError, ValueError) as e:
        raise PatternLibraryError(f"{name}: {e}")

    for variation in variations:
        if not 0.0 <= variation.confidence <= 1.0:
            raise PatternLibraryError(f"{name}: variation confidence must be within 0..1")

    verify = entry.get('verify')
    if verify is not None and verify not in predicates:
        raise PatternLibraryError(f"{name}: unknown verification predicate {verify!r}")

    return GesturePattern(name=name, pattern=pattern, verify=verify, variations=variations)


__all__ = [
    'PatternLibraryError',
    'VERIFICATION_PREDICATES',
    'PatternVariation',
    'GesturePattern',
    'AuditReport',
    'PatternLibrary',
    'ALL_EXTENDED',
]

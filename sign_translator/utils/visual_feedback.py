"""
Visual Feedback Overlay for the sign translator

Draws the live finger state, the current candidates and the running
transcript onto the camera frame.
"""

import cv2
from dataclasses import dataclass
from typing import List, Optional, Sequence

from sign_translator.detectors.finger_state import FingerState, FINGER_NAMES, FINGER_JOINTS
from sign_translator.detectors.gesture_types import MatchCandidate


# wrist to each finger chain, plus the knuckle line
HAND_CONNECTIONS = [
    (0, 1), (1, 2), (2, 3), (3, 4),
    (0, 5), (5, 6), (6, 7), (7, 8),
    (9, 10), (10, 11), (11, 12),
    (13, 14), (14, 15), (15, 16),
    (0, 17), (17, 18), (18, 19), (19, 20),
    (5, 9), (9, 13), (13, 17),
]


@dataclass
class UIColors:
    """BGR colour palette for overlay elements."""
    extended = (0, 255, 100)          # Green
    curled = (100, 100, 120)          # Grey
    background = (20, 20, 30)         # Dark blue-grey
    text_primary = (255, 255, 255)    # White
    text_secondary = (180, 180, 200)  # Light grey
    accent = (0, 200, 255)            # Bright cyan
    warning = (0, 165, 255)           # Orange


class VisualFeedback:
    """
    Overlay renderer. All draw calls modify the frame in place.
    """

    def __init__(self, config=None):
        self.colors = UIColors()
        self.enabled = True
        self.max_candidates = 3
        self.panel_alpha = 0.6
        if config:
            self.enabled = bool(config.get('display', 'show_overlay', default=True))
            self.max_candidates = int(config.get('display', 'max_candidates_shown', default=3))
            self.panel_alpha = float(config.get('display', 'overlay_opacity', default=0.6))

    def _panel(self, frame, x1, y1, x2, y2):
        overlay = frame.copy()
        cv2.rectangle(overlay, (x1, y1), (x2, y2), self.colors.background, -1, cv2.LINE_AA)
        cv2.addWeighted(overlay, self.panel_alpha, frame, 1.0 - self.panel_alpha, 0, frame)
        cv2.rectangle(frame, (x1, y1), (x2, y2), self.colors.accent, 1, cv2.LINE_AA)

    def draw_hand(self, frame, pts, state: Optional[FingerState] = None):
        """Skeleton from normalized (21, 3) landmarks; extended fingertips drawn larger."""
        if not self.enabled or pts is None:
            return frame
        h, w = frame.shape[:2]
        for start_idx, end_idx in HAND_CONNECTIONS:
            start = (int(pts[start_idx][0] * w), int(pts[start_idx][1] * h))
            end = (int(pts[end_idx][0] * w), int(pts[end_idx][1] * h))
            cv2.line(frame, start, end, self.colors.accent, 2)

        for i, finger in enumerate(FINGER_NAMES):
            tip = pts[FINGER_JOINTS[finger][3]]
            px, py = int(tip[0] * w), int(tip[1] * h)
            if state is not None and state.extended[i]:
                cv2.circle(frame, (px, py), 6, self.colors.extended, -1)
            else:
                cv2.circle(frame, (px, py), 4, self.colors.curled, -1)
        return frame

    def draw_finger_states(self, frame, state: Optional[FingerState]):
        """One box per finger, filled when extended, with its curl value."""
        if not self.enabled:
            return frame
        x, y = 10, 10
        self._panel(frame, x, y, x + 5 * 62 + 10, y + 64)

        if state is None:
            cv2.putText(frame, "No hand", (x + 10, y + 38),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.6, self.colors.curled, 1, cv2.LINE_AA)
            return frame

        for i, finger in enumerate(FINGER_NAMES):
            bx = x + 10 + i * 62
            color = self.colors.extended if state.extended[i] else self.colors.curled
            cv2.rectangle(frame, (bx, y + 8), (bx + 52, y + 30), color, -1 if state.extended[i] else 1, cv2.LINE_AA)
            cv2.putText(frame, finger[:5], (bx + 2, y + 24),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.4, self.colors.text_primary, 1, cv2.LINE_AA)
            cv2.putText(frame, f"{state.curls[i]:.2f}", (bx + 6, y + 52),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.4, self.colors.text_secondary, 1, cv2.LINE_AA)
        return frame

    def draw_candidates(self, frame, candidates: Sequence[MatchCandidate]):
        """Top candidates with a confidence bar."""
        if not self.enabled:
            return frame
        h, w = frame.shape[:2]
        shown = list(candidates)[:self.max_candidates]
        x1, y1 = w - 230, 10
        self._panel(frame, x1, y1, w - 10, y1 + 30 + 24 * max(len(shown), 1))

        cv2.putText(frame, "Candidates", (x1 + 10, y1 + 20),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.5, self.colors.accent, 1, cv2.LINE_AA)
        if not shown:
            cv2.putText(frame, "-", (x1 + 10, y1 + 44),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.5, self.colors.curled, 1, cv2.LINE_AA)
            return frame

        y = y1 + 44
        for candidate in shown:
            bar = int(100 * candidate.confidence)
            cv2.rectangle(frame, (x1 + 100, y - 10), (x1 + 100 + bar, y), self.colors.extended, -1)
            cv2.putText(frame, candidate.name[:10], (x1 + 10, y),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.45, self.colors.text_primary, 1, cv2.LINE_AA)
            cv2.putText(frame, f"{candidate.confidence:.2f}", (x1 + 175, y),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.4, self.colors.text_secondary, 1, cv2.LINE_AA)
            y += 24
        return frame

    def draw_transcript(self, frame, transcript: List[str], status_text: str = ""):
        """Recognized signs along the bottom edge."""
        if not self.enabled:
            return frame
        h, w = frame.shape[:2]
        self._panel(frame, 10, h - 60, w - 10, h - 10)
        text = " ".join(transcript) if transcript else "..."
        cv2.putText(frame, text, (20, h - 28),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.7, self.colors.text_primary, 2, cv2.LINE_AA)
        if status_text:
            cv2.putText(frame, status_text, (20, h - 66),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.4, self.colors.warning, 1, cv2.LINE_AA)
        return frame


__all__ = [
    'UIColors',
    'VisualFeedback',
]

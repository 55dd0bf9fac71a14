#!/usr/bin/env python3
"""
Sign Translator - live demo

Reads the webcam, runs the MediaPipe HandLandmarker, and feeds the first
detected hand to the sign recognizer about twice per second. Confirmed signs
are appended to an on-screen transcript.
"""

import argparse
import cv2
import mediapipe as mp
import sys
import time
import urllib.request
from pathlib import Path
from typing import List, Optional

import numpy as np

from mediapipe.tasks.python import vision as mp_vision
from mediapipe.tasks.python.core.base_options import BaseOptions

from sign_translator.app.recognizer import SignRecognizer
from sign_translator.config.config_manager import config, Config, DEFAULT_DICTIONARY_PATH, get_recognition_setting
from sign_translator.detectors.gesture_types import load_gesture_dictionary
from sign_translator.detectors.pattern_library import PatternLibrary
from sign_translator.utils.math_utils import landmarks_to_array, EWMA
from sign_translator.utils.visual_feedback import VisualFeedback

# Model URL and local path
HAND_LANDMARKER_MODEL_URL = 'https://storage.googleapis.com/mediapipe-models/hand_landmarker/hand_landmarker/float16/1/hand_landmarker.task'
HAND_LANDMARKER_MODEL_PATH = Path(__file__).parent.parent / 'models' / 'hand_landmarker.task'


def ensure_model_downloaded() -> str:
    """Download the hand landmarker model if not present."""
    model_path = HAND_LANDMARKER_MODEL_PATH
    model_path.parent.mkdir(parents=True, exist_ok=True)

    if not model_path.exists():
        print("📥 Downloading hand landmarker model...")
        urllib.request.urlretrieve(HAND_LANDMARKER_MODEL_URL, str(model_path))
        print(f"✓ Model downloaded to {model_path}")

    return str(model_path)


def first_hand_points(results) -> Optional[np.ndarray]:
    """(21, 3) array for the first detected hand, or None."""
    if not results.hand_landmarks:
        return None
    return landmarks_to_array(results.hand_landmarks[0])


class SignApplication:
    """Camera loop around a SignRecognizer."""

    def __init__(self, recognizer: SignRecognizer, camera_idx=0, show_window=True):
        print("\n" + "="*60)
        print("Sign Translator")
        print("="*60 + "\n")

        self.recognizer = recognizer
        self.show_window = show_window

        camera_width = config.get('camera', 'width', default=640)
        camera_height = config.get('camera', 'height', default=480)

        self.cap = cv2.VideoCapture(camera_idx)
        if not self.cap.isOpened():
            raise RuntimeError(f"❌ Could not open camera {camera_idx}")
        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, camera_width)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, camera_height)

        actual_width = int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        actual_height = int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        print(f"✓ Camera initialized: {actual_width}x{actual_height}")

        detection_conf = config.get('performance', 'min_detection_confidence', default=0.7)
        tracking_conf = config.get('performance', 'min_tracking_confidence', default=0.5)
        options = mp_vision.HandLandmarkerOptions(
            base_options=BaseOptions(
                model_asset_path=ensure_model_downloaded(),
                delegate=BaseOptions.Delegate.CPU
            ),
            running_mode=mp_vision.RunningMode.IMAGE,
            num_hands=1,
            min_hand_detection_confidence=detection_conf,
            min_tracking_confidence=tracking_conf
        )
        self.hand_landmarker = mp_vision.HandLandmarker.create_from_options(options)
        print("✓ MediaPipe HandLandmarker initialized")

        self.visual = VisualFeedback(config)
        self.flip_horizontal = config.get('display', 'flip_horizontal', default=True)
        self.detection_interval = config.get('performance', 'detection_interval_ms', default=500) / 1000.0
        self.transcript_length = config.get('display', 'transcript_length', default=12)

        self.transcript: List[str] = []
        self.running = True
        self.last_detection_time = 0.0
        self.fps = EWMA(alpha=0.1)
        self.last_frame_time = time.time()

    def process_frame(self, frame_bgr, now: float):
        """Run landmark detection and, on the sampling interval, recognition."""
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=frame_rgb)
        results = self.hand_landmarker.detect(mp_image)
        pts = first_hand_points(results)

        if self.show_window and pts is not None:
            self.visual.draw_hand(frame_bgr, pts, self.recognizer.last_state)

        if now - self.last_detection_time < self.detection_interval:
            return None
        self.last_detection_time = now

        event = self.recognizer.process_frame(pts, now)
        if event is not None:
            self.transcript.append(event.gesture)
            self.transcript = self.transcript[-self.transcript_length:]
            print(f"  {event.gesture:<12} {event.confidence:.2f}")
        return event

    def run(self):
        """Main application loop."""
        self.print_controls()
        try:
            while self.running:
                ret, frame_bgr = self.cap.read()
                if not ret:
                    print("❌ Failed to read frame")
                    break

                if self.flip_horizontal:
                    frame_bgr = cv2.flip(frame_bgr, 1)

                now = time.time()
                dt = now - self.last_frame_time
                self.last_frame_time = now
                if dt > 0:
                    self.fps.update(1.0 / dt)

                self.process_frame(frame_bgr, now)

                if not self.show_window:
                    continue

                self.visual.draw_finger_states(frame_bgr, self.recognizer.last_state)
                self.visual.draw_candidates(frame_bgr, self.recognizer.last_candidates)
                fps = self.fps.value
                status = f"{float(fps):.0f} FPS" if fps is not None else ""
                self.visual.draw_transcript(frame_bgr, self.transcript, status)
                cv2.imshow('Sign Translator', frame_bgr)

                key = cv2.waitKey(1) & 0xFF
                if key == ord('q'):
                    self.running = False
                elif key == ord('c'):
                    self.transcript.clear()
                    print("  Transcript cleared")
        except KeyboardInterrupt:
            print("\n⚠ Interrupted by user")
        finally:
            self.cleanup()

    def cleanup(self):
        """Clean up resources."""
        print("\n🧹 Cleaning up...")
        if self.cap:
            try:
                self.cap.release()
            except Exception as e:
                print(f"⚠ Error releasing camera: {e}")
        if self.hand_landmarker:
            try:
                self.hand_landmarker.close()
            except Exception as e:
                print(f"⚠ Error closing hand landmarker: {e}")
        if self.show_window:
            cv2.destroyAllWindows()

        summary = self.recognizer.stats.summary()
        print(f"  Frames: {summary['frames']}, with hand: {summary['frames_with_hand']}, "
              f"rejected: {summary['rejected_frames']}, errors: {summary['errors']}")
        for name, info in summary['events'].items():
            print(f"  {name:<12} x{info['count']}  avg {info['avg_confidence']:.2f}")
        print("✓ Sign translator stopped\n")

    def print_controls(self):
        """Print control instructions."""
        print("\n" + "="*60)
        print("KEYBOARD CONTROLS")
        print("="*60)
        print("  Q - Quit application")
        print("  C - Clear transcript")
        print("="*60 + "\n")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Sign Translator - live sign-language recognition from the webcam"
    )
    parser.add_argument(
        '--camera', type=int, default=None,
        help='Camera device index (default: camera.index from config)'
    )
    parser.add_argument(
        '--config', type=str, default=None,
        help='Path to config.json'
    )
    parser.add_argument(
        '--dictionary', type=str, default=None,
        help='Path to the gesture dictionary JSON (default: bundled dictionary)'
    )
    parser.add_argument(
        '--patterns', type=str, default=None,
        help='Path to the gesture pattern table (default: bundled table)'
    )
    parser.add_argument(
        '--debug', action='store_true',
        help='Print emitted events and frame errors'
    )
    parser.add_argument(
        '--no-window', action='store_true',
        help='Run headless (no preview window)'
    )

    args = parser.parse_args()

    if args.config:
        Config(args.config)

    try:
        gestures = load_gesture_dictionary(args.dictionary or DEFAULT_DICTIONARY_PATH)
        if args.patterns:
            policy = get_recognition_setting('patterns', 'missing_policy', default='definition')
            library = PatternLibrary.from_file(args.patterns, missing_policy=policy)
        else:
            library = PatternLibrary.default()

        recognizer = SignRecognizer(gestures, config=config, library=library, debug=args.debug or None)

        camera_idx = args.camera if args.camera is not None else config.get('camera', 'index', default=0)
        show_window = config.get('display', 'show_window', default=True) and not args.no_window
        app = SignApplication(recognizer, camera_idx=camera_idx, show_window=show_window)
        app.run()
    except Exception as e:
        print(f"\n❌ Error: {e}")
        import traceback
        traceback.print_exc()
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

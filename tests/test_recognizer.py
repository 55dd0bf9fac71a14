import unittest
from unittest.mock import MagicMock
import sys
import os

# Add path to source
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sign_translator.app.recognizer import SignRecognizer, RecognitionStats
from sign_translator.config.config_manager import config, DEFAULT_DICTIONARY_PATH, DEFAULT_PATTERNS_PATH
from sign_translator.detectors.gesture_types import DetectedGesture, load_gesture_dictionary
from sign_translator.detectors.pattern_library import PatternLibrary
from landmark_fixtures import open_hand, fist, u_hand, v_hand, zero_frame, nan_frame


class TestSignRecognizer(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.gestures = load_gesture_dictionary(DEFAULT_DICTIONARY_PATH)

    def setUp(self):
        self.recognizer = SignRecognizer(
            self.gestures,
            config=config,
            library=PatternLibrary.from_file(DEFAULT_PATTERNS_PATH),
            debug=False,
        )

    def feed(self, frame, times, start=0.0, step=0.5):
        events = []
        for i in range(times):
            event = self.recognizer.process_frame(frame, start + i * step)
            if event is not None:
                events.append(event)
        return events

    def test_classify_is_stateless(self):
        first = self.recognizer.classify(v_hand())
        second = self.recognizer.classify(v_hand())
        self.assertEqual([c.name for c in first], ['V'])
        self.assertEqual([c.confidence for c in first], [c.confidence for c in second])
        self.assertEqual(self.recognizer.stats.frames, 0)

    def test_classify_invalid_frame(self):
        self.assertEqual(self.recognizer.classify(zero_frame()), [])

    def test_confirmed_after_three_frames(self):
        self.assertIsNone(self.recognizer.process_frame(v_hand(), 0.0))
        self.assertIsNone(self.recognizer.process_frame(v_hand(), 0.5))
        event = self.recognizer.process_frame(v_hand(), 1.0)
        self.assertIsInstance(event, DetectedGesture)
        self.assertEqual(event.gesture, 'V')
        self.assertAlmostEqual(event.confidence, 0.95)
        self.assertEqual(event.timestamp, 1000)

    def test_open_palm_emits_hello(self):
        events = self.feed(open_hand(), 3)
        self.assertEqual([e.gesture for e in events], ['Hello'])
        self.assertAlmostEqual(events[0].confidence, 0.85 * 1.15)

    def test_held_sign_is_not_repeated(self):
        events = self.feed(fist(), 8)
        self.assertEqual([e.gesture for e in events], ['S'])

    def test_flickering_pair_emits_nothing(self):
        events = []
        for i in range(12):
            frame = u_hand() if i % 2 == 0 else v_hand()
            event = self.recognizer.process_frame(frame, i * 0.5)
            if event is not None:
                events.append(event)
        self.assertEqual(events, [])

    def test_interrupted_sign_is_not_confirmed_on_return(self):
        events = self.feed(v_hand(), 3) + self.feed(fist(), 3, start=1.5)
        self.assertEqual([e.gesture for e in events], ['V', 'S'])
        self.assertIsNone(self.recognizer.process_frame(v_hand(), 3.0))

    def test_no_hand_allows_repeat(self):
        self.feed(fist(), 3)
        self.assertIsNone(self.recognizer.process_frame(None, 1.5))
        event = self.recognizer.process_frame(fist(), 2.0)
        self.assertEqual(event.gesture, 'S')

    def test_gap_delays_confirmation(self):
        self.feed(v_hand(), 2)
        # 3 s later the count restarts
        self.assertIsNone(self.recognizer.process_frame(v_hand(), 3.5))
        self.assertIsNone(self.recognizer.process_frame(v_hand(), 4.0))
        self.assertIsNotNone(self.recognizer.process_frame(v_hand(), 4.5))

    def test_invalid_frames_rejected_without_touching_tracker(self):
        self.feed(fist(), 3)
        self.assertIsNone(self.recognizer.process_frame(zero_frame(), 1.5))
        self.assertIsNone(self.recognizer.process_frame(nan_frame(), 2.0))
        self.assertEqual(self.recognizer.stats.rejected_frames, 2)
        self.assertEqual(self.recognizer.tracker.held_gesture, 'S')

    def test_stale_histories_swept(self):
        self.feed(v_hand(), 2)
        self.assertIn('V', self.recognizer.tracker)
        self.recognizer.process_frame(None, 10.0)
        self.assertNotIn('V', self.recognizer.tracker)

    def test_errors_are_counted_not_raised(self):
        self.recognizer.matcher = MagicMock()
        self.recognizer.matcher.match.side_effect = RuntimeError("boom")
        self.assertIsNone(self.recognizer.process_frame(v_hand(), 0.0))
        self.assertEqual(self.recognizer.stats.errors, 1)

    def test_set_gestures_resets_tracker(self):
        self.feed(v_hand(), 2)
        self.recognizer.set_gestures([g for g in self.gestures if g.name != 'V'])
        self.assertEqual(len(self.recognizer.tracker.histories), 0)
        self.assertEqual(self.feed(v_hand(), 3, start=5.0), [])

    def test_last_state_and_candidates(self):
        self.recognizer.process_frame(v_hand(), 0.0)
        self.assertEqual(self.recognizer.last_state.count, 2)
        self.assertEqual(self.recognizer.last_candidates[0].name, 'V')
        self.recognizer.process_frame(None, 0.5)
        self.assertIsNone(self.recognizer.last_state)

    def test_stats_summary(self):
        self.feed(v_hand(), 3)
        self.recognizer.process_frame(None, 1.5)
        summary = self.recognizer.stats.summary()
        self.assertEqual(summary['frames'], 4)
        self.assertEqual(summary['frames_with_hand'], 3)
        self.assertEqual(summary['events']['V']['count'], 1)
        self.assertEqual(summary['events']['V']['avg_confidence'], 0.95)


class TestRecognitionStats(unittest.TestCase):
    def test_average_confidence(self):
        stats = RecognitionStats()
        stats.record_event(DetectedGesture('A', 0.9, 0))
        stats.record_event(DetectedGesture('A', 0.7, 1))
        self.assertAlmostEqual(stats.average_confidence('A'), 0.8)
        self.assertEqual(stats.average_confidence('B'), 0.0)


if __name__ == '__main__':
    unittest.main()

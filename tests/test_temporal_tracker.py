import unittest
import sys
import os

# Add path to source
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sign_translator.detectors.temporal_tracker import (
    TemporalTracker, TrackerSettings, record_match, sweep_expired,
)


class TestRecordMatch(unittest.TestCase):
    def setUp(self):
        self.settings = TrackerSettings()
        self.histories = {}

    def test_confirms_on_third_match_with_mean(self):
        self.assertIsNone(record_match(self.histories, 'A', 0.9, 0.0, self.settings))
        self.assertIsNone(record_match(self.histories, 'A', 0.8, 0.5, self.settings))
        mean = record_match(self.histories, 'A', 0.7, 1.0, self.settings)
        self.assertAlmostEqual(mean, 0.8)

    def test_partial_decay_after_confirmation(self):
        for i, c in enumerate((0.9, 0.8, 0.7)):
            record_match(self.histories, 'A', c, i * 0.5, self.settings)
        history = self.histories['A']
        self.assertEqual(history.count, 2)
        self.assertEqual(list(history.confidences), [0.8, 0.7])
        # one more frame re-confirms
        mean = record_match(self.histories, 'A', 0.6, 1.5, self.settings)
        self.assertAlmostEqual(mean, 0.7)

    def test_gap_restarts_count(self):
        record_match(self.histories, 'A', 0.9, 0.0, self.settings)
        record_match(self.histories, 'A', 0.9, 0.5, self.settings)
        # 2.5 s gap > 2.0 s reset window
        self.assertIsNone(record_match(self.histories, 'A', 0.9, 3.0, self.settings))
        self.assertEqual(self.histories['A'].count, 1)
        self.assertIsNone(record_match(self.histories, 'A', 0.9, 3.5, self.settings))
        self.assertIsNotNone(record_match(self.histories, 'A', 0.9, 4.0, self.settings))

    def test_gap_between_first_and_second_frame(self):
        self.assertIsNone(record_match(self.histories, 'A', 0.5, 0.0, self.settings))
        self.assertIsNone(record_match(self.histories, 'A', 0.9, 2.5, self.settings))
        self.assertEqual(self.histories['A'].count, 1)
        self.assertIsNone(record_match(self.histories, 'A', 0.8, 3.0, self.settings))
        # confirmed on the fourth frame, without the stale first confidence
        mean = record_match(self.histories, 'A', 0.7, 3.5, self.settings)
        self.assertAlmostEqual(mean, 0.8)

    def test_other_sign_breaks_run(self):
        record_match(self.histories, 'A', 0.9, 0.0, self.settings)
        record_match(self.histories, 'A', 0.9, 0.5, self.settings)
        record_match(self.histories, 'B', 0.9, 1.0, self.settings)
        self.assertEqual(self.histories['A'].count, 0)
        self.assertEqual(len(self.histories['A'].confidences), 0)
        self.assertEqual(self.histories['B'].count, 1)
        self.assertIsNone(record_match(self.histories, 'A', 0.9, 1.5, self.settings))
        self.assertEqual(self.histories['A'].count, 1)

    def test_history_bounded(self):
        settings = TrackerSettings(required_matches=10, history_size=5)
        for i in range(8):
            record_match(self.histories, 'A', 0.5 + i * 0.01, i * 0.1, settings)
        self.assertEqual(len(self.histories['A'].confidences), 5)

    def test_sweep_expired(self):
        record_match(self.histories, 'A', 0.9, 0.0, self.settings)
        record_match(self.histories, 'B', 0.9, 3.0, self.settings)
        self.assertEqual(sweep_expired(self.histories, 4.0, self.settings), [])
        self.assertEqual(sweep_expired(self.histories, 5.5, self.settings), ['A'])
        self.assertNotIn('A', self.histories)
        self.assertIn('B', self.histories)


class TestTemporalTracker(unittest.TestCase):
    def setUp(self):
        self.tracker = TemporalTracker(TrackerSettings())
        self.t = 0.0

    def feed(self, name, confidence=0.9):
        event = self.tracker.update(name, confidence, self.t)
        self.t += 0.5
        return event

    def test_emits_after_required_matches(self):
        self.assertIsNone(self.feed('A', 0.9))
        self.assertIsNone(self.feed('A', 0.8))
        event = self.feed('A', 0.7)
        self.assertEqual(event.gesture, 'A')
        self.assertAlmostEqual(event.confidence, 0.8)
        self.assertEqual(event.timestamp, 1000)
        self.assertEqual(event.to_dict(), {'gesture': 'A', 'confidence': event.confidence, 'timestamp': 1000})

    def test_held_gesture_cooldown(self):
        for _ in range(3):
            event = self.feed('A')
        self.assertIsNotNone(event)
        # every following frame re-confirms; eleven are suppressed
        for _ in range(11):
            self.assertIsNone(self.feed('A'))
        self.assertEqual(self.tracker.cooldown_count, 11)
        event = self.feed('A')
        self.assertIsNotNone(event)
        self.assertEqual(self.tracker.cooldown_count, 0)

    def test_new_gesture_emits_immediately_after_confirmation(self):
        for _ in range(3):
            self.feed('A')
        self.assertIsNone(self.feed('B'))
        self.assertIsNone(self.feed('B'))
        event = self.feed('B')
        self.assertEqual(event.gesture, 'B')
        self.assertEqual(self.tracker.held_gesture, 'B')

    def test_alternating_signs_never_confirm(self):
        events = [self.feed(name) for name in ['U', 'V'] * 6]
        self.assertEqual(events, [None] * 12)

    def test_returning_sign_needs_a_full_run(self):
        events = [self.feed(name) for name in ['V'] * 3 + ['S'] * 3 + ['V']]
        self.assertEqual([e.gesture if e else None for e in events], [None, None, 'V', None, None, 'S', None])
        self.assertIsNone(self.feed('V'))
        self.assertEqual(self.feed('V').gesture, 'V')

    def test_hand_lost_resets_cooldown_only(self):
        for _ in range(3):
            self.feed('A')
        self.assertIsNone(self.feed('A'))
        self.tracker.hand_lost()
        self.assertIsNone(self.tracker.held_gesture)
        self.assertIn('A', self.tracker)
        # history survives, so the next frame confirms and is emitted
        self.assertIsNotNone(self.feed('A'))

    def test_maybe_sweep_interval(self):
        self.tracker.update('A', 0.9, 0.0)
        self.assertEqual(self.tracker.maybe_sweep(0.5), [])
        self.assertEqual(self.tracker.maybe_sweep(6.0), ['A'])
        self.tracker.update('B', 0.9, 6.1)
        self.assertEqual(self.tracker.maybe_sweep(11.5), ['B'])
        self.tracker.update('C', 0.9, 11.6)
        # within one second of the last sweep
        self.assertEqual(self.tracker.maybe_sweep(12.0), [])
        self.assertIn('C', self.tracker)

    def test_histories_read_only(self):
        self.tracker.update('A', 0.9, 0.0)
        with self.assertRaises(TypeError):
            self.tracker.histories['B'] = None

    def test_reset(self):
        for _ in range(3):
            self.feed('A')
        self.tracker.reset()
        self.assertEqual(len(self.tracker.histories), 0)
        self.assertIsNone(self.tracker.held_gesture)

    def test_settings_from_config(self):
        from sign_translator.config.config_manager import config
        settings = TrackerSettings.from_config(config)
        self.assertEqual(settings.required_matches, 3)
        self.assertEqual(settings.cooldown_frames, 10)
        self.assertEqual(settings.expiration_s, 5.0)


if __name__ == '__main__':
    unittest.main()

import unittest
import json
import os
import sys
import tempfile

# Add path to source
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sign_translator.config.config_manager import Config, config, DEFAULT_CONFIG_PATH, get_recognition_setting
from sign_translator.detectors.pattern_library import PatternLibrary


class TestConfig(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.path = os.path.join(self.tmpdir, 'config.json')
        with open(self.path, 'w') as f:
            json.dump({
                'temporal': {'required_matches': [4, "Frames needed"], 'reset_window_s': 1.5},
                'matching': {'confidence_floor': {'alphabet': [0.9, "Alphabet floor"]}},
            }, f)

    def tearDown(self):
        # restore the shared instance for the other tests
        Config(DEFAULT_CONFIG_PATH)
        if os.path.exists(self.path):
            os.remove(self.path)
        os.rmdir(self.tmpdir)

    def test_singleton(self):
        self.assertIs(Config(), config)

    def test_described_and_plain_values(self):
        cfg = Config(self.path)
        self.assertEqual(cfg.get('temporal', 'required_matches'), 4)
        self.assertEqual(cfg.get('temporal', 'reset_window_s'), 1.5)
        self.assertEqual(cfg.get('matching', 'confidence_floor', 'alphabet'), 0.9)
        self.assertEqual(cfg.get_with_description('temporal', 'required_matches'), (4, "Frames needed"))
        self.assertEqual(cfg.get_with_description('temporal', 'reset_window_s'), (1.5, ""))

    def test_missing_key_returns_default(self):
        cfg = Config(self.path)
        self.assertEqual(cfg.get('temporal', 'nope', default=7), 7)
        self.assertEqual(cfg.get('nope', 'nope'), None)

    def test_set_keeps_description_and_saves(self):
        cfg = Config(self.path)
        cfg.set('temporal', 'required_matches', value=5)
        cfg.set('display', 'transcript_length', value=20)
        cfg.save()
        with open(self.path) as f:
            saved = json.load(f)
        self.assertEqual(saved['temporal']['required_matches'], [5, "Frames needed"])
        self.assertEqual(saved['display']['transcript_length'], 20)

    def test_missing_file_falls_back_to_defaults(self):
        cfg = Config(os.path.join(self.tmpdir, 'absent.json'))
        self.assertEqual(cfg.get('temporal', 'required_matches'), 3)
        self.assertEqual(cfg.get('matching', 'confidence_floor', 'phrase'), 0.7)

    def test_unparsable_file_falls_back_to_defaults(self):
        with open(self.path, 'w') as f:
            f.write('{broken')
        cfg = Config(self.path)
        self.assertEqual(cfg.get('performance', 'detection_interval_ms'), 500)

    def test_shipped_config_matches_defaults(self):
        cfg = Config(DEFAULT_CONFIG_PATH)
        defaults = Config(os.path.join(self.tmpdir, 'absent.json')).data
        Config(DEFAULT_CONFIG_PATH)
        for section, values in defaults.items():
            for key in values:
                if isinstance(values[key], dict):
                    for sub in values[key]:
                        self.assertEqual(cfg.get(section, key, sub), values[key][sub], (section, key, sub))
                else:
                    self.assertEqual(cfg.get(section, key), values[key], (section, key))

    def test_recognition_setting_helper(self):
        Config(DEFAULT_CONFIG_PATH)
        self.assertEqual(get_recognition_setting('matching', 'motion_penalty'), 0.15)

    def test_default_library_follows_missing_policy(self):
        cfg = Config(DEFAULT_CONFIG_PATH)
        cfg.set('patterns', 'missing_policy', value='skip')
        self.assertEqual(PatternLibrary.default().missing_policy, 'skip')


if __name__ == '__main__':
    unittest.main()

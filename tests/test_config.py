import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import yaml

from census_workshop.utils.config import Config, get_api_key
from census_workshop.utils.validation import ConfigValidationError, validate_config


class TestConfig(unittest.TestCase):
    """
    Test cases for the YAML configuration.
    """

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.config_path = Path(self.tmp.name) / "nested" / "config.yaml"
        self.env = patch.dict(os.environ, {"CENSUS_WORKSHOP_CONFIG": str(self.config_path)})
        self.env.start()
        os.environ.pop("CENSUS_API_KEY", None)
        Config.reset()

    def tearDown(self):
        self.env.stop()
        Config.reset()
        self.tmp.cleanup()

    def test_creates_default_file(self):
        config = Config()

        self.assertTrue(self.config_path.exists())
        self.assertEqual(config.get('census.timeout'), 60)
        self.assertEqual(config.get('visualization.dpi'), 300)
        self.assertIsNone(config.get('census.missing'))
        self.assertEqual(config.get('nope.nothing', 'fallback'), 'fallback')

    def test_singleton(self):
        self.assertIs(Config(), Config())

    def test_user_values_override_defaults(self):
        self.config_path.parent.mkdir(parents=True)
        with open(self.config_path, "w") as f:
            yaml.dump({"census": {"timeout": 10, "api_key": "from-config"}}, f)

        config = Config()

        self.assertEqual(config.get('census.timeout'), 10)
        # untouched defaults are still there
        self.assertEqual(config.get('census.default_acs_year'), 2022)
        self.assertEqual(get_api_key(), "from-config")

    def test_invalid_file_falls_back_to_defaults(self):
        self.config_path.parent.mkdir(parents=True)
        with open(self.config_path, "w") as f:
            yaml.dump({"census": {"timeout": -5}}, f)

        self.assertEqual(Config().get('census.timeout'), 60)

    def test_environment_key_wins(self):
        self.config_path.parent.mkdir(parents=True)
        with open(self.config_path, "w") as f:
            yaml.dump({"census": {"api_key": "from-config"}}, f)

        with patch.dict(os.environ, {"CENSUS_API_KEY": " from-env \n"}):
            self.assertEqual(get_api_key(), "from-env")

    def test_no_key(self):
        self.assertIsNone(get_api_key())

    def test_validate_config(self):
        validate_config(Config()._get_default_config())

        with self.assertRaises(ConfigValidationError):
            validate_config({"census": {}, "logging": {}})
        with self.assertRaises(ConfigValidationError):
            validate_config({"census": {"timeout": -1}, "visualization": {"figure_sizes": {}},
                             "logging": {"level": "INFO", "format": "%(message)s"}})


if __name__ == '__main__':
    unittest.main()

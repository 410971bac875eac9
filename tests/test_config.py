"""Tests for config.ini loading and the configured pipeline builders."""
import logging

import pytest

from nativebridge.config import DEFAULT_START_URL, Config


class TestConfig:

    def test_creates_file_with_defaults(self, tmp_path):
        config = Config(app_dir=tmp_path)

        assert config.config_file_path.exists()
        assert config.start_url == DEFAULT_START_URL
        assert config.confidence_threshold == 85.0
        assert config.iou_threshold == 0.9
        assert config.stability_frames == 3
        assert config.hold_time == 1.5
        assert config.target_width == 800
        assert config.languages == ["ko", "en"]
        assert config.gpu is False
        assert config.log_level == logging.INFO

    def test_file_overrides_defaults(self, tmp_path):
        (tmp_path / "config.ini").write_text(
            "[General]\nstart_url = https://example.com/app\nlog_level = debug\n"
            "[Capture]\nhold_time = 2.5\ncamera_index = 1\n"
            "[Recognition]\nlanguages = en\n",
            encoding="utf-8",
        )

        config = Config(app_dir=tmp_path)

        assert config.start_url == "https://example.com/app"
        assert config.log_level == logging.DEBUG
        assert config.hold_time == 2.5
        assert config.camera_index == 1
        assert config.languages == ["en"]
        # Untouched keys keep their defaults.
        assert config.frame_rate == 5.0

    def test_unknown_log_level_falls_back_to_info(self, tmp_path):
        (tmp_path / "config.ini").write_text("[General]\nlog_level = chatty\n", encoding="utf-8")
        assert Config(app_dir=tmp_path).log_level == logging.INFO

    def test_builders_use_configured_values(self, tmp_path):
        (tmp_path / "config.ini").write_text(
            "[Capture]\nconfidence_threshold = 70\nstability_frames = 4\n"
            "[Preprocessing]\ntarget_width = 640\n",
            encoding="utf-8",
        )
        config = Config(app_dir=tmp_path)

        engine = config.make_engine()
        preprocessor = config.make_preprocessor()

        assert engine.confidence_threshold == 70.0
        assert engine.window.capacity == 4
        assert preprocessor.target_width == 640
        assert preprocessor.ratio == pytest.approx(8.5 / 5.4)

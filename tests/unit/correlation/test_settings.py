"""Unit tests for CorrelationSettings presets and config overrides."""

from dataclasses import replace

import pytest

from auto_video_recorder.correlation.settings import CI, LOCAL, CorrelationSettings


class TestPresets:

    def test_local_defaults(self):
        assert LOCAL.settling_delay == 15.0
        assert LOCAL.max_attempts == 8
        assert LOCAL.retry_delay == 5.0
        assert LOCAL.min_artifact_size == 50_000
        assert LOCAL.recency_min_size == 100_000

    def test_ci_waits_longer_and_retries_more(self):
        assert CI.settling_delay > LOCAL.settling_delay
        assert CI.max_attempts > LOCAL.max_attempts
        assert CI.min_artifact_size == LOCAL.min_artifact_size

    def test_preset_lookup_is_case_insensitive(self):
        assert CorrelationSettings.preset(" CI ") is CI

    def test_unknown_preset(self):
        with pytest.raises(ValueError, match="Unknown preset"):
            CorrelationSettings.preset("staging")


class TestValidation:

    @pytest.mark.parametrize("changes", [
        {"max_attempts": 0},
        {"required_stable_checks": 0},
        {"retry_delay": -1},
        {"min_artifact_size": -5},
    ])
    def test_invalid_values_rejected(self, changes):
        with pytest.raises(ValueError):
            replace(LOCAL, **changes)


class TestFromConfig:

    def test_millisecond_keys_converted(self):
        settings = LOCAL.from_config({
            "processing_delay_ms": "2500",
            "retry_delay_ms": "500",
            "max_retries": "4",
            "sample_interval_ms": "250",
            "stabilization_timeout_s": "7.5",
        })

        assert settings.settling_delay == 2.5
        assert settings.retry_delay == 0.5
        assert settings.max_attempts == 4
        assert settings.sample_interval == 0.25
        assert settings.stabilization_timeout == 7.5

    def test_size_and_extension_keys(self):
        settings = CI.from_config({
            "min_artifact_bytes": "1000",
            "recency_min_bytes": "2000",
            "video_extension": ".WEBM",
        })

        assert settings.name == "ci"
        assert settings.min_artifact_size == 1000
        assert settings.recency_min_size == 2000
        assert settings.video_extension == "webm"

    def test_unparseable_value_keeps_preset(self):
        assert LOCAL.from_config({"max_retries": "lots"}).max_attempts == LOCAL.max_attempts

    def test_invalid_value_keeps_preset(self):
        settings = LOCAL.from_config({"max_retries": "0", "retry_delay_ms": "100"})

        assert settings.max_attempts == LOCAL.max_attempts
        assert settings.retry_delay == 0.1

    def test_empty_config_returns_same_values(self):
        assert LOCAL.from_config({}) == LOCAL


def test_to_dict_round_trips_names():
    data = LOCAL.to_dict()
    assert data["name"] == "local"
    assert data["engine_names"] == ("chrome", "firefox", "edge")

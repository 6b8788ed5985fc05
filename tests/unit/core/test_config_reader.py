"""Unit tests for ConfigManager."""

import importlib

import pytest

from auto_video_recorder.core.config_manager import ConfigManager


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "video_recorder.txt"
    path.write_text(
        "# recorder settings\n"
        "processing_delay_ms = 2000\n"
        "max_retries=4   # per test\n"
        "video_extension = \"webm\"\n"
        "\n"
        "not a setting\n"
        "flag = Yes\n",
        encoding="utf-8",
    )
    return path


class TestReadConfig:

    def test_parses_key_values(self, config_file):
        config = ConfigManager().read_config(config_file)

        assert config == {
            "processing_delay_ms": "2000",
            "max_retries": "4",
            "video_extension": "webm",
            "flag": "Yes",
        }

    def test_default_path_used(self, config_file):
        assert ConfigManager(config_file).read_config()["max_retries"] == "4"

    def test_missing_file_returns_empty(self, tmp_path):
        assert ConfigManager().read_config(tmp_path / "absent.txt") == {}

    def test_undecodable_file_returns_empty(self, tmp_path):
        path = tmp_path / "binary.txt"
        path.write_bytes(b"\xff\xfe\x00bad")

        assert ConfigManager().read_config(path) == {}

    @pytest.mark.asyncio
    async def test_async_read_matches_sync(self, config_file):
        manager = ConfigManager()

        assert await manager.read_config_async(config_file) == manager.read_config(config_file)

    @pytest.mark.asyncio
    async def test_async_missing_file(self, tmp_path):
        assert await ConfigManager().read_config_async(tmp_path / "absent.txt") == {}


class TestTypedGetters:

    def test_get_bool(self):
        manager = ConfigManager()
        config = {"a": "true", "b": "ON", "c": "no"}

        assert manager.get_bool(config, "a") is True
        assert manager.get_bool(config, "b") is True
        assert manager.get_bool(config, "c") is False
        assert manager.get_bool(config, "missing", default=True) is True

    def test_get_int_falls_back_on_garbage(self):
        manager = ConfigManager()

        assert manager.get_int({"n": "12"}, "n") == 12
        assert manager.get_int({"n": "twelve"}, "n", 3) == 3
        assert manager.get_int({}, "n", 7) == 7

    def test_get_float_and_str(self):
        manager = ConfigManager()

        assert manager.get_float({"t": "1.5"}, "t") == 1.5
        assert manager.get_float({"t": "soon"}, "t", 2.0) == 2.0
        assert manager.get_str({"s": "x"}, "s") == "x"
        assert manager.get_str({}, "s", "d") == "d"


def test_config_path_follows_environment(tmp_path, monkeypatch):
    custom = tmp_path / "custom.txt"
    monkeypatch.setenv("AUTO_VIDEO_RECORDER_CONFIG", str(custom))

    import auto_video_recorder.core.paths as paths_module
    try:
        reloaded = importlib.reload(paths_module)
        assert reloaded.CONFIG_PATH == custom
    finally:
        monkeypatch.delenv("AUTO_VIDEO_RECORDER_CONFIG")
        importlib.reload(paths_module)

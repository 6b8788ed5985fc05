"""Unit tests for test identity normalization and naming helpers."""

import pytest

from auto_video_recorder.correlation.identity import (
    canonical_name,
    format_file_size,
    is_utility_test,
    looks_finalized,
    normalize_test_name,
)


class TestNormalizeTestName:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("login_flow", "login_flow"),
            ("  Login Flow  ", "login_flow"),
            ("Checkout: pay with card!", "checkout_pay_with_card"),
            ("a___b", "a_b"),
            ("__edge__", "edge"),
            ("keep-dashes", "keep-dashes"),
        ],
    )
    def test_normalizes(self, raw, expected):
        assert normalize_test_name(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "!!!", "___"])
    def test_empty_inputs_normalize_to_empty(self, raw):
        assert normalize_test_name(raw) == ""


class TestUtilityTests:

    @pytest.mark.parametrize("name", ["suite_setup", "teardown_all", "beforeclass_hook", "afterclass"])
    def test_utility_names(self, name):
        assert is_utility_test(name) is True

    def test_regular_name(self):
        assert is_utility_test("login_flow") is False


class TestLooksFinalized:

    @pytest.mark.parametrize(
        "name",
        [
            "login_test.mp4",
            "Scenario_checkout.MP4",
            "login_2024-01-31_12-30-45.mp4",
        ],
    )
    def test_finalized_conventions(self, name):
        assert looks_finalized(name) is True

    @pytest.mark.parametrize(
        "name",
        [
            "video-abc123def456-chrome.mp4",
            "recording-1.mp4",
            "login_test.txt",
        ],
    )
    def test_raw_recorder_names(self, name):
        assert looks_finalized(name) is False

    def test_respects_extension(self):
        assert looks_finalized("login_test.webm", "webm") is True
        assert looks_finalized("login_test.webm") is False


def test_canonical_name():
    assert canonical_name("login_flow") == "login_flow.mp4"
    assert canonical_name("login_flow", ".webm") == "login_flow.webm"


@pytest.mark.parametrize(
    "size, expected",
    [
        (512, "512 B"),
        (2048, "2.0 KB"),
        (2_000_000, "1.9 MB"),
        (3 * 1024 ** 3, "3.0 GB"),
    ],
)
def test_format_file_size(size, expected):
    assert format_file_size(size) == expected

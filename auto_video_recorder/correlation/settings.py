"""Correlation timing and threshold settings with named presets."""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Mapping, Optional

from auto_video_recorder.core.config_manager import ConfigManager, get_config_manager
from auto_video_recorder.core.logging_utils import get_module_logger

logger = get_module_logger("CorrelationSettings")


@dataclass(frozen=True)
class CorrelationSettings:
    """Every knob the correlation engine reads.

    Times are seconds, sizes are bytes. Instances are immutable; derive
    variants with ``dataclasses.replace`` or :meth:`from_config`.
    """

    name: str = "local"
    settling_delay: float = 15.0
    max_attempts: int = 8
    retry_delay: float = 5.0
    min_artifact_size: int = 50_000
    recency_min_size: int = 100_000
    sample_interval: float = 1.0
    required_stable_checks: int = 3
    stabilization_timeout: float = 15.0
    video_extension: str = "mp4"
    engine_names: tuple[str, ...] = ("chrome", "firefox", "edge")
    temporal_lookback: float = 5 * 60.0
    temporal_lookahead: float = 2 * 60.0
    recency_window: float = 10 * 60.0
    pattern_window: float = 15 * 60.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.required_stable_checks < 1:
            raise ValueError("required_stable_checks must be at least 1")
        for field_name in ("settling_delay", "retry_delay", "sample_interval", "stabilization_timeout"):
            if getattr(self, field_name) < 0:
                raise ValueError(f"{field_name} must not be negative")
        if self.min_artifact_size < 0 or self.recency_min_size < 0:
            raise ValueError("size thresholds must not be negative")

    @classmethod
    def preset(cls, name: str) -> "CorrelationSettings":
        try:
            return PRESETS[name.strip().lower()]
        except KeyError:
            raise ValueError(
                f"Unknown preset '{name}' (expected one of: {', '.join(sorted(PRESETS))})"
            ) from None

    def from_config(
        self,
        config: Mapping[str, str],
        manager: Optional[ConfigManager] = None,
    ) -> "CorrelationSettings":
        """Return a copy with values from a parsed config file applied.

        Millisecond keys mirror the recorder's historic property names.
        Values that fail validation leave this preset's value in place.
        """
        manager = manager or get_config_manager()
        config = dict(config)

        updates: Dict[str, Any] = {}
        if "processing_delay_ms" in config:
            updates["settling_delay"] = manager.get_int(config, "processing_delay_ms", int(self.settling_delay * 1000)) / 1000.0
        if "max_retries" in config:
            updates["max_attempts"] = manager.get_int(config, "max_retries", self.max_attempts)
        if "retry_delay_ms" in config:
            updates["retry_delay"] = manager.get_int(config, "retry_delay_ms", int(self.retry_delay * 1000)) / 1000.0
        if "min_artifact_bytes" in config:
            updates["min_artifact_size"] = manager.get_int(config, "min_artifact_bytes", self.min_artifact_size)
        if "recency_min_bytes" in config:
            updates["recency_min_size"] = manager.get_int(config, "recency_min_bytes", self.recency_min_size)
        if "sample_interval_ms" in config:
            updates["sample_interval"] = manager.get_int(config, "sample_interval_ms", int(self.sample_interval * 1000)) / 1000.0
        if "stabilization_timeout_s" in config:
            updates["stabilization_timeout"] = manager.get_float(config, "stabilization_timeout_s", self.stabilization_timeout)
        if "video_extension" in config:
            extension = manager.get_str(config, "video_extension", self.video_extension).lstrip(".").strip()
            if extension:
                updates["video_extension"] = extension.lower()

        applied = self
        for key, value in updates.items():
            try:
                applied = replace(applied, **{key: value})
            except ValueError as exc:
                logger.warning("Ignoring config value for %s (%s): %s", key, value, exc)
        return applied

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


LOCAL = CorrelationSettings(name="local")
CI = CorrelationSettings(name="ci", settling_delay=20.0, max_attempts=12)

PRESETS: dict[str, CorrelationSettings] = {
    "local": LOCAL,
    "ci": CI,
}


__all__ = ["CI", "LOCAL", "PRESETS", "CorrelationSettings"]

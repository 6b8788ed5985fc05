"""
Component-tagged loggers.

Every module asks :func:`get_module_logger` for its logger. Records are
emitted under the ``auto_video_recorder`` namespace with the text prefixed by
``[Component]`` (or ``[Component|context]`` for a bound logger), so a single
root handler shows which stage of the pipeline spoke and for which test.
"""

from __future__ import annotations

import logging
from typing import Optional

NAMESPACE = "auto_video_recorder"
DEFAULT_COMPONENT = "Recorder"


def _qualified(name: Optional[str]) -> str:
    if not name or name == NAMESPACE:
        return NAMESPACE
    if name.startswith(f"{NAMESPACE}."):
        return name
    return f"{NAMESPACE}.{name}"


def _component_for(qualified_name: str) -> str:
    # "auto_video_recorder.app.main" -> "main"; "auto_video_recorder.Finalizer" -> "Finalizer"
    suffix = qualified_name[len(NAMESPACE):].lstrip(".")
    return suffix.rsplit(".", 1)[-1] if suffix else DEFAULT_COMPONENT


class StructuredLogger:
    """Wraps a :class:`logging.Logger` and tags each message.

    Unknown attributes (``setLevel``, ``isEnabledFor``, ``handlers`` ...) are
    forwarded to the wrapped logger.
    """

    __slots__ = ("_logger", "_tag")

    def __init__(self, logger: logging.Logger, component: Optional[str] = None, context: Optional[str] = None) -> None:
        tag = component or _component_for(logger.name)
        if context:
            tag = f"{tag}|{context}"
        self._logger = logger
        self._tag = tag

    def __getattr__(self, item):
        return getattr(self._logger, item)

    @property
    def name(self) -> str:
        return self._logger.name

    @property
    def tag(self) -> str:
        return self._tag

    def bind(self, context: str) -> "StructuredLogger":
        """Same logger, with ``context`` (usually a test identity) added to the tag."""
        return StructuredLogger(self._logger, self._tag, context)

    def _write(self, level: int, message: object, args: tuple, kwargs: dict) -> None:
        if not self._logger.isEnabledFor(level):
            return
        text = str(message)
        if args:
            try:
                text %= args
            except (TypeError, ValueError):
                text = f"{text} | args={' '.join(map(str, args))}"
        kwargs.setdefault("stacklevel", 3)
        self._logger.log(level, f"[{self._tag}] {text}", **kwargs)

    def debug(self, message: object, *args, **kwargs) -> None:
        self._write(logging.DEBUG, message, args, kwargs)

    def info(self, message: object, *args, **kwargs) -> None:
        self._write(logging.INFO, message, args, kwargs)

    def warning(self, message: object, *args, **kwargs) -> None:
        self._write(logging.WARNING, message, args, kwargs)

    def error(self, message: object, *args, **kwargs) -> None:
        self._write(logging.ERROR, message, args, kwargs)

    def exception(self, message: object, *args, **kwargs) -> None:
        kwargs.setdefault("exc_info", True)
        self._write(logging.ERROR, message, args, kwargs)


def get_module_logger(name: Optional[str] = None) -> StructuredLogger:
    """Return a tagged logger for ``name`` inside the package namespace."""
    return StructuredLogger(logging.getLogger(_qualified(name)))


__all__ = ["NAMESPACE", "StructuredLogger", "get_module_logger"]

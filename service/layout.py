"""Adaptive width sizing for the secondary caption line."""

from __future__ import annotations

from concurrent.futures import Future
import logging
from typing import Callable

from domain.caption_video import AspectClass, round_half_up

WIDE_WRAP_RATIO = 0.60
TALL_LONG_WRAP_RATIO = 0.92
TALL_SHORT_WRAP_RATIO = 0.80
LONG_SECONDARY_TEXT_CHARS = 40
LOGGER = logging.getLogger("render_caption_video")

MeasureText = Callable[[str, int], float]


def select_wrap_ratio(aspect_class: AspectClass, secondary_text_length: int) -> float:
    """Pick the wrap ratio for the secondary line."""
    if aspect_class == AspectClass.WIDE:
        return WIDE_WRAP_RATIO
    if secondary_text_length > LONG_SECONDARY_TEXT_CHARS:
        return TALL_LONG_WRAP_RATIO
    return TALL_SHORT_WRAP_RATIO


def compute_usable_width(canvas_width: int, padding: int) -> int:
    """Return the canvas width left after horizontal padding."""
    return max(0, canvas_width - 2 * padding)


def compute_target_width(
    measured_width: float,
    canvas_width: int,
    padding: int,
    aspect_class: AspectClass,
    secondary_text_length: int,
) -> float:
    """Compute the secondary line container width.

    The result never exceeds the usable width and never drops below the
    measured primary width. A measured width of zero means the primary line
    has not been measured yet, which falls back to the usable width.
    """
    usable_max = compute_usable_width(canvas_width, padding)
    wrap_ratio = select_wrap_ratio(aspect_class, secondary_text_length)
    floor_width = measured_width if measured_width > 0 else usable_max
    return min(usable_max, max(floor_width, round_half_up(usable_max * wrap_ratio)))


class PrimaryLineMeasurement:
    """Width of one cue's primary line, learned through push callbacks.

    The width reads 0.0 until a measurer arrives through fonts_ready. Text
    changes and resizes re-measure with the same measurer; repeating a
    callback with unchanged inputs yields the same width. Closing releases
    the observation: pending requests are cancelled and later callbacks are
    ignored.
    """

    def __init__(self, text: str, canvas_width: int, padding: int) -> None:
        self._text = text
        self._canvas_width = canvas_width
        self._padding = padding
        self._measure: MeasureText | None = None
        self._pending: list[Future[float]] = []
        self._closed = False
        self.width = 0.0

    def __enter__(self) -> "PrimaryLineMeasurement":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def usable_width(self) -> int:
        return compute_usable_width(self._canvas_width, self._padding)

    def request_measurement(self) -> Future[float]:
        """Return a future resolved with the width once layout is ready."""
        future: Future[float] = Future()
        if self._closed:
            future.cancel()
            return future
        if self._measure is None:
            self._pending.append(future)
            return future
        future.set_result(self.width)
        return future

    def fonts_ready(self, measure: MeasureText) -> None:
        if self._closed:
            return
        self._measure = measure
        self._remeasure()

    def resize(self, canvas_width: int) -> None:
        if self._closed:
            return
        self._canvas_width = canvas_width
        self._remeasure()

    def set_text(self, text: str) -> None:
        if self._closed or text == self._text:
            return
        self._text = text
        self._remeasure()

    def target_width(
        self, aspect_class: AspectClass, secondary_text_length: int
    ) -> float:
        return compute_target_width(
            self.width,
            self._canvas_width,
            self._padding,
            aspect_class,
            secondary_text_length,
        )

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._measure = None
        for future in self._pending:
            future.cancel()
        self._pending.clear()

    def _remeasure(self) -> None:
        if self._measure is None:
            return
        self.width = float(self._measure(self._text, self.usable_width))
        LOGGER.debug("measured primary line width %.1f px", self.width)
        pending, self._pending = self._pending, []
        for future in pending:
            if not future.cancelled():
                future.set_result(self.width)

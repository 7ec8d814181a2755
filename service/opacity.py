"""Per-frame fade opacity for scheduled caption intervals."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Tuple

from domain.caption_video import FadeConfig
from service.cue_schedule import ScheduledInterval

BEZIER_NEWTON_ITERATIONS = 8
BEZIER_BISECTION_ITERATIONS = 40
BEZIER_EPSILON = 1e-7
DEFAULT_FADE = FadeConfig()

Easing = Callable[[float], float]


class FadePhase(str, Enum):
    """Position of a frame within an interval's fade envelope."""

    BEFORE_FADE_IN = "before_fade_in"
    FADING_IN = "fading_in"
    STEADY = "steady"
    FADING_OUT = "fading_out"
    DONE = "done"


def cubic_bezier(x1: float, y1: float, x2: float, y2: float) -> Easing:
    """Build a CSS-style cubic-bezier easing over [0, 1]."""

    def curve(t: float, p1: float, p2: float) -> float:
        inverse = 1.0 - t
        return 3.0 * inverse * inverse * t * p1 + 3.0 * inverse * t * t * p2 + t**3

    def slope(t: float, p1: float, p2: float) -> float:
        inverse = 1.0 - t
        return (
            3.0 * inverse * inverse * p1
            + 6.0 * inverse * t * (p2 - p1)
            + 3.0 * t * t * (1.0 - p2)
        )

    def solve_t(x_value: float) -> float:
        t = x_value
        for _ in range(BEZIER_NEWTON_ITERATIONS):
            error = curve(t, x1, x2) - x_value
            if abs(error) < BEZIER_EPSILON and 0.0 <= t <= 1.0:
                return t
            derivative = slope(t, x1, x2)
            if abs(derivative) < 1e-6:
                break
            t -= error / derivative
        low, high = 0.0, 1.0
        t = x_value
        for _ in range(BEZIER_BISECTION_ITERATIONS):
            error = curve(t, x1, x2) - x_value
            if abs(error) < BEZIER_EPSILON:
                break
            if error > 0:
                high = t
            else:
                low = t
            t = (low + high) / 2.0
        return t

    def easing(progress: float) -> float:
        if progress <= 0.0:
            return 0.0
        if progress >= 1.0:
            return 1.0
        return curve(solve_t(progress), y1, y2)

    return easing


EASE = cubic_bezier(0.42, 0.0, 1.0, 1.0)


def interpolate_clamped(
    value: float,
    input_range: Tuple[float, float],
    output_range: Tuple[float, float],
    easing: Easing = EASE,
) -> float:
    """Map value from input_range to output_range, clamped at both ends."""
    input_start, input_end = input_range
    output_start, output_end = output_range
    if input_end == input_start:
        progress = 1.0 if value >= input_end else 0.0
    else:
        progress = (value - input_start) / (input_end - input_start)
    progress = min(1.0, max(0.0, progress))
    return output_start + (output_end - output_start) * easing(progress)


def fade_lengths(
    duration_frames: int,
    is_first: bool,
    is_last: bool,
    fade: FadeConfig = DEFAULT_FADE,
) -> Tuple[int, int]:
    """Return (fade_in_len, fade_out_len) in frames for an interval.

    Each fade is capped at half the duration. The last interval's fade-out
    additionally absorbs the outro and may span the whole interval.
    """
    half_duration = max(0, duration_frames // 2)
    fade_in_len = 0 if is_first else min(fade.fade_in_frames, half_duration)
    base_fade_out = min(fade.fade_out_frames, half_duration)
    if is_last:
        fade_out_len = min(base_fade_out + fade.outro_frames, max(0, duration_frames))
    else:
        fade_out_len = base_fade_out
    return fade_in_len, fade_out_len


def opacity_at(
    frame: float,
    duration_frames: int,
    is_first: bool,
    is_last: bool,
    fade: FadeConfig = DEFAULT_FADE,
) -> float:
    """Compute the opacity in [0, 1] of a frame relative to its interval start."""
    fade_in_len, fade_out_len = fade_lengths(duration_frames, is_first, is_last, fade)

    fade_in = 1.0
    if fade_in_len > 0:
        fade_in = interpolate_clamped(frame, (0, fade_in_len), (0.0, 1.0))

    fade_out = 1.0
    if fade_out_len > 0:
        fade_out = interpolate_clamped(
            frame, (duration_frames - fade_out_len, duration_frames), (1.0, 0.0)
        )

    return min(1.0, max(0.0, fade_in * fade_out))


def fade_phase(
    frame: float,
    duration_frames: int,
    is_first: bool,
    is_last: bool,
    fade: FadeConfig = DEFAULT_FADE,
) -> FadePhase:
    """Classify a frame within the fade envelope; fading out wins on overlap."""
    if frame < 0:
        return FadePhase.BEFORE_FADE_IN
    if frame >= duration_frames:
        return FadePhase.DONE
    fade_in_len, fade_out_len = fade_lengths(duration_frames, is_first, is_last, fade)
    if fade_out_len > 0 and frame >= duration_frames - fade_out_len:
        return FadePhase.FADING_OUT
    if frame < fade_in_len:
        return FadePhase.FADING_IN
    return FadePhase.STEADY


def interval_opacity(
    interval: ScheduledInterval, frame: int, fade: FadeConfig = DEFAULT_FADE
) -> float:
    """Compute the opacity of an interval at a global frame number."""
    return opacity_at(
        frame - interval.from_frame,
        interval.duration_frames,
        interval.is_first,
        interval.is_last,
        fade,
    )

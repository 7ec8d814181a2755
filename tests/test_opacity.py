"""Unit tests for fade opacity."""

from __future__ import annotations

import pytest

from domain.caption_video import Cue, FadeConfig
from service.cue_schedule import ScheduledInterval
from service.opacity import (
    EASE,
    FadePhase,
    fade_lengths,
    fade_phase,
    interpolate_clamped,
    interval_opacity,
    opacity_at,
)

OUTRO_FADE = FadeConfig(fade_in_frames=14, fade_out_frames=18, outro_frames=120)


def test_ease_endpoints_and_shape() -> None:
    """Start at zero, end at one and accelerate in between."""
    assert EASE(0.0) == 0.0
    assert EASE(1.0) == 1.0
    assert 0.0 < EASE(0.5) < 0.5
    samples = [EASE(step / 100.0) for step in range(101)]
    assert samples == sorted(samples)


def test_interpolate_clamps_outside_range() -> None:
    """Hold the boundary values outside the input range."""
    assert interpolate_clamped(-5, (0, 10), (0.0, 1.0)) == 0.0
    assert interpolate_clamped(15, (0, 10), (0.0, 1.0)) == 1.0
    assert interpolate_clamped(15, (0, 10), (1.0, 0.0)) == 0.0
    assert interpolate_clamped(5, (0, 10), (0.0, 1.0), easing=lambda t: t) == 0.5


@pytest.mark.parametrize("duration", [64, 100, 600])
def test_interior_cue_is_invisible_at_both_ends(duration: int) -> None:
    """Fade interior cues from and back to zero."""
    assert opacity_at(0, duration, False, False) == 0.0
    assert opacity_at(duration, duration, False, False) == 0.0
    assert opacity_at(duration // 2, duration, False, False) == 1.0


@pytest.mark.parametrize("is_last", [False, True])
def test_first_cue_does_not_fade_in(is_last: bool) -> None:
    """Show the first cue fully from its first frame."""
    assert opacity_at(0, 300, True, is_last, OUTRO_FADE) == 1.0


def test_short_cue_caps_fades_at_half_duration() -> None:
    """Cap both default fades at five frames for a ten-frame cue."""
    assert fade_lengths(10, False, False) == (5, 5)
    assert opacity_at(5, 10, False, False) == 1.0


def test_last_cue_fade_out_absorbs_outro() -> None:
    """Extend the last fade-out by the outro, bounded by the duration."""
    assert fade_lengths(240, False, True, OUTRO_FADE) == (14, 138)
    assert fade_lengths(10, False, True, OUTRO_FADE) == (5, 10)
    assert fade_lengths(240, True, True, OUTRO_FADE) == (0, 138)


def test_first_cue_has_no_fade_in_length() -> None:
    """Skip the fade-in window for the first cue."""
    assert fade_lengths(100, True, False) == (0, 18)


@pytest.mark.parametrize(
    ("duration", "is_first", "is_last", "fade"),
    [
        (100, False, False, FadeConfig()),
        (10, False, False, FadeConfig()),
        (3, False, False, FadeConfig()),
        (1, False, True, OUTRO_FADE),
        (240, False, True, OUTRO_FADE),
        (300, True, True, OUTRO_FADE),
    ],
)
def test_opacity_is_bounded_and_monotonic_in_fades(
    duration: int, is_first: bool, is_last: bool, fade: FadeConfig
) -> None:
    """Stay in [0, 1] everywhere and move one way inside each fade."""
    fade_in_len, fade_out_len = fade_lengths(duration, is_first, is_last, fade)

    for frame in range(-20, duration + 20):
        value = opacity_at(frame, duration, is_first, is_last, fade)
        assert 0.0 <= value <= 1.0

    if fade_in_len + fade_out_len <= duration:
        fade_in_values = [
            opacity_at(frame, duration, is_first, is_last, fade)
            for frame in range(0, fade_in_len + 1)
        ]
        assert fade_in_values == sorted(fade_in_values)

    fade_out_values = [
        opacity_at(frame, duration, is_first, is_last, fade)
        for frame in range(duration - fade_out_len, duration + 1)
    ]
    assert fade_out_values == sorted(fade_out_values, reverse=True)


def test_fade_phase_walks_through_states() -> None:
    """Report the envelope phase for frames of an interior cue."""
    assert fade_phase(-1, 100, False, False) == FadePhase.BEFORE_FADE_IN
    assert fade_phase(0, 100, False, False) == FadePhase.FADING_IN
    assert fade_phase(14, 100, False, False) == FadePhase.STEADY
    assert fade_phase(82, 100, False, False) == FadePhase.FADING_OUT
    assert fade_phase(100, 100, False, False) == FadePhase.DONE


def test_fade_phase_skips_fade_in_for_first_cue() -> None:
    """Start the first cue in the steady phase."""
    assert fade_phase(0, 100, True, False) == FadePhase.STEADY


def test_interval_opacity_uses_interval_offset() -> None:
    """Measure frames from the interval start."""
    interval = ScheduledInterval(
        from_frame=180,
        duration_frames=174,
        is_first=False,
        is_last=False,
        cue=Cue(start_seconds=3, end_seconds=6, primary_text="B"),
    )

    assert interval_opacity(interval, 180) == 0.0
    assert interval_opacity(interval, 260) == 1.0
    assert interval_opacity(interval, 187) == opacity_at(7, 174, False, False)

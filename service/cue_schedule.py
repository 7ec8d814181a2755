"""Frame scheduling for caption cues."""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Sequence, Tuple

from domain.caption_video import (
    EMPTY_CUES_CODE,
    INVALID_CONFIG_CODE,
    Cue,
    RenderValidationError,
    TimingConfig,
    seconds_to_frames,
)

DEFAULT_TIMING = TimingConfig()


@dataclass(frozen=True)
class ScheduledInterval:
    """A cue placed over a contiguous, non-empty frame range."""

    from_frame: int
    duration_frames: int
    is_first: bool
    is_last: bool
    cue: Cue

    def __post_init__(self) -> None:
        if self.from_frame < 0:
            raise RenderValidationError(
                INVALID_CONFIG_CODE, "from_frame must be non-negative"
            )
        if self.duration_frames < 1:
            raise RenderValidationError(
                INVALID_CONFIG_CODE, "duration_frames must be positive"
            )

    @property
    def end_frame(self) -> int:
        return self.from_frame + self.duration_frames

    def contains(self, frame: int) -> bool:
        return self.from_frame <= frame < self.end_frame


def schedule_cues(
    cues: Sequence[Cue], fps: float, config: TimingConfig = DEFAULT_TIMING
) -> Tuple[ScheduledInterval, ...]:
    """Turn cues into frame intervals with pre-roll, gap and outro applied.

    Cues are expected sorted by start and non-overlapping. Nothing is
    validated here: malformed input still yields intervals, each at least
    one frame long.
    """
    if not cues:
        return ()

    first_start_frames = 0
    if config.pre_roll_enabled:
        first_start_frames = max(0, seconds_to_frames(cues[0].start_seconds, fps))
    gap_frames = config.gap_frames(fps)
    outro_frames = config.outro_frames(fps)
    last_index = len(cues) - 1

    intervals: list[ScheduledInterval] = []
    for index, cue in enumerate(cues):
        is_first = index == 0
        is_last = index == last_index
        start_frame = max(0, seconds_to_frames(cue.start_seconds, fps))
        base_duration = max(
            1, seconds_to_frames(cue.end_seconds - cue.start_seconds, fps)
        )

        if is_first and config.pre_roll_enabled:
            from_frame = 0
            duration_frames = base_duration + first_start_frames
        else:
            from_frame = start_frame
            duration_frames = base_duration

        if is_last:
            duration_frames += outro_frames
        else:
            duration_frames = max(1, duration_frames - gap_frames)

        intervals.append(
            ScheduledInterval(
                from_frame=from_frame,
                duration_frames=duration_frames,
                is_first=is_first,
                is_last=is_last,
                cue=cue,
            )
        )

    return tuple(intervals)


def compute_total_frames(
    cues: Sequence[Cue], fps: float, config: TimingConfig = DEFAULT_TIMING
) -> int:
    """Compute the rendered length: the last cue end plus the outro."""
    if not cues:
        raise RenderValidationError(EMPTY_CUES_CODE, "no cues to render")
    total_frames = int(math.ceil((cues[-1].end_seconds + config.outro_seconds) * fps))
    if total_frames <= 0:
        raise RenderValidationError(
            INVALID_CONFIG_CODE, "cues and fps produce zero frames"
        )
    return total_frames


def active_intervals(
    intervals: Sequence[ScheduledInterval], frame: int
) -> Tuple[ScheduledInterval, ...]:
    """Return the intervals visible at a frame, in schedule order."""
    return tuple(interval for interval in intervals if interval.contains(frame))

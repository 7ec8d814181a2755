"""Domain types and parsing for render_caption_video."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import json
import math
import re
from typing import Any, Mapping, Tuple

INVALID_COLOR_CODE = "render_caption_video.input.invalid_color"
INVALID_CONFIG_CODE = "render_caption_video.input.invalid_config"
INVALID_CUES_CODE = "render_caption_video.input.invalid_cues"
INVALID_SRT_CODE = "render_caption_video.input.invalid_srt"
INVALID_TARGET_CODE = "render_caption_video.input.invalid_target"
EMPTY_CUES_CODE = "render_caption_video.input.empty_cues"
INPUT_FILE_CODE = "render_caption_video.input.file_error"
FONT_LOAD_CODE = "render_caption_video.input.font_unloadable"
LOGO_IMAGE_CODE = "render_caption_video.input.logo_image"
AUDIO_FILE_CODE = "render_caption_video.input.audio_track"

CUE_NEGATIVE_START = "negative_start"
CUE_NEGATIVE_DURATION = "negative_duration"
CUE_UNSORTED = "unsorted"
CUE_OVERLAP = "overlap"

SRT_TIME_RANGE_PATTERN = re.compile(
    r"^(?P<start>\d{2}:\d{2}:\d{2},\d{3})\s*-->\s*(?P<end>\d{2}:\d{2}:\d{2},\d{3})$"
)
SRT_TIMECODE_PATTERN = re.compile(r"^(\d{2}):(\d{2}):(\d{2}),(\d{3})$")
PRIMARY_TEXT_KEYS = ("primary", "arabic")
SECONDARY_TEXT_KEYS = ("secondary", "translation")

DEFAULT_FADE_IN_FRAMES = 14
DEFAULT_FADE_OUT_FRAMES = 18
DEFAULT_GAP_SECONDS = 0.1
DEFAULT_OUTRO_SECONDS = 2.0


class RenderValidationError(ValueError):
    """Validation error with a stable error code."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


class AspectClass(str, Enum):
    """Canvas orientation driving layout heuristics."""

    WIDE = "wide"
    TALL = "tall"


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up."""
    return int(math.floor(value + 0.5))


def seconds_to_frames(seconds: float, fps: float) -> int:
    """Convert seconds to a frame number."""
    return round_half_up(seconds * fps)


def classify_aspect(width: int, height: int) -> AspectClass:
    """Return the aspect class for a canvas size."""
    return AspectClass.WIDE if width >= height else AspectClass.TALL


@dataclass(frozen=True)
class Cue:
    """A timestamped caption with primary and optional secondary text.

    Ordering and duration are caller preconditions and are not checked here;
    use find_cue_violations for an explicit validation pass.
    """

    start_seconds: float
    end_seconds: float
    primary_text: str
    secondary_text: str | None = None

    def __post_init__(self) -> None:
        if self.secondary_text is not None and not self.secondary_text.strip():
            object.__setattr__(self, "secondary_text", None)


@dataclass(frozen=True)
class CueViolation:
    """A cue precondition violation found by the validation pass."""

    index: int
    code: str
    message: str


@dataclass(frozen=True)
class FadeConfig:
    """Fade lengths consumed by the opacity engine, in frames."""

    fade_in_frames: int = DEFAULT_FADE_IN_FRAMES
    fade_out_frames: int = DEFAULT_FADE_OUT_FRAMES
    outro_frames: int = 0


@dataclass(frozen=True)
class TimingConfig:
    """Immutable scheduling and fade policy."""

    fade_in_frames: int = DEFAULT_FADE_IN_FRAMES
    fade_out_frames: int = DEFAULT_FADE_OUT_FRAMES
    gap_seconds: float = DEFAULT_GAP_SECONDS
    outro_seconds: float = DEFAULT_OUTRO_SECONDS
    pre_roll_enabled: bool = True

    def __post_init__(self) -> None:
        if self.fade_in_frames < 0 or self.fade_out_frames < 0:
            raise RenderValidationError(
                INVALID_CONFIG_CODE, "fade lengths must be non-negative"
            )
        if self.gap_seconds < 0:
            raise RenderValidationError(
                INVALID_CONFIG_CODE, "gap_seconds must be non-negative"
            )
        if self.outro_seconds < 0:
            raise RenderValidationError(
                INVALID_CONFIG_CODE, "outro_seconds must be non-negative"
            )

    def gap_frames(self, fps: float) -> int:
        return max(0, seconds_to_frames(self.gap_seconds, fps))

    def outro_frames(self, fps: float) -> int:
        return max(0, seconds_to_frames(self.outro_seconds, fps))

    def fade_config(self, fps: float) -> FadeConfig:
        """Build the fade configuration for a frame rate."""
        return FadeConfig(
            fade_in_frames=self.fade_in_frames,
            fade_out_frames=self.fade_out_frames,
            outro_frames=self.outro_frames(fps),
        )


@dataclass(frozen=True)
class RenderTarget:
    """Output canvas preset."""

    name: str
    width: int
    height: int
    fps: int

    @property
    def aspect_class(self) -> AspectClass:
        return classify_aspect(self.width, self.height)


RENDER_TARGETS = {
    "landscape": RenderTarget(name="landscape", width=1920, height=1080, fps=60),
    "portrait": RenderTarget(name="portrait", width=1080, height=1920, fps=60),
}


def parse_render_target(value: str) -> RenderTarget:
    """Parse a render target name into a RenderTarget."""
    normalized = value.strip().lower()
    target = RENDER_TARGETS.get(normalized)
    if target is None:
        raise RenderValidationError(
            INVALID_TARGET_CODE, f"invalid render target: {value!r}"
        )
    return target


def find_cue_violations(cues: Tuple[Cue, ...]) -> Tuple[CueViolation, ...]:
    """Report cue ordering and duration problems without raising."""
    violations: list[CueViolation] = []
    for index, cue in enumerate(cues):
        if cue.start_seconds < 0:
            violations.append(
                CueViolation(index, CUE_NEGATIVE_START, "cue starts before zero")
            )
        if cue.end_seconds < cue.start_seconds:
            violations.append(
                CueViolation(index, CUE_NEGATIVE_DURATION, "cue ends before it starts")
            )
        if index + 1 >= len(cues):
            continue
        next_cue = cues[index + 1]
        if next_cue.start_seconds < cue.start_seconds:
            violations.append(
                CueViolation(
                    index + 1, CUE_UNSORTED, "cue starts before the previous cue"
                )
            )
        elif cue.end_seconds > next_cue.start_seconds:
            violations.append(
                CueViolation(index, CUE_OVERLAP, "cue overlaps the next cue")
            )
    return tuple(violations)


def _read_number(record: Mapping[str, Any], key: str, index: int) -> float:
    value = record.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RenderValidationError(
            INVALID_CUES_CODE, f"cue {index} has no numeric {key!r}"
        )
    if not math.isfinite(value):
        raise RenderValidationError(
            INVALID_CUES_CODE, f"cue {index} has a non-finite {key!r}"
        )
    return float(value)


def _read_text(
    record: Mapping[str, Any], keys: Tuple[str, ...], index: int
) -> str | None:
    for key in keys:
        if key not in record or record[key] is None:
            continue
        value = record[key]
        if not isinstance(value, str):
            raise RenderValidationError(
                INVALID_CUES_CODE, f"cue {index} field {key!r} must be a string"
            )
        return value
    return None


def parse_cue_record(record: Any, index: int) -> Cue:
    """Parse one JSON cue object."""
    if not isinstance(record, dict):
        raise RenderValidationError(
            INVALID_CUES_CODE, f"cue {index} must be an object"
        )
    primary_text = _read_text(record, PRIMARY_TEXT_KEYS, index)
    if primary_text is None or not primary_text.strip():
        raise RenderValidationError(
            INVALID_CUES_CODE, f"cue {index} is missing primary text"
        )
    return Cue(
        start_seconds=_read_number(record, "start", index),
        end_seconds=_read_number(record, "end", index),
        primary_text=primary_text.strip(),
        secondary_text=_read_text(record, SECONDARY_TEXT_KEYS, index),
    )


def parse_cue_json(text_value: str) -> Tuple[Cue, ...]:
    """Parse a JSON cue list."""
    normalized = text_value.replace("\ufeff", "").strip()
    if not normalized:
        raise RenderValidationError(EMPTY_CUES_CODE, "cue file is empty")
    try:
        payload = json.loads(normalized)
    except json.JSONDecodeError as exc:
        raise RenderValidationError(
            INVALID_CUES_CODE,
            f"cue file is not valid JSON at line {exc.lineno} column {exc.colno}",
        ) from exc
    if not isinstance(payload, list):
        raise RenderValidationError(
            INVALID_CUES_CODE, "cue file must contain a JSON list"
        )
    if not payload:
        raise RenderValidationError(EMPTY_CUES_CODE, "cue file contains no cues")
    return tuple(parse_cue_record(record, index) for index, record in enumerate(payload))


def parse_timecode(timecode_value: str) -> float:
    """Parse an SRT timecode into seconds."""
    match = SRT_TIMECODE_PATTERN.fullmatch(timecode_value.strip())
    if not match:
        raise RenderValidationError(
            INVALID_SRT_CODE, f"invalid timecode: {timecode_value!r}"
        )
    hours, minutes, seconds, millis = (int(part) for part in match.groups())
    return hours * 3600 + minutes * 60 + seconds + millis / 1000.0


def parse_srt(text_value: str) -> Tuple[Cue, ...]:
    """Parse SRT content into cues.

    The first text line of a block is the primary text; any further lines are
    joined into the secondary text.
    """
    normalized = text_value.replace("\ufeff", "").strip()
    if not normalized:
        raise RenderValidationError(EMPTY_CUES_CODE, "SRT input is empty")

    blocks = re.split(r"\n\s*\n", normalized)
    cues: list[Cue] = []

    for block in blocks:
        lines = [line.strip() for line in block.splitlines() if line.strip()]
        if not lines:
            continue
        if lines[0].isdigit():
            lines = lines[1:]
        if not lines:
            raise RenderValidationError(INVALID_SRT_CODE, "SRT block missing timecode")

        time_line = lines[0]
        match = SRT_TIME_RANGE_PATTERN.fullmatch(time_line)
        if not match:
            raise RenderValidationError(
                INVALID_SRT_CODE, f"invalid time range: {time_line!r}"
            )

        text_lines = lines[1:]
        if not text_lines:
            raise RenderValidationError(INVALID_SRT_CODE, "SRT block missing text")

        secondary_text = " ".join(text_lines[1:]) or None
        cues.append(
            Cue(
                start_seconds=parse_timecode(match.group("start")),
                end_seconds=parse_timecode(match.group("end")),
                primary_text=text_lines[0],
                secondary_text=secondary_text,
            )
        )

    if not cues:
        raise RenderValidationError(EMPTY_CUES_CODE, "SRT contains no cues")

    return tuple(cues)


def is_srt_input(file_path: str, text_value: str) -> bool:
    """Return True when input should be treated as SRT."""
    if file_path.lower().endswith(".srt"):
        return True
    return any(
        SRT_TIME_RANGE_PATTERN.fullmatch(line.strip())
        for line in text_value.splitlines()
        if line.strip()
    )


def parse_cues(file_path: str, text_value: str) -> Tuple[Cue, ...]:
    """Parse a cue file as SRT or JSON."""
    if is_srt_input(file_path, text_value):
        return parse_srt(text_value)
    return parse_cue_json(text_value)

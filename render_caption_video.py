#!/usr/bin/env -S uv run
# /// script
# requires-python = ">=3.11"
# dependencies = [
#   "pillow>=10.1"
# ]
# ///
"""Render timed bilingual caption cues into a faded overlay video."""

from __future__ import annotations

import argparse
import json
import logging
import os
import re
import shutil
import subprocess
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Mapping, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont, features

from domain.caption_video import (
    AUDIO_FILE_CODE,
    FONT_LOAD_CODE,
    INPUT_FILE_CODE,
    INVALID_COLOR_CODE,
    INVALID_CONFIG_CODE,
    INVALID_CUES_CODE,
    LOGO_IMAGE_CODE,
    AspectClass,
    Cue,
    RenderValidationError,
    TimingConfig,
    classify_aspect,
    find_cue_violations,
    parse_cues,
    parse_render_target,
)
from service.cue_schedule import (
    ScheduledInterval,
    active_intervals,
    compute_total_frames,
    schedule_cues,
)
from service.layout import PrimaryLineMeasurement
from service.opacity import fade_lengths, interval_opacity

PADDING_PX = 48
PRIMARY_FONT_SIZE = {AspectClass.WIDE: 90, AspectClass.TALL: 100}
PRIMARY_MARGIN_PX = {AspectClass.WIDE: 28, AspectClass.TALL: 36}
SECONDARY_FONT_SIZE = 55
LINE_HEIGHT_RATIO = 1.25
LOGO_WIDTH_PX = {AspectClass.WIDE: 500, AspectClass.TALL: 700}
LOGO_BOTTOM_PX = 5
TEXT_COLOR = (255, 255, 255, 255)
OUTPUT_EXTENSIONS = (".mp4", ".mov")
LOGGER = logging.getLogger("render_caption_video")

FFMPEG_NOT_FOUND_CODE = "render_caption_video.ffmpeg.not_found"
FFMPEG_EXEC_CODE = "render_caption_video.ffmpeg.exec_error"
FFMPEG_UNSUPPORTED_CODE = "render_caption_video.ffmpeg.unsupported"
FFMPEG_PROCESS_CODE = "render_caption_video.ffmpeg.process_failed"
PRORES_PROFILE = "4444"
PRORES_PIXEL_FORMAT = "yuva444p10le"
PRORES_QSCALE = "15"
PRORES_ALPHA_BITS = "8"
H264_CODEC = "libx264"
H264_PIXEL_FORMAT = "yuv420p"
H264_CRF = "20"
H264_PRESET = "veryfast"
AUDIO_CODEC = "aac"
AUDIO_BITRATE = "192k"
AUDIO_PAD_FILTER = "apad"


class RenderPipelineError(RuntimeError):
    """Runtime error with a stable error code."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


class VideoAlphaMode(str, Enum):
    """Alpha handling mode for video output."""

    ALPHA = "alpha"
    OPAQUE = "opaque"


@dataclass(frozen=True)
class RenderConfig:
    """Validated configuration for render_caption_video."""

    cues_file: str
    output_video_file: str
    width: int
    height: int
    fps: int
    background_rgba: Tuple[int, int, int, int]
    timing: TimingConfig = field(default_factory=TimingConfig)
    primary_font_path: str | None = None
    secondary_font_path: str | None = None
    logo_image_path: str | None = None
    audio_track: str | None = None
    strict_cues: bool = False

    def __post_init__(self) -> None:
        if not self.cues_file.strip():
            raise RenderValidationError(INVALID_CONFIG_CODE, "cues_file must be non-empty")
        if self.width <= 0 or self.height <= 0:
            raise RenderValidationError(
                INVALID_CONFIG_CODE, "width and height must be positive"
            )
        if self.fps <= 0:
            raise RenderValidationError(INVALID_CONFIG_CODE, "fps must be positive")
        if not self.output_video_file.lower().endswith(OUTPUT_EXTENSIONS):
            raise RenderValidationError(
                INVALID_CONFIG_CODE, "output_video_file must end with .mp4 or .mov"
            )
        if len(self.background_rgba) != 4:
            raise RenderValidationError(INVALID_CONFIG_CODE, "background_rgba is invalid")
        for channel in self.background_rgba:
            if channel < 0 or channel > 255:
                raise RenderValidationError(
                    INVALID_CONFIG_CODE, "background_rgba channel out of range"
                )
        if self.alpha_mode == VideoAlphaMode.ALPHA:
            if not self.output_video_file.lower().endswith(".mov"):
                raise RenderValidationError(
                    INVALID_CONFIG_CODE, "transparent background requires .mov output"
                )
        elif self.width % 2 or self.height % 2:
            raise RenderValidationError(
                INVALID_CONFIG_CODE, "width and height must be even for opaque output"
            )

    @property
    def aspect_class(self) -> AspectClass:
        return classify_aspect(self.width, self.height)

    @property
    def alpha_mode(self) -> VideoAlphaMode:
        if self.background_rgba[3] == 0:
            return VideoAlphaMode.ALPHA
        return VideoAlphaMode.OPAQUE


@dataclass(frozen=True)
class RenderRequest:
    """Parsed CLI request and runtime options."""

    config: RenderConfig
    cues: Tuple[Cue, ...]
    emit_schedule: bool


@dataclass(frozen=True)
class CaptionFonts:
    """Loaded fonts and text direction for one render."""

    primary: ImageFont.FreeTypeFont
    secondary: ImageFont.FreeTypeFont
    primary_direction: str | None


@dataclass(frozen=True)
class CueSprite:
    """Pre-rendered cue block and its paste position."""

    image: Image.Image
    alpha: Image.Image
    position: Tuple[int, int]


@dataclass(frozen=True)
class VideoEncodingSpec:
    """Encoder settings for a specific alpha mode."""

    codec: str
    pix_fmt: str
    args: Tuple[str, ...]
    alpha_bits: str | None


ENCODING_SPECS = {
    VideoAlphaMode.ALPHA: VideoEncodingSpec(
        codec="prores_ks",
        pix_fmt=PRORES_PIXEL_FORMAT,
        args=(
            "-profile:v",
            PRORES_PROFILE,
            "-qscale:v",
            PRORES_QSCALE,
            "-alpha_bits",
            PRORES_ALPHA_BITS,
        ),
        alpha_bits=PRORES_ALPHA_BITS,
    ),
    VideoAlphaMode.OPAQUE: VideoEncodingSpec(
        codec=H264_CODEC,
        pix_fmt=H264_PIXEL_FORMAT,
        args=("-crf", H264_CRF, "-preset", H264_PRESET),
        alpha_bits=None,
    ),
}


def configure_logging() -> None:
    """Configure logging for CLI output."""
    logging.basicConfig(level=logging.INFO, format="%(message)s")


def parse_hex_color_to_rgba(color_value: str) -> Tuple[int, int, int, int]:
    """Parse a color token into an RGBA tuple."""
    normalized = color_value.strip()
    if normalized.lower() == "transparent":
        return (0, 0, 0, 0)

    match_value = re.fullmatch(r"#([0-9a-fA-F]{6})", normalized)
    if not match_value:
        raise RenderValidationError(
            INVALID_COLOR_CODE,
            f"invalid color value: {color_value!r}",
        )

    rgb_hex = match_value.group(1)
    return (int(rgb_hex[0:2], 16), int(rgb_hex[2:4], 16), int(rgb_hex[4:6], 16), 255)


def read_utf8_text_strict(file_path: str) -> str:
    """Read a UTF-8 file with strict decoding."""
    try:
        with open(file_path, "rb") as file_handle:
            file_bytes = file_handle.read()
    except FileNotFoundError as exc:
        raise RenderValidationError(
            INPUT_FILE_CODE, f"cues file not found: {file_path}"
        ) from exc

    try:
        return file_bytes.decode("utf-8", errors="strict")
    except UnicodeDecodeError as exc:
        raise RenderValidationError(
            INPUT_FILE_CODE,
            f"cues file is not valid UTF-8 at byte offset {exc.start}",
        ) from exc


def load_cues(file_path: str, strict: bool) -> Tuple[Cue, ...]:
    """Load cues and report ordering problems.

    Violations are logged as warnings and rendered as given, unless strict
    mode turns the first one into an error.
    """
    cues = parse_cues(file_path, read_utf8_text_strict(file_path))
    for violation in find_cue_violations(cues):
        if strict:
            raise RenderValidationError(
                INVALID_CUES_CODE,
                f"cue {violation.index} {violation.code}: {violation.message}",
            )
        LOGGER.warning(
            "%s: cue %d %s (%s)",
            INVALID_CUES_CODE,
            violation.index,
            violation.code,
            violation.message,
        )
    return cues


def ensure_ffmpeg_available() -> None:
    """Ensure ffmpeg is installed and executable."""
    ffmpeg_path = shutil.which("ffmpeg")
    if not ffmpeg_path:
        raise RenderPipelineError(FFMPEG_NOT_FOUND_CODE, "ffmpeg not on PATH")
    try:
        subprocess.run(
            [ffmpeg_path, "-version"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as exc:
        raise RenderPipelineError(
            FFMPEG_EXEC_CODE, "ffmpeg exists but could not be executed"
        ) from exc


def validate_ffmpeg_capabilities(config: RenderConfig) -> None:
    """Validate ffmpeg encoders and pixel formats for output."""
    ensure_ffmpeg_available()
    encoding = ENCODING_SPECS[config.alpha_mode]

    encoders_result = subprocess.run(
        ["ffmpeg", "-hide_banner", "-encoders"],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        check=True,
    )
    if encoding.codec not in encoders_result.stdout:
        raise RenderPipelineError(
            FFMPEG_UNSUPPORTED_CODE,
            f"ffmpeg does not support {encoding.codec} encoder",
        )
    if config.audio_track and AUDIO_CODEC not in encoders_result.stdout:
        raise RenderPipelineError(
            FFMPEG_UNSUPPORTED_CODE,
            f"ffmpeg does not support {AUDIO_CODEC} encoder",
        )

    if encoding.alpha_bits is not None:
        encoder_help = subprocess.run(
            ["ffmpeg", "-hide_banner", "-h", f"encoder={encoding.codec}"],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            check=True,
        )
        if "alpha_bits" not in encoder_help.stdout:
            raise RenderPipelineError(
                FFMPEG_UNSUPPORTED_CODE,
                f"ffmpeg {encoding.codec} encoder does not support alpha_bits",
            )


def supports_complex_layout() -> bool:
    """Return True when Pillow can shape right-to-left text."""
    return bool(features.check_feature("raqm"))


def load_font(font_path: str | None, font_size: int) -> ImageFont.FreeTypeFont:
    """Load a font file, or Pillow's bundled font when no path is given."""
    if font_path is None:
        return ImageFont.load_default(size=font_size)
    try:
        return ImageFont.truetype(font_path, size=font_size)
    except OSError as exc:
        raise RenderValidationError(
            FONT_LOAD_CODE, f"failed to load font {font_path} at size {font_size}"
        ) from exc


def load_caption_fonts(config: RenderConfig) -> CaptionFonts:
    """Load the primary and secondary caption fonts."""
    primary_direction = "rtl" if supports_complex_layout() else None
    if primary_direction is None:
        LOGGER.warning(
            "%s: libraqm unavailable; primary text is drawn without RTL shaping",
            FONT_LOAD_CODE,
        )
    return CaptionFonts(
        primary=load_font(
            config.primary_font_path, PRIMARY_FONT_SIZE[config.aspect_class]
        ),
        secondary=load_font(config.secondary_font_path, SECONDARY_FONT_SIZE),
        primary_direction=primary_direction,
    )


def load_logo_image(image_path: str, target_width: int) -> Image.Image:
    """Load the logo as RGBA scaled to the target width."""
    try:
        with Image.open(image_path) as source:
            image = source.convert("RGBA")
    except FileNotFoundError as exc:
        raise RenderValidationError(
            LOGO_IMAGE_CODE, f"logo image not found: {image_path}"
        ) from exc
    except OSError as exc:
        raise RenderValidationError(
            LOGO_IMAGE_CODE, f"failed to read logo image: {image_path}"
        ) from exc
    scale = target_width / float(image.width)
    target_height = max(1, int(round(image.height * scale)))
    return image.resize((target_width, target_height), Image.Resampling.LANCZOS)


def measure_text_width(
    draw_context: ImageDraw.ImageDraw,
    text_value: str,
    font: ImageFont.FreeTypeFont,
    direction: str | None,
) -> float:
    """Measure the advance width of a single line."""
    if not text_value:
        return 0.0
    return float(draw_context.textlength(text_value, font=font, direction=direction))


def wrap_text(
    draw_context: ImageDraw.ImageDraw,
    text_value: str,
    font: ImageFont.FreeTypeFont,
    max_width: float,
    direction: str | None,
) -> list[str]:
    """Greedily wrap words into lines no wider than max_width.

    A single word wider than max_width keeps a line of its own.
    """
    lines: list[str] = []
    current = ""
    for word in text_value.split():
        candidate = f"{current} {word}" if current else word
        if current and measure_text_width(draw_context, candidate, font, direction) > max_width:
            lines.append(current)
            current = word
        else:
            current = candidate
    if current:
        lines.append(current)
    return lines


def build_primary_measurer(
    draw_context: ImageDraw.ImageDraw, fonts: CaptionFonts
) -> Callable[[str, int], float]:
    """Build the measurer reporting the widest wrapped primary line."""

    def measure(text_value: str, max_width: int) -> float:
        lines = wrap_text(
            draw_context, text_value, fonts.primary, max_width, fonts.primary_direction
        )
        return max(
            (
                measure_text_width(draw_context, line, fonts.primary, fonts.primary_direction)
                for line in lines
            ),
            default=0.0,
        )

    return measure


def render_text_lines(
    lines: Sequence[str],
    font: ImageFont.FreeTypeFont,
    block_width: int,
    direction: str | None,
) -> Image.Image:
    """Render centered lines into a transparent block."""
    line_height = int(round(font.size * LINE_HEIGHT_RATIO))
    block = Image.new(
        "RGBA", (max(1, block_width), max(1, line_height * len(lines))), (0, 0, 0, 0)
    )
    draw = ImageDraw.Draw(block)
    for index, line in enumerate(lines):
        draw.text(
            (block_width / 2.0, index * line_height + line_height / 2.0),
            line,
            font=font,
            fill=TEXT_COLOR,
            anchor="mm",
            direction=direction,
        )
    return block


def build_cue_sprite(
    cue: Cue,
    config: RenderConfig,
    fonts: CaptionFonts,
    draw_context: ImageDraw.ImageDraw,
) -> CueSprite:
    """Lay out and render one cue block centered on the canvas."""
    aspect_class = config.aspect_class
    secondary_text = (cue.secondary_text or "").strip()
    with PrimaryLineMeasurement(cue.primary_text, config.width, PADDING_PX) as measurement:
        measurement.fonts_ready(build_primary_measurer(draw_context, fonts))
        primary_width = max(1, int(round(measurement.width)))
        target_width = int(
            round(measurement.target_width(aspect_class, len(secondary_text)))
        )
        usable_width = measurement.usable_width

    primary_lines = wrap_text(
        draw_context,
        cue.primary_text,
        fonts.primary,
        usable_width,
        fonts.primary_direction,
    )
    primary_block = render_text_lines(
        primary_lines, fonts.primary, primary_width, fonts.primary_direction
    )

    blocks = [primary_block]
    if secondary_text:
        secondary_lines = wrap_text(
            draw_context, secondary_text, fonts.secondary, target_width, None
        )
        blocks.append(
            render_text_lines(secondary_lines, fonts.secondary, target_width, None)
        )

    margin = PRIMARY_MARGIN_PX[aspect_class] if len(blocks) > 1 else 0
    sprite_width = max(block.width for block in blocks)
    sprite_height = sum(block.height for block in blocks) + margin
    sprite = Image.new("RGBA", (sprite_width, sprite_height), (0, 0, 0, 0))
    cursor_y = 0
    for block in blocks:
        sprite.alpha_composite(block, dest=((sprite_width - block.width) // 2, cursor_y))
        cursor_y += block.height + margin

    position = (
        (config.width - sprite_width) // 2,
        (config.height - sprite_height) // 2,
    )
    return CueSprite(image=sprite, alpha=sprite.getchannel("A"), position=position)


def build_cue_sprites(
    intervals: Sequence[ScheduledInterval], config: RenderConfig, fonts: CaptionFonts
) -> dict[ScheduledInterval, CueSprite]:
    """Render a sprite for every scheduled interval."""
    draw_context = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    return {
        interval: build_cue_sprite(interval.cue, config, fonts, draw_context)
        for interval in intervals
    }


def scale_alpha(alpha: Image.Image, opacity: float) -> Image.Image:
    """Scale an alpha channel by an opacity factor."""
    if opacity >= 1.0:
        return alpha
    return alpha.point(lambda value: int(round(value * opacity)))


def compose_frame(
    base_frame: Image.Image,
    frame_index: int,
    intervals: Sequence[ScheduledInterval],
    sprites: Mapping[ScheduledInterval, CueSprite],
    config: RenderConfig,
    logo_image: Image.Image | None,
) -> Image.Image:
    """Composite the visible cues and the logo for one frame."""
    fade = config.timing.fade_config(config.fps)
    frame_image = base_frame.copy()
    for interval in active_intervals(intervals, frame_index):
        opacity = interval_opacity(interval, frame_index, fade)
        if opacity <= 0.0:
            continue
        sprite = sprites[interval]
        frame_image.paste(sprite.image, sprite.position, scale_alpha(sprite.alpha, opacity))

    if logo_image is not None:
        logo_position = (
            (config.width - logo_image.width) // 2,
            config.height - LOGO_BOTTOM_PX - logo_image.height,
        )
        frame_image.paste(logo_image, logo_position, logo_image)
    return frame_image


def open_ffmpeg_process(config: RenderConfig) -> subprocess.Popen[bytes]:
    """Start ffmpeg for a raw RGBA frame stream."""
    encoding = ENCODING_SPECS[config.alpha_mode]
    ffmpeg_cmd = [
        "ffmpeg",
        "-y",
        "-f",
        "rawvideo",
        "-pix_fmt",
        "rgba",
        "-s",
        f"{config.width}x{config.height}",
        "-r",
        str(config.fps),
        "-i",
        "-",
    ]
    if config.audio_track:
        ffmpeg_cmd.extend(["-i", config.audio_track, "-map", "0:v:0", "-map", "1:a:0"])
    else:
        ffmpeg_cmd.append("-an")
    ffmpeg_cmd.extend(["-c:v", encoding.codec])
    ffmpeg_cmd.extend(encoding.args)
    if config.audio_track:
        ffmpeg_cmd.extend(
            [
                "-c:a",
                AUDIO_CODEC,
                "-b:a",
                AUDIO_BITRATE,
                "-af",
                AUDIO_PAD_FILTER,
                "-shortest",
            ]
        )
    ffmpeg_cmd.extend(
        [
            "-pix_fmt",
            encoding.pix_fmt,
            "-movflags",
            "+faststart",
            config.output_video_file,
        ]
    )

    try:
        return subprocess.Popen(
            ffmpeg_cmd,
            stdin=subprocess.PIPE,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise RenderPipelineError(FFMPEG_NOT_FOUND_CODE, "ffmpeg not found") from exc


def render_video(
    config: RenderConfig,
    cues: Sequence[Cue],
    fonts: CaptionFonts,
    logo_image: Image.Image | None,
) -> None:
    """Render every frame of the caption video through ffmpeg."""
    intervals = schedule_cues(cues, config.fps, config.timing)
    total_frames = compute_total_frames(cues, config.fps, config.timing)
    sprites = build_cue_sprites(intervals, config, fonts)
    base_frame = Image.new(
        "RGBA", (config.width, config.height), color=config.background_rgba
    )
    LOGGER.info(
        "render_caption_video.render: %d cues, %d frames at %d fps (%dx%d %s)",
        len(cues),
        total_frames,
        config.fps,
        config.width,
        config.height,
        config.aspect_class.value,
    )

    ffmpeg_process = open_ffmpeg_process(config)
    if not ffmpeg_process.stdin:
        raise RenderPipelineError(FFMPEG_PROCESS_CODE, "ffmpeg stdin unavailable")

    try:
        for frame_index in range(total_frames):
            frame_image = compose_frame(
                base_frame, frame_index, intervals, sprites, config, logo_image
            )
            ffmpeg_process.stdin.write(frame_image.tobytes())

        ffmpeg_process.stdin.close()
        stderr_bytes = ffmpeg_process.stderr.read() if ffmpeg_process.stderr else b""
        return_code = ffmpeg_process.wait()

        if return_code != 0:
            stderr_text = stderr_bytes.decode("utf-8", errors="replace").strip()
            raise RenderPipelineError(
                FFMPEG_PROCESS_CODE,
                f"ffmpeg failed with exit code {return_code}. {stderr_text}",
            )

    finally:
        if ffmpeg_process.stdin and not ffmpeg_process.stdin.closed:
            try:
                ffmpeg_process.stdin.close()
            except BrokenPipeError:
                pass
        if ffmpeg_process.poll() is None:
            ffmpeg_process.kill()
            ffmpeg_process.wait()


def emit_schedule(config: RenderConfig, cues: Sequence[Cue]) -> None:
    """Emit the frame schedule as JSON to stdout."""
    fade = config.timing.fade_config(config.fps)
    intervals = schedule_cues(cues, config.fps, config.timing)
    payload = {
        "fps": config.fps,
        "width": config.width,
        "height": config.height,
        "aspect_class": config.aspect_class.value,
        "total_frames": compute_total_frames(cues, config.fps, config.timing),
        "intervals": [],
    }
    for interval in intervals:
        fade_in_len, fade_out_len = fade_lengths(
            interval.duration_frames, interval.is_first, interval.is_last, fade
        )
        payload["intervals"].append(
            {
                "from_frame": interval.from_frame,
                "duration_frames": interval.duration_frames,
                "is_first": interval.is_first,
                "is_last": interval.is_last,
                "fade_in_frames": fade_in_len,
                "fade_out_frames": fade_out_len,
                "start_seconds": interval.cue.start_seconds,
                "end_seconds": interval.cue.end_seconds,
                "primary_text": interval.cue.primary_text,
                "secondary_text": interval.cue.secondary_text,
            }
        )
    sys.stdout.write(json.dumps(payload, ensure_ascii=True))


def parse_args(argv: Sequence[str]) -> RenderRequest:
    """Parse CLI arguments into a RenderRequest."""
    parser = argparse.ArgumentParser(prog="render_caption_video.py", add_help=True)
    parser.add_argument("--cues-file", required=True)
    parser.add_argument("--output-video-file", default="captions.mp4")
    parser.add_argument("--target", default="landscape", help="landscape or portrait")
    parser.add_argument("--fps", type=int, default=None)
    parser.add_argument(
        "--background", default="#000000", help="#RRGGBB (default black) or transparent"
    )
    parser.add_argument("--audio-track", default=None)
    parser.add_argument("--logo-image", default=None)
    parser.add_argument("--primary-font", default=None)
    parser.add_argument("--secondary-font", default=None)
    parser.add_argument("--fade-in-frames", type=int, default=None)
    parser.add_argument("--fade-out-frames", type=int, default=None)
    parser.add_argument("--gap-seconds", type=float, default=None)
    parser.add_argument("--outro-seconds", type=float, default=None)
    parser.add_argument("--no-pre-roll", action="store_true")
    parser.add_argument("--strict-cues", action="store_true")
    parser.add_argument("--emit-schedule", action="store_true")

    parsed = parser.parse_args(argv)
    target = parse_render_target(parsed.target)
    background_rgba = parse_hex_color_to_rgba(parsed.background)

    timing_overrides = {
        "fade_in_frames": parsed.fade_in_frames,
        "fade_out_frames": parsed.fade_out_frames,
        "gap_seconds": parsed.gap_seconds,
        "outro_seconds": parsed.outro_seconds,
    }
    timing = TimingConfig(
        pre_roll_enabled=not parsed.no_pre_roll,
        **{key: value for key, value in timing_overrides.items() if value is not None},
    )

    if parsed.audio_track and not os.path.isfile(parsed.audio_track):
        raise RenderValidationError(
            AUDIO_FILE_CODE, f"audio track not found: {parsed.audio_track}"
        )

    config = RenderConfig(
        cues_file=parsed.cues_file,
        output_video_file=parsed.output_video_file,
        width=target.width,
        height=target.height,
        fps=parsed.fps if parsed.fps is not None else target.fps,
        background_rgba=background_rgba,
        timing=timing,
        primary_font_path=parsed.primary_font,
        secondary_font_path=parsed.secondary_font,
        logo_image_path=parsed.logo_image,
        audio_track=parsed.audio_track,
        strict_cues=parsed.strict_cues,
    )
    cues = load_cues(config.cues_file, config.strict_cues)

    return RenderRequest(config=config, cues=cues, emit_schedule=parsed.emit_schedule)


def main() -> int:
    """CLI entrypoint."""
    configure_logging()

    try:
        request = parse_args(sys.argv[1:])
        if request.emit_schedule:
            emit_schedule(request.config, request.cues)
            return 0
        config = request.config
        fonts = load_caption_fonts(config)
        logo_image = None
        if config.logo_image_path:
            logo_image = load_logo_image(
                config.logo_image_path, LOGO_WIDTH_PX[config.aspect_class]
            )
        validate_ffmpeg_capabilities(config)
        render_video(config, request.cues, fonts, logo_image)
        return 0
    except RenderValidationError as exc:
        LOGGER.error("%s: %s", exc.code, str(exc).strip())
        return 1
    except RenderPipelineError as exc:
        LOGGER.error("%s: %s", exc.code, str(exc).strip())
        return 1
    except Exception as exc:
        LOGGER.error("render_caption_video.unhandled_error: %s", str(exc).strip())
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

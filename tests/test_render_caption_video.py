"""Tests for the render_caption_video CLI and frame compositing."""

from __future__ import annotations

import json
import shutil
import subprocess
import sys
from pathlib import Path
from typing import List

import pytest
from PIL import Image, ImageDraw

import render_caption_video
from domain.caption_video import Cue, TimingConfig
from service.cue_schedule import schedule_cues

REPO_ROOT = Path(__file__).resolve().parents[1]
SCRIPT_PATH = REPO_ROOT / "render_caption_video.py"

SURAH_CUES = [
    {"start": 0, "end": 3, "arabic": "تَبَّتْ يَدَا أَبِي لَهَبٍ وَتَبَّ", "translation": "May the hands of Abu Lahab be ruined"},
    {"start": 3, "end": 6, "arabic": "مَا أَغْنَىٰ عَنْهُ مَالُهُ وَمَا كَسَبَ"},
    {"start": 6, "end": 8, "arabic": "سَيَصْلَىٰ نَارًا ذَاتَ لَهَبٍ", "translation": "He will burn in a Fire of flame"},
]


def ffmpeg_supports_h264() -> bool:
    """Return True when ffmpeg with libx264 is installed."""
    if shutil.which("ffmpeg") is None:
        return False
    result = subprocess.run(
        ["ffmpeg", "-hide_banner", "-encoders"],
        capture_output=True,
        text=True,
        check=False,
    )
    return "libx264" in result.stdout


def run_render_caption_video(args: List[str]) -> subprocess.CompletedProcess[str]:
    """Run render_caption_video.py with the provided arguments."""
    return subprocess.run(
        [sys.executable, str(SCRIPT_PATH), *args],
        cwd=REPO_ROOT,
        text=True,
        capture_output=True,
        check=False,
    )


def write_cues(target_path: Path, cues: list[dict]) -> Path:
    """Write a JSON cue list to disk."""
    target_path.write_text(json.dumps(cues, ensure_ascii=False), encoding="utf-8")
    return target_path


def test_emit_schedule_landscape(tmp_path: Path) -> None:
    """Emit the frame schedule for the landscape target."""
    cues_path = write_cues(tmp_path / "cues.json", SURAH_CUES)

    result = run_render_caption_video(["--cues-file", str(cues_path), "--emit-schedule"])

    assert result.returncode == 0, result.stderr
    payload = json.loads(result.stdout)
    assert (payload["width"], payload["height"], payload["fps"]) == (1920, 1080, 60)
    assert payload["aspect_class"] == "wide"
    assert payload["total_frames"] == 600
    intervals = payload["intervals"]
    assert [item["from_frame"] for item in intervals] == [0, 180, 360]
    assert intervals[-1]["duration_frames"] == 240
    assert intervals[0]["fade_in_frames"] == 0
    assert intervals[-1]["fade_out_frames"] == 138
    assert intervals[1]["secondary_text"] is None


def test_emit_schedule_portrait_single_cue(tmp_path: Path) -> None:
    """Apply pre-roll and outro to a single cue on the portrait target."""
    cues_path = write_cues(
        tmp_path / "cues.json", [{"start": 5, "end": 10, "primary": "X"}]
    )

    result = run_render_caption_video(
        ["--cues-file", str(cues_path), "--target", "portrait", "--fps", "30", "--emit-schedule"]
    )

    assert result.returncode == 0, result.stderr
    payload = json.loads(result.stdout)
    assert payload["aspect_class"] == "tall"
    (interval,) = payload["intervals"]
    assert interval["from_frame"] == 0
    assert interval["duration_frames"] == 360
    assert interval["is_first"] and interval["is_last"]


def test_overlapping_cues_warn_by_default(tmp_path: Path) -> None:
    """Render overlapping cues permissively and log a warning."""
    cues_path = write_cues(
        tmp_path / "cues.json",
        [
            {"start": 0, "end": 4, "primary": "a"},
            {"start": 3, "end": 5, "primary": "b"},
        ],
    )

    result = run_render_caption_video(["--cues-file", str(cues_path), "--emit-schedule"])

    assert result.returncode == 0
    assert "render_caption_video.input.invalid_cues" in result.stderr
    assert "overlap" in result.stderr


def test_strict_cues_rejects_overlap(tmp_path: Path) -> None:
    """Fail on cue precondition violations in strict mode."""
    cues_path = write_cues(
        tmp_path / "cues.json",
        [
            {"start": 2, "end": 4, "primary": "a"},
            {"start": 1, "end": 5, "primary": "b"},
        ],
    )

    result = run_render_caption_video(
        ["--cues-file", str(cues_path), "--strict-cues", "--emit-schedule"]
    )

    assert result.returncode != 0
    assert "render_caption_video.input.invalid_cues" in result.stderr
    assert result.stdout == ""


def test_missing_cues_file(tmp_path: Path) -> None:
    """Fail with a file error for a missing cue file."""
    result = run_render_caption_video(
        ["--cues-file", str(tmp_path / "missing.json"), "--emit-schedule"]
    )

    assert result.returncode != 0
    assert "render_caption_video.input.file_error" in result.stderr


def test_invalid_target(tmp_path: Path) -> None:
    """Reject unknown render targets."""
    cues_path = write_cues(tmp_path / "cues.json", SURAH_CUES)

    result = run_render_caption_video(
        ["--cues-file", str(cues_path), "--target", "square", "--emit-schedule"]
    )

    assert result.returncode != 0
    assert "render_caption_video.input.invalid_target" in result.stderr


def test_transparent_background_requires_mov(tmp_path: Path) -> None:
    """Reject alpha output into an mp4 container."""
    cues_path = write_cues(tmp_path / "cues.json", SURAH_CUES)

    result = run_render_caption_video(
        [
            "--cues-file",
            str(cues_path),
            "--background",
            "transparent",
            "--output-video-file",
            str(tmp_path / "out.mp4"),
        ]
    )

    assert result.returncode != 0
    assert "render_caption_video.input.invalid_config" in result.stderr


def test_wrap_text_breaks_on_width() -> None:
    """Wrap words greedily to the requested width."""
    draw_context = ImageDraw.Draw(Image.new("RGBA", (1, 1)))
    font = render_caption_video.load_font(None, 20)
    word_width = render_caption_video.measure_text_width(draw_context, "aaaa", font, None)

    lines = render_caption_video.wrap_text(
        draw_context, "aaaa bbbb cccc", font, word_width * 1.5, None
    )

    assert lines == ["aaaa", "bbbb", "cccc"]
    assert render_caption_video.wrap_text(draw_context, "aaaa bbbb", font, 10_000, None) == [
        "aaaa bbbb"
    ]


def test_compose_frame_follows_opacity() -> None:
    """Draw nothing at a cue's zero-opacity edges and text in its middle."""
    config = render_caption_video.RenderConfig(
        cues_file="cues.json",
        output_video_file="out.mp4",
        width=320,
        height=180,
        fps=10,
        background_rgba=(0, 0, 0, 255),
        timing=TimingConfig(outro_seconds=0.5),
    )
    cues = (
        Cue(0.0, 2.0, "first", "one"),
        Cue(2.0, 4.0, "second", "two"),
    )
    intervals = schedule_cues(cues, config.fps, config.timing)
    fonts = render_caption_video.load_caption_fonts(config)
    sprites = render_caption_video.build_cue_sprites(intervals, config, fonts)
    base_frame = Image.new("RGBA", (config.width, config.height), config.background_rgba)

    def frame_at(frame_index: int) -> Image.Image:
        return render_caption_video.compose_frame(
            base_frame, frame_index, intervals, sprites, config, None
        )

    assert frame_at(0).convert("RGB").getbbox() is not None
    assert frame_at(20).tobytes() == base_frame.tobytes()
    assert frame_at(19).tobytes() == base_frame.tobytes()
    assert frame_at(30).convert("RGB").getbbox() is not None


def test_compose_frame_draws_logo() -> None:
    """Composite the logo at the bottom center on every frame."""
    config = render_caption_video.RenderConfig(
        cues_file="cues.json",
        output_video_file="out.mp4",
        width=320,
        height=180,
        fps=10,
        background_rgba=(0, 0, 0, 255),
    )
    logo = Image.new("RGBA", (40, 10), (255, 0, 0, 255))
    base_frame = Image.new("RGBA", (config.width, config.height), config.background_rgba)

    frame_image = render_caption_video.compose_frame(base_frame, 0, (), {}, config, logo)

    assert frame_image.convert("RGB").getbbox() == (140, 165, 180, 175)


@pytest.mark.skipif(not ffmpeg_supports_h264(), reason="ffmpeg with libx264 not installed")
def test_render_success(tmp_path: Path) -> None:
    """Render a short caption video with a logo."""
    cues_path = write_cues(
        tmp_path / "cues.json",
        [
            {"start": 0, "end": 0.5, "primary": "alpha", "secondary": "first"},
            {"start": 0.5, "end": 1.0, "primary": "beta"},
        ],
    )
    logo_path = tmp_path / "logo.png"
    Image.new("RGBA", (50, 20), (255, 255, 255, 255)).save(logo_path)
    output_path = tmp_path / "out.mp4"

    result = run_render_caption_video(
        [
            "--cues-file",
            str(cues_path),
            "--output-video-file",
            str(output_path),
            "--fps",
            "10",
            "--outro-seconds",
            "0.2",
            "--logo-image",
            str(logo_path),
        ]
    )

    assert result.returncode == 0, result.stderr
    assert output_path.exists()
    assert output_path.stat().st_size > 0

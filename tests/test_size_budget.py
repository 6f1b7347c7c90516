"""Tests for the size-budget pipeline (core/size_budget.py).

The transcoder is faked with sparse files of scripted sizes, so no
download or ffmpeg run happens.

Coverage:
* Format-selector construction for every container rule.
* Output naming (sanitising, fallback, request suffix).
* A result file never exceeds the budget.
* Every file the pipeline created is gone after a failure.
* Ladder order and parameters for audio and video.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from conftest import FakeProbe, FakeTranscoder, make_format
from ytd_bot.core.models import DownloadResult, MediaKind
from ytd_bot.core.size_budget import (
    AUDIO_LADDER,
    DEFAULT_BUDGET_BYTES,
    INITIAL_AUDIO_BITRATE_KBPS,
    MIB,
    VIDEO_LADDER,
    Rung,
    SizeBudgetPipeline,
    build_video_selector,
    output_stem,
)
from ytd_bot.exceptions import EncodingError, ResolutionError, SizeExceededError

BUDGET = 1_000


def _pipeline(
    transcoder: FakeTranscoder,
    downloads_dir: Path,
    *,
    title: str = "Song Title",
    budget: int = BUDGET,
) -> SizeBudgetPipeline:
    return SizeBudgetPipeline(
        FakeProbe(title=title),
        transcoder,
        downloads_dir,
        budget_bytes=budget,
    )


def _run(pipeline: SizeBudgetPipeline, kind: MediaKind, **kwargs: object) -> DownloadResult:
    return asyncio.run(pipeline.run("vid0", kind, **kwargs))  # type: ignore[arg-type]


def _files(directory: Path) -> list[Path]:
    return sorted(directory.iterdir()) if directory.is_dir() else []


# ---------------------------------------------------------------------------
# Constants and ladders
# ---------------------------------------------------------------------------

class TestLadders:
    def test_default_budget_is_49_mib(self) -> None:
        assert DEFAULT_BUDGET_BYTES == 49 * MIB

    def test_audio_ladder_bitrates(self) -> None:
        assert [rung.bitrate_kbps for rung in AUDIO_LADDER] == [64, 48, 32]

    def test_video_ladder(self) -> None:
        assert [(r.crf, r.max_height) for r in VIDEO_LADDER] == [
            (28, None),
            (32, None),
            (35, 480),
        ]

    def test_rung_describe(self) -> None:
        assert Rung(crf=35, max_height=480).describe() == "crf 35 @ 480p"
        assert Rung(bitrate_kbps=64).describe() == "64k"
        assert Rung().describe() == "default"


# ---------------------------------------------------------------------------
# build_video_selector
# ---------------------------------------------------------------------------

class TestBuildVideoSelector:
    def test_best_sentinel(self) -> None:
        assert build_video_selector("best") == (
            "best[height<=720][ext=mp4]/best[height<=720]/best"
        )

    def test_muxed_format_used_alone(self) -> None:
        fmt = make_format(format_id="18", acodec="mp4a.40.2")
        assert build_video_selector("18", fmt) == "18"

    def test_mp4_prefers_m4a(self) -> None:
        fmt = make_format(format_id="136", ext="mp4")
        assert build_video_selector("136", fmt) == "136+bestaudio[ext=m4a]/best[ext=mp4]"

    def test_webm_prefers_webm_audio(self) -> None:
        fmt = make_format(format_id="247", ext="webm")
        assert build_video_selector("247", fmt) == (
            "247+bestaudio[ext=webm]/best[ext=webm]/best"
        )

    def test_unknown_container(self) -> None:
        fmt = make_format(format_id="x1", ext="flv")
        assert build_video_selector("x1", fmt) == "x1+bestaudio/best"

    def test_without_format_hint(self) -> None:
        assert build_video_selector("136") == "136+bestaudio/best"


# ---------------------------------------------------------------------------
# output_stem
# ---------------------------------------------------------------------------

class TestOutputStem:
    def test_sanitises_title(self) -> None:
        assert output_stem('AC/DC: "Thunder"?', "id1", "abcd1234") == (
            "AC_DC_ _Thunder__-abcd1234"
        )

    def test_empty_title_falls_back_to_id(self) -> None:
        assert output_stem("...", "id1", "abcd1234") == "video-id1-abcd1234"

    def test_long_title_is_capped(self) -> None:
        stem = output_stem("x" * 500, "id1", "abcd1234")
        assert stem == "x" * 120 + "-abcd1234"

    def test_distinct_requests_get_distinct_names(self) -> None:
        assert output_stem("Same", "id1", "aaaa0000") != output_stem("Same", "id1", "bbbb1111")


# ---------------------------------------------------------------------------
# Pipeline — success paths
# ---------------------------------------------------------------------------

class TestPipelineFits:
    def test_audio_under_budget_is_returned_as_is(self, downloads_dir: Path) -> None:
        transcoder = FakeTranscoder(fetch_size=500)
        result = _run(_pipeline(transcoder, downloads_dir), MediaKind.AUDIO)

        assert result.ok
        assert result.file_path is not None
        assert result.file_path.suffix == ".mp3"
        assert transcoder.recompress_calls == []
        assert transcoder.fetch_calls[0]["bitrate_kbps"] == INITIAL_AUDIO_BITRATE_KBPS

    def test_exactly_at_budget_passes(self, downloads_dir: Path) -> None:
        transcoder = FakeTranscoder(fetch_size=BUDGET)
        result = _run(_pipeline(transcoder, downloads_dir), MediaKind.AUDIO)
        assert result.ok
        assert transcoder.recompress_calls == []

    def test_one_byte_over_budget_triggers_one_pass(self, downloads_dir: Path) -> None:
        transcoder = FakeTranscoder(fetch_size=BUDGET + 1, recompress_sizes=[BUDGET - 100])
        result = _run(_pipeline(transcoder, downloads_dir), MediaKind.AUDIO)

        assert result.file_path is not None
        assert result.file_path.stat().st_size == BUDGET - 100
        assert [c["bitrate_kbps"] for c in transcoder.recompress_calls] == [64]

    def test_audio_walks_ladder_until_it_fits(self, downloads_dir: Path) -> None:
        transcoder = FakeTranscoder(fetch_size=5_000, recompress_sizes=[3_000, 800])
        result = _run(_pipeline(transcoder, downloads_dir), MediaKind.AUDIO)

        assert result.file_path is not None
        assert result.file_path.stat().st_size <= BUDGET
        assert [c["bitrate_kbps"] for c in transcoder.recompress_calls] == [64, 48]
        # Superseded files are removed as the ladder advances.
        assert _files(downloads_dir) == [result.file_path]

    def test_video_ladder_parameters(self, downloads_dir: Path) -> None:
        transcoder = FakeTranscoder(fetch_size=5_000, recompress_sizes=[4_000, 3_000, 900])
        result = _run(
            _pipeline(transcoder, downloads_dir),
            MediaKind.VIDEO,
            format_selector="136",
            format_hint=make_format(format_id="136"),
        )

        assert result.ok
        assert transcoder.recompress_calls == [
            {"bitrate_kbps": None, "crf": 28, "max_height": None},
            {"bitrate_kbps": None, "crf": 32, "max_height": None},
            {"bitrate_kbps": None, "crf": 35, "max_height": 480},
        ]
        assert transcoder.fetch_calls[0]["format_selector"] == (
            "136+bestaudio[ext=m4a]/best[ext=mp4]"
        )

    def test_video_without_selector_uses_best(self, downloads_dir: Path) -> None:
        transcoder = FakeTranscoder(fetch_size=100)
        _run(_pipeline(transcoder, downloads_dir), MediaKind.VIDEO)
        assert transcoder.fetch_calls[0]["format_selector"] == build_video_selector("best")

    def test_file_named_after_title(self, downloads_dir: Path) -> None:
        transcoder = FakeTranscoder(fetch_size=100)
        result = _run(_pipeline(transcoder, downloads_dir, title="My Song"), MediaKind.AUDIO)
        assert result.file_path is not None
        assert result.file_path.name.startswith("My Song-")
        assert result.file_path.parent == downloads_dir

    def test_failed_pass_keeps_previous_file(self, downloads_dir: Path) -> None:
        transcoder = FakeTranscoder(fetch_size=5_000, recompress_sizes=[None, 700])
        result = _run(_pipeline(transcoder, downloads_dir), MediaKind.AUDIO)

        assert result.file_path is not None
        assert result.file_path.stat().st_size == 700
        assert len(transcoder.recompress_calls) == 2

    def test_empty_pass_output_is_discarded(self, downloads_dir: Path) -> None:
        transcoder = FakeTranscoder(fetch_size=5_000, recompress_sizes=[0, 700])
        result = _run(_pipeline(transcoder, downloads_dir), MediaKind.AUDIO)

        assert result.file_path is not None
        assert result.file_path.stat().st_size == 700
        assert _files(downloads_dir) == [result.file_path]


# ---------------------------------------------------------------------------
# Pipeline — failure paths
# ---------------------------------------------------------------------------

class TestPipelineFailures:
    def test_ladder_exhausted_reports_size_exceeded(self, downloads_dir: Path) -> None:
        transcoder = FakeTranscoder(fetch_size=5_000, recompress_sizes=[4_000, 3_000, 2_000])
        result = _run(_pipeline(transcoder, downloads_dir), MediaKind.AUDIO)

        assert isinstance(result.error, SizeExceededError)
        assert result.error.size_bytes == 2_000
        assert result.error.budget_bytes == BUDGET
        assert len(transcoder.recompress_calls) == len(AUDIO_LADDER)
        assert _files(downloads_dir) == []

    def test_all_passes_failing_reports_size_exceeded(self, downloads_dir: Path) -> None:
        transcoder = FakeTranscoder(fetch_size=5_000, recompress_sizes=[None, None, None])
        result = _run(_pipeline(transcoder, downloads_dir), MediaKind.VIDEO)

        assert isinstance(result.error, SizeExceededError)
        assert _files(downloads_dir) == []

    def test_fetch_resolution_error(self, downloads_dir: Path) -> None:
        transcoder = FakeTranscoder(fetch_size=0, fetch_error=ResolutionError("private"))
        result = _run(_pipeline(transcoder, downloads_dir), MediaKind.AUDIO)

        assert isinstance(result.error, ResolutionError)
        assert _files(downloads_dir) == []

    def test_fetch_encoding_error(self, downloads_dir: Path) -> None:
        transcoder = FakeTranscoder(fetch_size=0, fetch_error=EncodingError("ffmpeg died"))
        result = _run(_pipeline(transcoder, downloads_dir), MediaKind.VIDEO)

        assert isinstance(result.error, EncodingError)
        assert _files(downloads_dir) == []

    def test_empty_fetch_output_is_encoding_error(self, downloads_dir: Path) -> None:
        transcoder = FakeTranscoder(fetch_size=0)
        result = _run(_pipeline(transcoder, downloads_dir), MediaKind.AUDIO)

        assert isinstance(result.error, EncodingError)
        assert _files(downloads_dir) == []

    def test_untyped_error_propagates_after_cleanup(self, downloads_dir: Path) -> None:
        transcoder = FakeTranscoder(fetch_size=0, fetch_error=RuntimeError("bug"))
        with pytest.raises(RuntimeError):
            _run(_pipeline(transcoder, downloads_dir), MediaKind.AUDIO)
        assert _files(downloads_dir) == []

    def test_unrelated_files_survive_cleanup(self, downloads_dir: Path) -> None:
        downloads_dir.mkdir(parents=True)
        bystander = downloads_dir / "other-request.mp3"
        bystander.write_bytes(b"x")
        transcoder = FakeTranscoder(fetch_size=5_000, recompress_sizes=[4_000, 3_000, 2_000])

        _run(_pipeline(transcoder, downloads_dir), MediaKind.AUDIO)

        assert _files(downloads_dir) == [bystander]

"""Fixed stage plans: concatenation and duration probing.

A ``StagePlan`` is one fully materialized renderer invocation. Scene plans
come from the planner; the plans here do not depend on scene content.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from shorts_compose.utils.media_info import build_probe_args

CONCAT_LIST_NAME = "concat_list.txt"


@dataclass(frozen=True)
class StagePlan:
    """One renderer invocation, minus the binary path."""

    name: str
    args: list[str] = field(default_factory=list)
    output_path: str | None = None
    tool: Literal["ffmpeg", "ffprobe"] = "ffmpeg"


def _escape_concat_path(path: str) -> str:
    # concat demuxer quoting: close quote, escaped quote, reopen
    return path.replace("'", "'\\''")


def write_concat_list(video_paths: list[str], list_path: str) -> str:
    """Write a concat demuxer list, one ``file '<path>'`` line per input in order."""
    with open(list_path, "w", encoding="utf-8") as f:
        for video_path in video_paths:
            f.write(f"file '{_escape_concat_path(str(Path(video_path).resolve()))}'\n")
    return list_path


def build_concat_stage(list_path: str, output_path: str) -> StagePlan:
    """Stream-copy concatenation of the files named in ``list_path``."""
    return StagePlan(
        name="concat",
        args=[
            "-y",
            "-f", "concat",
            "-safe", "0",
            "-i", list_path,
            "-c", "copy",
            "-movflags", "+faststart",
            output_path,
        ],
        output_path=output_path,
    )


def build_probe_stage(file_path: str) -> StagePlan:
    return StagePlan(
        name="probe",
        args=build_probe_args(file_path),
        tool="ffprobe",
    )

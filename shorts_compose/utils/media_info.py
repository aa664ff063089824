"""Media file information parsed from FFprobe JSON output."""

import json
from dataclasses import dataclass
from typing import Any


@dataclass
class MediaInfo:
    """Media file information."""

    duration_s: float | None = None
    width: int | None = None
    height: int | None = None
    fps: float | None = None
    video_codec: str | None = None
    audio_codec: str | None = None
    sample_rate: int | None = None
    channels: int | None = None
    has_video: bool = False
    has_audio: bool = False
    size_bytes: int | None = None

    @property
    def duration_ms(self) -> int | None:
        if self.duration_s is None:
            return None
        return int(self.duration_s * 1000)


def build_probe_args(file_path: str, *args: str) -> list[str]:
    """FFprobe arguments printing format and stream info as JSON."""
    return [
        "-v", "quiet",
        "-print_format", "json",
        "-show_format",
        "-show_streams",
        *args,
        file_path,
    ]


def parse_ffprobe_output(stdout: str) -> dict[str, Any]:
    """Parse ffprobe JSON.

    Raises:
        RuntimeError: If the output is not valid JSON
    """
    try:
        return json.loads(stdout)
    except json.JSONDecodeError as e:
        raise RuntimeError(f"Failed to parse ffprobe output: {e}") from e


def _parse_frame_rate(r_frame_rate: str) -> float | None:
    if "/" not in r_frame_rate:
        return None
    num, den = r_frame_rate.split("/", 1)
    try:
        if int(den) > 0:
            return int(num) / int(den)
    except ValueError:
        return None
    return None


def media_info_from_probe(data: dict[str, Any]) -> MediaInfo:
    """
    Build MediaInfo from parsed ffprobe output.

    Args:
        data: Parsed output of ``ffprobe -show_format -show_streams``

    Returns:
        MediaInfo; fields missing from the probe stay None
    """
    info = MediaInfo()

    format_info = data.get("format", {})
    if "duration" in format_info:
        info.duration_s = float(format_info["duration"])
    if "size" in format_info:
        info.size_bytes = int(format_info["size"])

    for stream in data.get("streams", []):
        codec_type = stream.get("codec_type")

        if codec_type == "video" and not info.has_video:
            info.has_video = True
            info.width = stream.get("width")
            info.height = stream.get("height")
            info.video_codec = stream.get("codec_name")
            info.fps = _parse_frame_rate(stream.get("r_frame_rate", "0/1"))

        elif codec_type == "audio" and not info.has_audio:
            info.has_audio = True
            info.audio_codec = stream.get("codec_name")
            info.sample_rate = int(stream.get("sample_rate", 0)) or None
            info.channels = stream.get("channels")

    return info


def get_duration_seconds(data: dict[str, Any]) -> float:
    """
    Get duration in seconds from parsed ffprobe output.

    Raises:
        RuntimeError: If the probe carries no duration
    """
    duration = media_info_from_probe(data).duration_s
    if duration is None:
        raise RuntimeError("Duration not found in ffprobe output")
    return duration

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SHORTS_COMPOSE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # FFmpeg
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"

    # Request defaults
    default_frame_rate: int = 30
    default_bgm_volume: float = 0.3
    default_voice_volume: float = 1.0

    # Scene encode settings
    video_codec: str = "libx264"
    video_preset: str = "fast"
    video_crf: int = 23
    pixel_format: str = "yuv420p"
    audio_codec: str = "aac"
    audio_bitrate: str = "128k"

    # Synthesized silence for scenes without narration
    silence_sample_rate: int = 44100

    # BGM mixing: seconds over which amix renormalizes when the BGM runs out
    bgm_dropout_transition_s: int = 2

    # Temporary workspace (None = system temp dir)
    workspace_root: str | None = None
    workspace_prefix: str = "shorts-compose-"

    # Per-stage deadline in seconds. 0 disables the deadline.
    stage_timeout_s: float = 0
    # 1 renders scenes strictly one after another
    max_parallel_scenes: int = 1

    # Reject unknown Ken Burns effect types instead of rendering a static crop
    strict_effect_types: bool = True

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()

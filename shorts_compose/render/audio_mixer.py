"""
Audio sources and BGM mixing using FFmpeg.

This module handles:
- Silent stereo tracks for scenes without narration
- Mixing background music under the concatenated narration track
"""

from shorts_compose.config import Settings, get_settings
from shorts_compose.render.stages import StagePlan


class AudioMixer:
    """
    Builds the audio side of scene and BGM stages.

    Supports:
    - Silence synthesis matching a scene duration
    - Voice/BGM volume control
    - Voice-length output with BGM truncated or faded out via dropout
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.sample_rate = self.settings.silence_sample_rate

    def silence_input_args(self, duration_s: float) -> list[str]:
        """Input arguments for a silent stereo track of ``duration_s`` seconds."""
        return [
            "-f", "lavfi",
            "-i", f"anullsrc=r={self.sample_rate}:cl=stereo:d={duration_s}",
        ]

    def build_mix_filter(self, bgm_volume: float, voice_volume: float) -> str:
        """
        Build the filter graph mixing voice (input 0) with BGM (input 1).

        ``duration=first`` keeps the voice track's length: longer BGM is cut,
        shorter BGM drops out over ``bgm_dropout_transition_s`` seconds.
        """
        dropout = self.settings.bgm_dropout_transition_s
        return ";".join(
            [
                f"[0:a]volume={voice_volume}[voice]",
                f"[1:a]volume={bgm_volume}[bgm]",
                f"[voice][bgm]amix=inputs=2:duration=first:dropout_transition={dropout}[aout]",
            ]
        )

    def build_bgm_mix_stage(
        self,
        video_path: str,
        bgm_path: str,
        output_path: str,
        bgm_volume: float,
        voice_volume: float,
    ) -> StagePlan:
        """
        Mix BGM into ``video_path``; the video stream is copied untouched.

        Args:
            video_path: Concatenated video with narration audio
            bgm_path: Background music file
            output_path: Output file path
            bgm_volume: BGM gain (0-1)
            voice_volume: Narration gain (0-1)
        """
        return StagePlan(
            name="bgm_mix",
            args=[
                "-y",
                "-i", video_path,
                "-i", bgm_path,
                "-filter_complex", self.build_mix_filter(bgm_volume, voice_volume),
                "-map", "0:v",
                "-map", "[aout]",
                "-c:v", "copy",
                "-c:a", self.settings.audio_codec,
                "-b:a", self.settings.audio_bitrate,
                "-shortest",
                output_path,
            ],
            output_path=output_path,
        )

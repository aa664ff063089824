"""Runs stage plans as renderer child processes.

One call is one process. Nothing is retried here; the caller decides what a
failure means.
"""

import asyncio
import logging
from dataclasses import dataclass

from shorts_compose.config import Settings, get_settings
from shorts_compose.exceptions import RenderFailedError, RenderTimeoutError, SpawnFailedError
from shorts_compose.render.stages import StagePlan, build_probe_stage
from shorts_compose.utils.media_info import MediaInfo, media_info_from_probe, parse_ffprobe_output

logger = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024


@dataclass
class StageOutput:
    """Captured output of a successful stage."""

    stdout: str
    stderr: str


async def _collect(stream: asyncio.StreamReader | None, chunks: list[bytes]) -> None:
    # Chunked reads: ffmpeg progress lines use \r and can exceed readline limits
    if stream is None:
        return
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            break
        chunks.append(chunk)


def _decode(chunks: list[bytes]) -> str:
    return b"".join(chunks).decode("utf-8", errors="replace")


class StageExecutor:
    """Invokes ffmpeg/ffprobe for one stage at a time."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def _binary_for(self, stage: StagePlan) -> str:
        if stage.tool == "ffprobe":
            return self.settings.ffprobe_path
        return self.settings.ffmpeg_path

    async def run_stage(self, stage: StagePlan) -> StageOutput:
        """
        Run one stage and wait for the process to exit.

        Args:
            stage: Stage plan to execute

        Returns:
            Captured stdout/stderr

        Raises:
            SpawnFailedError: If the renderer could not be started
            RenderFailedError: If the renderer exited non-zero
            RenderTimeoutError: If ``stage_timeout_s`` elapsed (process is killed)
        """
        cmd = [self._binary_for(stage), *stage.args]
        logger.debug(f"[STAGE] {stage.name}: {' '.join(cmd)}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error(f"[STAGE] {stage.name}: could not start {cmd[0]}: {e}")
            raise SpawnFailedError(f"{cmd[0]}: {e}") from e

        stdout_chunks: list[bytes] = []
        stderr_chunks: list[bytes] = []
        waiter = asyncio.gather(
            _collect(proc.stdout, stdout_chunks),
            _collect(proc.stderr, stderr_chunks),
            proc.wait(),
        )
        timeout = self.settings.stage_timeout_s or None

        try:
            await asyncio.wait_for(waiter, timeout=timeout)
        except asyncio.TimeoutError:
            await self._kill(proc)
            logger.error(f"[STAGE] {stage.name}: killed after {timeout}s")
            raise RenderTimeoutError(timeout, stage=stage.name) from None
        except asyncio.CancelledError:
            await self._kill(proc)
            logger.warning(f"[STAGE] {stage.name}: cancelled, renderer killed")
            raise

        stderr_text = _decode(stderr_chunks)
        if proc.returncode != 0:
            logger.error(f"[STAGE] {stage.name}: exit code {proc.returncode}\n{stderr_text}")
            raise RenderFailedError(proc.returncode, stderr_text, stage=stage.name)

        logger.debug(f"[STAGE] {stage.name}: done")
        return StageOutput(stdout=_decode(stdout_chunks), stderr=stderr_text)

    async def _kill(self, proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is not None:
            return
        try:
            proc.kill()
        except ProcessLookupError:
            return
        await proc.wait()

    async def probe(self, file_path: str) -> MediaInfo:
        """Probe a rendered file."""
        output = await self.run_stage(build_probe_stage(file_path))
        return media_info_from_probe(parse_ffprobe_output(output.stdout))

    async def probe_duration(self, file_path: str) -> float:
        """Duration of ``file_path`` in seconds, as reported by ffprobe."""
        info = await self.probe(file_path)
        if info.duration_s is None:
            raise RuntimeError(f"Duration not found in: {file_path}")
        return info.duration_s

    async def is_available(self) -> bool:
        """Check whether the renderer binary can be run."""
        try:
            await self.run_stage(StagePlan(name="version", args=["-version"]))
        except (SpawnFailedError, RenderFailedError, RenderTimeoutError):
            return False
        return True

    async def get_supported_codecs(self) -> list[str]:
        """Names of the video encoders the renderer reports."""
        try:
            output = await self.run_stage(
                StagePlan(name="encoders", args=["-hide_banner", "-encoders"])
            )
        except (SpawnFailedError, RenderFailedError, RenderTimeoutError):
            return []
        return parse_video_encoders(output.stdout)


def parse_video_encoders(text: str) -> list[str]:
    """
    Parse ``ffmpeg -encoders`` output.

    Lines after the ``------`` separator look like
    ``V....D libx264   libx264 H.264 ...``; the leading flag ``V`` marks a
    video encoder.
    """
    codecs: list[str] = []
    in_table = False
    for line in text.splitlines():
        stripped = line.strip()
        if not in_table:
            in_table = stripped.startswith("------")
            continue
        parts = stripped.split()
        if len(parts) >= 2 and parts[0].startswith("V"):
            codecs.append(parts[1])
    return codecs

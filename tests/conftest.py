"""
Pytest fixtures for shorts_compose tests.

Most tests run without a renderer: ``FakeExecutor`` records stage plans and
writes placeholder output files. Tests that drive real ffmpeg are marked
with ``requires_ffmpeg`` and skipped when ffmpeg/ffprobe are not on PATH.
"""

import asyncio
import shutil
from pathlib import Path

import pytest

from shorts_compose.config import Settings
from shorts_compose.render.executor import StageExecutor, StageOutput
from shorts_compose.render.stages import StagePlan
from shorts_compose.schemas.composition import (
    CompositionRequest,
    ImageVisual,
    KenBurnsEffect,
    SceneInput,
    SolidColorVisual,
    SubtitleOverlay,
)


def _ffmpeg_available() -> bool:
    return shutil.which("ffmpeg") is not None and shutil.which("ffprobe") is not None


def pytest_collection_modifyitems(config, items):
    """Skip tests marked requires_ffmpeg when the renderer is not installed."""
    if _ffmpeg_available():
        return
    skip = pytest.mark.skip(reason="ffmpeg/ffprobe not available")
    for item in items:
        if "requires_ffmpeg" in item.keywords:
            item.add_marker(skip)


class FakeExecutor(StageExecutor):
    """Records stages instead of running ffmpeg.

    Args:
        settings: Settings passed to StageExecutor
        duration_s: Value returned by probe_duration
        fail_on: Stage name that raises ``error`` instead of succeeding
        delays: Per-stage-name sleep in seconds before "finishing"
    """

    def __init__(
        self,
        settings: Settings,
        duration_s: float = 3.0,
        fail_on: str | None = None,
        error: Exception | None = None,
        delays: dict[str, float] | None = None,
    ):
        super().__init__(settings)
        self.duration_s = duration_s
        self.fail_on = fail_on
        self.error = error
        self.delays = delays or {}
        self.stages: list[StagePlan] = []
        self.completed: list[str] = []
        self.concat_list: list[str] = []
        self.work_dirs: set[Path] = set()
        self.probed: list[str] = []

    @property
    def stage_names(self) -> list[str]:
        return [stage.name for stage in self.stages]

    async def run_stage(self, stage: StagePlan) -> StageOutput:
        self.stages.append(stage)
        if stage.output_path:
            self.work_dirs.add(Path(stage.output_path).parent)

        delay = self.delays.get(stage.name)
        if delay:
            await asyncio.sleep(delay)

        if stage.name == self.fail_on:
            raise self.error

        if stage.name == "concat":
            list_path = stage.args[stage.args.index("-i") + 1]
            self.concat_list = Path(list_path).read_text(encoding="utf-8").splitlines()

        if stage.output_path:
            Path(stage.output_path).write_bytes(f"fake:{stage.name}".encode())
        self.completed.append(stage.name)
        return StageOutput(stdout="", stderr="")

    async def probe_duration(self, file_path: str) -> float:
        self.probed.append(file_path)
        return self.duration_s


@pytest.fixture
def work_root(tmp_path: Path) -> Path:
    """Directory under which workspaces are created."""
    root = tmp_path / "work"
    root.mkdir()
    return root


@pytest.fixture
def settings(work_root: Path) -> Settings:
    return Settings(workspace_root=str(work_root))


@pytest.fixture
def fake_executor(settings: Settings) -> FakeExecutor:
    return FakeExecutor(settings)


@pytest.fixture
def asset_dir(tmp_path: Path) -> Path:
    """Placeholder asset files; content is irrelevant to FakeExecutor."""
    directory = tmp_path / "assets"
    directory.mkdir()
    for name in ("background.png", "subtitle_0.png", "subtitle_1.png", "voice.wav", "bgm.mp3", "clip.mp4"):
        (directory / name).write_bytes(b"placeholder")
    return directory


@pytest.fixture
def output_path(tmp_path: Path) -> str:
    return str(tmp_path / "out" / "final.mp4")


@pytest.fixture
def make_request(asset_dir: Path, output_path: str):
    """Build the two-scene request: black solid color + zoom_in image with one subtitle."""

    def _make(**overrides) -> CompositionRequest:
        scenes = [
            SceneInput(
                scene_id="a",
                duration_ms=1000,
                visual=SolidColorVisual(color="#000000"),
            ),
            SceneInput(
                scene_id="b",
                duration_ms=2000,
                visual=ImageVisual(
                    file_path=str(asset_dir / "background.png"),
                    ken_burns=KenBurnsEffect(type="zoom_in"),
                ),
                subtitles=[
                    SubtitleOverlay(
                        image_path=str(asset_dir / "subtitle_0.png"), start_ms=500, end_ms=1500
                    )
                ],
            ),
        ]
        fields = {
            "scenes": scenes,
            "width": 1080,
            "height": 1920,
            "output_path": output_path,
        }
        fields.update(overrides)
        return CompositionRequest(**fields)

    return _make


@pytest.fixture
def make_executor(settings: Settings):
    """Build a FakeExecutor; ``executor_settings`` replaces the default settings."""

    def _make(executor_settings: Settings | None = None, **kwargs) -> FakeExecutor:
        return FakeExecutor(executor_settings or settings, **kwargs)

    return _make

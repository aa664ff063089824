"""Scoped temporary directory for one composition run."""

import logging
import shutil
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, TypeVar

from shorts_compose.config import Settings, get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _remove(path: Path) -> None:
    """Remove the workspace; failures are logged, never raised."""
    try:
        shutil.rmtree(path)
    except OSError as e:
        logger.warning(f"[WORKSPACE] Failed to remove {path}: {e}")
    else:
        logger.debug(f"[WORKSPACE] Removed {path}")


@asynccontextmanager
async def workspace(settings: Settings | None = None) -> AsyncIterator[Path]:
    """Create a uniquely named directory, removed on every exit path.

    Removal runs synchronously in ``finally`` so it still happens when the
    surrounding task is being cancelled.
    """
    settings = settings or get_settings()
    path = Path(tempfile.mkdtemp(prefix=settings.workspace_prefix, dir=settings.workspace_root))
    logger.debug(f"[WORKSPACE] Created {path}")
    try:
        yield path
    finally:
        _remove(path)


async def with_workspace(
    run: Callable[[Path], Awaitable[T]],
    settings: Settings | None = None,
) -> T:
    """Call ``run`` with a fresh workspace directory and return its result."""
    async with workspace(settings) as path:
        return await run(path)

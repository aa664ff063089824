"""Interfaces of the collaborators around the composition pipeline.

The pipeline neither resolves asset keys nor persists results; whatever
supplies requests and stores results implements these protocols.
"""

from typing import Protocol

from shorts_compose.schemas.composition import CompositionRequest, CompositionResult


class SceneSource(Protocol):
    """Supplies composition requests with resolved absolute file paths."""

    async def load_request(self, key: str) -> CompositionRequest: ...


class CompositionSink(Protocol):
    """Persists or serves a finished composition."""

    async def save(self, key: str, result: CompositionResult) -> None: ...

"""Code samples published by the Flutter SDK.

``flutter create --list-samples <file>`` writes a JSON array describing
the API samples that ``flutter create --sample <id>`` can instantiate.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, ValidationError

if TYPE_CHECKING:
    from flutter_bridge.sdk.handle import FlutterSdk

logger = logging.getLogger(__name__)


class FlutterSample(BaseModel):
    """One entry of the samples index."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    element: str
    library: str = ""
    description: str = ""
    file: str = ""
    source_path: str = Field(default="", alias="sourcePath")
    package: str = ""
    channel: str = ""

    @property
    def display_label(self) -> str:
        return f"{self.element} > {self.id}"


def parse_samples(data: object) -> list[FlutterSample]:
    """Validate a decoded samples index, skipping malformed entries."""
    if not isinstance(data, list):
        logger.warning("Samples index is not a JSON array")
        return []

    samples: list[FlutterSample] = []
    for entry in data:
        try:
            samples.append(FlutterSample.model_validate(entry))
        except ValidationError as e:
            logger.warning("Skipping invalid sample entry: %s", e.errors()[0]["msg"])
    samples.sort(key=lambda s: s.display_label)
    return samples


def load_samples(sdk: FlutterSdk) -> list[FlutterSample]:
    """Ask the SDK for its samples index and parse it.

    Blocks until the tool exits; call it from a background thread.

    Returns:
        The samples sorted by display label, or an empty list on failure.

    """
    fd, index_path = tempfile.mkstemp(suffix=".json", prefix="flutter_samples_")
    os.close(fd)
    try:
        exit_code = sdk.executor.run(sdk.flutter_list_samples(index_path))
        if exit_code != 0:
            logger.info("flutter create --list-samples failed (exit code %s)", exit_code)
            return []
        try:
            data = json.loads(Path(index_path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Cannot read samples index: %s", e)
            return []
        return parse_samples(data)
    finally:
        with contextlib.suppress(OSError):
            os.unlink(index_path)

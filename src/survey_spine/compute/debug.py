"""
File-backed debug sink.

Writes every artifact of the last computation as ``<debug_dir>/<name>.json``
(or ``.yml`` when ``fmt="yaml"``). Each write replaces the previous file, so
the directory always reflects the most recent request.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from survey_spine.framework.logging import get_logger

log = get_logger(__name__)


class FileDebugSink:
    """``DebugSink`` writing JSON or YAML files into a directory."""

    def __init__(self, directory: Path | str, fmt: str = "json"):
        if fmt not in ("json", "yaml"):
            raise ValueError(f"Unsupported debug format: {fmt}")
        self.directory = Path(directory)
        self.fmt = fmt

    def path_for(self, name: str) -> Path:
        suffix = "yml" if self.fmt == "yaml" else "json"
        return self.directory / f"{name}.{suffix}"

    def write(self, name: str, payload: Any) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(name)
        if self.fmt == "yaml":
            text = yaml.safe_dump(payload, default_flow_style=False, sort_keys=False, allow_unicode=True)
        else:
            text = json.dumps(payload, indent=2, default=str)
        path.write_text(text, encoding="utf-8")
        log.debug("debug.artifact_written", name=name, path=str(path))


class MemoryDebugSink:
    """``DebugSink`` keeping artifacts in a dict."""

    def __init__(self) -> None:
        self.artifacts: dict[str, Any] = {}

    def write(self, name: str, payload: Any) -> None:
        self.artifacts[name] = json.loads(json.dumps(payload, default=str))

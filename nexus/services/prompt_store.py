"""Prompt catalog backed by ``nexus/prompts/prompts.json``.

Entries are addressed with dotted keys (``deep_research.analysis_system``)
and rendered with ``string.Template`` placeholders. A prompt can be stored as
one string or as a list of lines.
"""
from __future__ import annotations

import json
from pathlib import Path
from string import Template
from typing import Any

PROMPTS_PATH = Path(__file__).resolve().parents[1] / "prompts" / "prompts.json"


class PromptCatalog:
    def __init__(self, path: Path = PROMPTS_PATH):
        self.path = path
        self._entries: dict[str, Any] | None = None
        self._mtime_ns: int | None = None

    def entries(self) -> dict[str, Any]:
        mtime_ns = self.path.stat().st_mtime_ns
        if self._entries is None or self._mtime_ns != mtime_ns:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(payload, dict):
                raise ValueError(f"Prompt catalog must be a JSON object: {self.path}")
            self._entries = payload
            self._mtime_ns = mtime_ns
        return self._entries

    def get(self, key: str) -> str:
        node: Any = self.entries()
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                raise KeyError(f"Prompt key not found: {key}")
            node = node[part]
        if isinstance(node, list) and all(isinstance(line, str) for line in node):
            return "\n".join(node)
        if isinstance(node, str):
            return node
        raise TypeError(f"Prompt key must map to a string or list of lines: {key}")

    def render(self, key: str, **values: Any) -> str:
        try:
            return Template(self.get(key)).substitute(**values)
        except KeyError as exc:
            if str(exc.args[0]).startswith("Prompt key"):
                raise
            raise KeyError(f"Missing template value '{exc.args[0]}' for prompt '{key}'") from exc

    def clear(self) -> None:
        self._entries = None
        self._mtime_ns = None


catalog = PromptCatalog()


def render_prompt(key: str, **values: Any) -> str:
    return catalog.render(key, **values)

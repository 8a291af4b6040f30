"""
Discovery module - recursively find plugin roots in a marketplace tree.

Supports the following layouts:

  repo/.claude-plugin/plugin.json                      (repo is the plugin)
  repo/<plugin>/.claude-plugin/plugin.json
  repo/plugins/<plugin-1>/.claude-plugin/plugin.json
  repo/plugins/<plugin-2>/plugin.json                  (bare manifest)

A directory holding a manifest is a plugin root; its subtree is not searched
for further plugins.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Set


logger = logging.getLogger(__name__)


SKIP_DIRS = {
    ".git", ".svn", ".hg", "node_modules", "__pycache__",
    ".tox", ".venv", "venv", ".mypy_cache",
    ".pytest_cache", ".ruff_cache", "dist", "build",
}

MAX_WALK_DEPTH = 20

MANIFEST_DIR = ".claude-plugin"
MANIFEST_NAME = "plugin.json"


@dataclass
class DiscoveredPlugin:
    """A plugin root discovered in a directory tree."""

    path: str
    name: str

    def __repr__(self) -> str:
        return f"DiscoveredPlugin({self.name} @ {self.path})"


def find_manifest(directory: Path) -> Optional[Path]:
    """Return the manifest path for a plugin root, or None if it has none."""
    candidate = directory / MANIFEST_DIR / MANIFEST_NAME
    if candidate.is_file():
        return candidate
    candidate = directory / MANIFEST_NAME
    if candidate.is_file():
        return candidate
    return None


def discover_plugins(root_path: str) -> List[DiscoveredPlugin]:
    """
    Recursively discover all plugin roots under *root_path*.

    Returns plugins sorted by relative path so sweeps are reproducible.
    """
    root = Path(root_path).resolve()
    if not root.is_dir():
        return []

    plugins: List[DiscoveredPlugin] = []
    found_paths: Set[Path] = set()

    for dirpath, dirnames, _filenames in os.walk(root, followlinks=False):
        current = Path(dirpath)
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS and d != MANIFEST_DIR)

        depth = len(current.relative_to(root).parts)
        if depth > MAX_WALK_DEPTH:
            dirnames.clear()
            continue

        manifest_path = find_manifest(current)
        if manifest_path is None:
            continue

        resolved = current.resolve()
        if resolved not in found_paths:
            found_paths.add(resolved)
            plugins.append(DiscoveredPlugin(
                path=str(current),
                name=_read_plugin_name(manifest_path, fallback=current.name),
            ))
        dirnames.clear()

    plugins.sort(key=lambda p: Path(p.path).relative_to(root).as_posix())
    logger.debug("Discovered %d plugin(s) under %s", len(plugins), root)
    return plugins


def _read_plugin_name(manifest_path: Path, fallback: str) -> str:
    """Best-effort read of the plugin name from its manifest JSON."""
    try:
        with open(manifest_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return fallback
    if isinstance(data, dict) and isinstance(data.get("name"), str) and data["name"]:
        return data["name"]
    return fallback

"""
Plugin Parser - Reads a plugin directory into scanner-ready structures.

Handles:
- plugin.json manifest (name, version, declared targets)
- Recursive file listing with skip directories and symlink protection
- File classification (markdown, script, hooks, mcp, other)
- Size-limited reads, JSON config parsing and YAML frontmatter splitting

Manifest problems raise PluginManifestError. Everything else is recorded in
``errors`` and the affected file is handed on with no content.
"""

import json
import logging
import os
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ..config.scan_config import FilesConfig


logger = logging.getLogger(__name__)


FILE_KINDS = ("markdown", "script", "hooks", "mcp", "other")


class PluginManifestError(ValueError):
    """The plugin manifest is missing, unreadable or lacks a name."""


@dataclass
class PluginManifest:
    """Parsed plugin manifest data."""

    name: str
    version: Optional[str] = None
    targets: Optional[List[str]] = None
    path: str = ".claude-plugin/plugin.json"
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PluginFile:
    """A single file inside the plugin tree."""

    path: str                       # relative, forward slashes
    kind: str                       # one of FILE_KINDS
    content: Optional[str] = None
    data: Any = None                # parsed JSON for hooks/mcp files
    frontmatter: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ParsedPlugin:
    """Complete parsed plugin structure."""

    path: str
    manifest: PluginManifest
    files: List[PluginFile] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def files_of_kind(self, kind: str) -> List[PluginFile]:
        return [f for f in self.files if f.kind == kind]


def split_frontmatter(content: str) -> Tuple[Dict[str, Any], str]:
    """
    Split a markdown document into (frontmatter fields, body).

    Frontmatter is a YAML mapping between a leading ``---`` line and the next
    ``---`` line. Missing, unterminated or invalid frontmatter yields ``{}``.
    """
    if not isinstance(content, str):
        return {}, ""

    lines = content.split("\n")
    if not lines or lines[0].strip() != "---":
        return {}, content

    end_idx = -1
    for i, line in enumerate(lines[1:], 1):
        if line.strip() == "---":
            end_idx = i
            break
    if end_idx < 0:
        return {}, content

    body = "\n".join(lines[end_idx + 1:])
    try:
        fields = yaml.safe_load("\n".join(lines[1:end_idx]))
    except yaml.YAMLError as e:
        logger.debug("Invalid frontmatter YAML: %s", e)
        return {}, body
    return (fields if isinstance(fields, dict) else {}), body


class PluginParser:
    """Parses a Claude plugin directory from the filesystem."""

    MANIFEST_LOCATIONS = [
        ".claude-plugin/plugin.json",
        "plugin.json",
    ]

    # Plugin metadata directory; the manifest is read separately
    METADATA_DIR = ".claude-plugin"

    HOOKS_FILENAME = "hooks.json"
    HOOKS_DIR = "hooks"
    MCP_FILENAME = ".mcp.json"

    def __init__(self, plugin_path: str, files_config: Optional[FilesConfig] = None):
        """Initialize parser with plugin path and file handling settings."""
        self.plugin_path = Path(plugin_path).resolve()
        self.files_config = files_config or FilesConfig()
        self.max_file_size = int(self.files_config.max_file_size_kb) * 1024
        self.errors: List[str] = []

    def parse(self) -> ParsedPlugin:
        """
        Parse the plugin and return structured data.

        Raises:
            PluginManifestError: If the manifest is missing or invalid.
        """
        self.errors = []
        manifest = self.parse_manifest()
        files = [self._load_file(rel_path) for rel_path in self.collect_files()]

        return ParsedPlugin(
            path=str(self.plugin_path),
            manifest=manifest,
            files=files,
            errors=self.errors.copy(),
        )

    # ── Manifest ──────────────────────────────────────────────────

    def parse_manifest(self) -> PluginManifest:
        """Read and validate the plugin manifest."""
        if not self.plugin_path.is_dir():
            raise PluginManifestError(f"Plugin directory not found: {self.plugin_path}")

        manifest_path = self._find_file(self.MANIFEST_LOCATIONS)
        if manifest_path is None:
            raise PluginManifestError(
                f"No plugin manifest found in {self.plugin_path} "
                f"(expected {self.MANIFEST_LOCATIONS[0]})"
            )

        try:
            with open(manifest_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise PluginManifestError(f"Invalid JSON in manifest {manifest_path}: {e}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise PluginManifestError(f"Error reading manifest {manifest_path}: {e}") from e

        if not isinstance(data, dict):
            raise PluginManifestError(f"Manifest is not a JSON object: {manifest_path}")

        name = data.get("name")
        if not name or not isinstance(name, str):
            raise PluginManifestError(
                f'plugin.json missing required "name" field in {manifest_path}'
            )

        version = data.get("version")
        targets = data.get("targets")
        return PluginManifest(
            name=name,
            version=version if isinstance(version, str) else None,
            targets=[str(t) for t in targets] if isinstance(targets, list) else None,
            path=manifest_path.relative_to(self.plugin_path).as_posix(),
            raw=data,
        )

    # ── File listing ──────────────────────────────────────────────

    def collect_files(self) -> List[str]:
        """
        Recursively list plugin files as sorted, forward-slash relative paths.

        Skips the metadata directory, the manifest, configured skip directories
        and symlinks. Each pruned skip directory is noted in ``errors`` since
        its contents are never scanned.
        """
        skip_dirs = set(self.files_config.skip_dirs)
        manifest_path = self._find_file(self.MANIFEST_LOCATIONS)
        manifest_rel = self._relative(manifest_path) if manifest_path else None
        files: List[str] = []

        for dirpath, dirnames, filenames in os.walk(self.plugin_path, followlinks=False):
            current = Path(dirpath)

            # Prune skip directories and symlinked directories in place
            kept = []
            for d in dirnames:
                if d == self.METADATA_DIR or (current / d).is_symlink():
                    continue
                if d in skip_dirs:
                    message = f"Skipped directory (not scanned): {self._relative(current / d)}"
                    logger.info(message)
                    self.errors.append(message)
                    continue
                kept.append(d)
            dirnames[:] = kept

            for filename in filenames:
                file_path = current / filename
                if file_path.is_symlink():
                    self._record(f"Skipping symlink: {self._relative(file_path)}")
                    continue
                rel = self._relative(file_path)
                if rel == manifest_rel:
                    continue
                files.append(rel)

        return sorted(files)

    def classify_path(self, relative_path: str) -> str:
        """Return the file kind for a plugin-relative path."""
        ext = posixpath.splitext(relative_path)[1].lower()
        if ext in self.files_config.markdown_extensions:
            return "markdown"
        if ext in self.files_config.script_extensions:
            return "script"
        if relative_path == self.HOOKS_FILENAME:
            return "hooks"
        if relative_path.startswith(self.HOOKS_DIR + "/") and ext == ".json":
            return "hooks"
        if relative_path == self.MCP_FILENAME:
            return "mcp"
        return "other"

    # ── Reading ───────────────────────────────────────────────────

    def _load_file(self, relative_path: str) -> PluginFile:
        kind = self.classify_path(relative_path)
        plugin_file = PluginFile(path=relative_path, kind=kind)
        if kind == "other":
            return plugin_file

        content = self._safe_read_file(self.plugin_path / relative_path, relative_path)
        plugin_file.content = content
        if content is None:
            return plugin_file

        if kind == "markdown":
            plugin_file.frontmatter, _ = split_frontmatter(content)
        elif kind in ("hooks", "mcp"):
            try:
                plugin_file.data = json.loads(content)
            except json.JSONDecodeError as e:
                self._record(f"Invalid JSON in {relative_path}: {e}")

        return plugin_file

    def _safe_read_file(self, file_path: Path, relative_path: str) -> Optional[str]:
        """
        Safely read a file with size limits.

        Returns:
            File contents or None if the file is too large or unreadable
        """
        try:
            file_size = file_path.stat().st_size
            if file_size > self.max_file_size:
                self._record(f"File too large ({file_size} bytes): {relative_path}")
                return None
            return file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self._record(f"Error reading file {relative_path}: {e}")
            return None

    def _record(self, message: str) -> None:
        logger.warning(message)
        self.errors.append(message)

    def _relative(self, file_path: Path) -> str:
        return file_path.relative_to(self.plugin_path).as_posix()

    def _find_file(self, locations: List[str]) -> Optional[Path]:
        """Find the first existing file from a list of locations."""
        for loc in locations:
            path = self.plugin_path / loc
            if path.is_file():
                return path
        return None

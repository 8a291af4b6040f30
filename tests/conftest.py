"""Shared test fixtures for compatibility scanner tests."""

import json
import logging
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep env vars, the working directory and logging from leaking between tests."""
    for var in (
        "COMPAT_SCANNER_MODE",
        "COMPAT_SCANNER_WORKERS",
        "COMPAT_SCANNER_LOG_LEVEL",
        "COMPAT_SCANNER_VERBOSE",
    ):
        monkeypatch.delenv(var, raising=False)

    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)

    yield

    logger = logging.getLogger("compat_scanner")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def plugin_factory(tmp_path):
    """
    Write a plugin tree into tmp_path and return its root.

    ``files`` maps relative paths to contents; dict/list contents are written
    as JSON. ``manifest=None`` writes no manifest at all.
    """
    def _make(files=None, name="test-plugin", manifest="default", root=None):
        plugin_dir = Path(root or tmp_path) / name
        plugin_dir.mkdir(parents=True, exist_ok=True)

        if manifest == "default":
            manifest = {"name": name, "version": "1.0.0"}
        if manifest is not None:
            manifest_path = plugin_dir / ".claude-plugin" / "plugin.json"
            manifest_path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(manifest, str):
                manifest_path.write_text(manifest, encoding="utf-8")
            else:
                manifest_path.write_text(json.dumps(manifest), encoding="utf-8")

        for rel_path, content in (files or {}).items():
            path = plugin_dir / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, (dict, list)):
                content = json.dumps(content, indent=2)
            path.write_text(content, encoding="utf-8")

        return plugin_dir

    return _make


@pytest.fixture
def node_mcp_plugin(plugin_factory):
    """A plugin whose only runtime need is a node MCP server."""
    return plugin_factory(
        files={
            ".mcp.json": {
                "mcpServers": {
                    "docs": {"command": "node", "args": ["server.js"]},
                },
            },
            "README.md": "# Docs plugin\n\nServes documentation over MCP.\n",
        },
        name="docs-plugin",
    )


@pytest.fixture
def python_heavy_plugin(plugin_factory):
    """A plugin that needs Python on every front: skill, script, hook."""
    return plugin_factory(
        files={
            "skills/analyze/SKILL.md": (
                "---\n"
                "name: analyze\n"
                "allowed-tools: Bash, Read\n"
                "---\n"
                "# Analyze\n"
                "\n"
                "```bash\n"
                "pip install pandas\n"
                "python3 scripts/analyze.py data.csv\n"
                "```\n"
            ),
            "scripts/analyze.py": "import os\nimport pandas as pd\nfrom numpy import array\n",
            "hooks/hooks.json": {
                "hooks": {
                    "PostToolUse": [
                        {
                            "matcher": "Write",
                            "hooks": [{"type": "command", "command": "bash scripts/format.sh"}],
                        }
                    ]
                }
            },
        },
        name="analyzer-plugin",
    )

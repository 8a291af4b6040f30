"""Tests for the MCP server config scanner."""

from compat_scanner.core.mcp_scanner import scan_mcp_config
from compat_scanner.core.types import Target, Verdict


class TestMcpScanner:
    def test_python_server(self):
        config = {"mcpServers": {"db": {"command": "python3", "args": ["-m", "db_server"]}}}
        evidence = scan_mcp_config(config, ".mcp.json")

        assert len(evidence) == 1
        assert evidence[0].source == "mcp-server"
        assert evidence[0].signal == "python3"
        assert "db" in evidence[0].detail
        assert "python3 -m db_server" in evidence[0].detail
        assert evidence[0].impact[Target.CLAUDE_DESKTOP] is Verdict.NEEDS_REVIEW

    def test_node_server_is_informational(self):
        evidence = scan_mcp_config({"docs": {"command": "node", "args": ["server.js"]}}, ".mcp.json")
        assert len(evidence) == 1
        assert evidence[0].is_informational()

    def test_bare_mapping_and_string_values(self):
        config = {"fetch": "uvx", "runner": "uv", "tool": {"command": "bash"}}
        evidence = scan_mcp_config(config, ".mcp.json")
        assert [e.signal for e in evidence] == ["uv", "bash"]

    def test_command_is_not_pattern_matched(self):
        config = {"odd": {"command": "python3 server.py"}}
        assert scan_mcp_config(config, ".mcp.json") == []

    def test_unknown_and_malformed(self):
        assert scan_mcp_config({"x": {"command": "docker", "args": ["run"]}}, ".mcp.json") == []
        assert scan_mcp_config({"mcpServers": []}, ".mcp.json") == []
        assert scan_mcp_config({"x": {"args": ["a"]}}, ".mcp.json") == []
        assert scan_mcp_config("python3", ".mcp.json") == []

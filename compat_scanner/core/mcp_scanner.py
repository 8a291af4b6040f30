"""
MCP Scanner - Classifies MCP server launch commands.

The command field of an MCP server config holds a program name, not a shell
line, so it is matched exactly against the known runtime binaries.
"""

from typing import Any, List, Optional

from .command_classifier import classify_command_binary
from .types import Evidence
from ..rules.rule_loader import RuleLoader


def _launch_line(command: str, args: Any) -> str:
    if isinstance(args, list):
        return " ".join([command] + [str(a) for a in args])
    return command


def scan_mcp_config(
    config: Any, file_path: str, rule_loader: Optional[RuleLoader] = None
) -> List[Evidence]:
    """
    Scan deserialized MCP server configs (name -> {command, args?}).

    Accepts the {"mcpServers": {...}} wrapper or a bare mapping. A string
    value is treated as the command itself.
    """
    if not isinstance(config, dict):
        return []

    servers = config.get("mcpServers", config)
    if not isinstance(servers, dict):
        return []

    evidence: List[Evidence] = []
    for server_name, server_config in servers.items():
        if isinstance(server_config, str):
            server_config = {"command": server_config}
        if not isinstance(server_config, dict):
            continue

        command = server_config.get("command")
        if not isinstance(command, str) or not command:
            continue

        classification = classify_command_binary(command, rule_loader)
        if classification is None:
            continue

        launch = _launch_line(command, server_config.get("args"))
        evidence.append(Evidence(
            source="mcp-server",
            file=file_path,
            signal=classification.signal,
            detail=f"MCP server '{server_name}' launches with '{launch[:120]}'",
            impact=classification.impact,
        ))

    return evidence

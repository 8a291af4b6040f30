"""
Code Block Scanner - Finds runtime-requiring commands in fenced markdown blocks.

Only shell-like blocks are inspected (bash, sh, shell, zsh, console or no
language tag). Data blocks such as json or yaml are skipped even when their
content looks like a command.
"""

import re
from typing import List, Optional

from .command_classifier import classify_command
from .types import Evidence
from ..rules.rule_loader import RuleLoader


EXECUTABLE_LANGUAGES = frozenset({"", "bash", "sh", "shell", "zsh", "console"})

_FENCE_OPEN_RE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})\s*(?P<info>.*)$")
_FENCE_CLOSE_RE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})\s*$")

# Interactive prompt prefix in console transcripts
_PROMPT_RE = re.compile(r"^\s*\$\s+")


def _language_tag(info: str) -> str:
    """Return the normalized language tag from a fence info string."""
    info = info.strip()
    if not info:
        return ""
    tag = info.split()[0]
    return tag.strip("{}.").lower()


def _is_closing_fence(line: str, fence: str) -> bool:
    match = _FENCE_CLOSE_RE.match(line)
    if not match:
        return False
    run = match.group("fence")
    return run[0] == fence[0] and len(run) >= len(fence)


def scan_code_blocks(
    content: str, file_path: str, rule_loader: Optional[RuleLoader] = None
) -> List[Evidence]:
    """
    Scan markdown content for commands inside executable code blocks.

    Args:
        content: Raw markdown text
        file_path: Path of the document relative to the plugin root
        rule_loader: Optional custom rule loader

    Returns:
        One Evidence per matching line, with 1-based line numbers.
    """
    if not isinstance(content, str) or not content:
        return []

    evidence: List[Evidence] = []
    fence: Optional[str] = None
    executable = False

    for line_num, line in enumerate(content.splitlines(), 1):
        if fence is None:
            match = _FENCE_OPEN_RE.match(line)
            if match:
                fence = match.group("fence")
                info = match.group("info")
                # Backtick fences cannot carry backticks in the info string
                if fence[0] == "`" and "`" in info:
                    fence = None
                    continue
                executable = _language_tag(info) in EXECUTABLE_LANGUAGES
            continue

        if _is_closing_fence(line, fence):
            fence = None
            executable = False
            continue

        if not executable:
            continue

        command = _PROMPT_RE.sub("", line).strip()
        if not command:
            continue

        classification = classify_command(command, rule_loader)
        if classification is None:
            continue

        evidence.append(Evidence(
            source="code-block",
            file=file_path,
            line=line_num,
            signal=classification.signal,
            detail=f"Code block runs '{classification.signal}': {command[:120]}",
            impact=classification.impact,
        ))

    return evidence

"""Tests for the hook configuration scanner."""

from compat_scanner.core.hook_scanner import scan_hooks_config


class TestHookScanner:
    def test_prompt_handlers_yield_nothing(self):
        config = {"Stop": [{"type": "prompt", "prompt": "Summarize the session"}]}
        assert scan_hooks_config(config, "hooks/hooks.json") == []

    def test_single_bash_command_handler(self):
        config = {"SessionStart": [{"type": "command", "command": "bash init.sh"}]}
        evidence = scan_hooks_config(config, "hooks/hooks.json")

        assert len(evidence) == 1
        assert evidence[0].signal == "hook-command: bash"
        assert evidence[0].source == "hook"
        assert evidence[0].line is None
        assert "SessionStart" in evidence[0].detail

    def test_nested_matcher_format_with_wrapper(self):
        config = {
            "hooks": {
                "PreToolUse": [
                    {
                        "matcher": "Bash",
                        "hooks": [
                            {"type": "command", "command": "python3 check.py"},
                            {"type": "prompt", "prompt": "Is this safe?"},
                        ],
                    }
                ],
                "PostToolUse": [
                    {
                        "matcher": "Write|Edit",
                        "hooks": [{"type": "command", "command": "npx prettier --write ."}],
                    }
                ],
            }
        }
        evidence = scan_hooks_config(config, "hooks/hooks.json")
        assert [e.signal for e in evidence] == ["hook-command: python3"]

    def test_multiple_events_and_handlers_contribute_independently(self):
        config = {
            "SessionStart": [
                {"type": "command", "command": "pip install -r requirements.txt"},
                {"type": "command", "command": "node setup.js"},
            ],
            "Stop": [{"type": "command", "command": "sh cleanup.sh"}],
        }
        evidence = scan_hooks_config(config, "hooks.json")
        assert [e.signal for e in evidence] == [
            "hook-command: pip install",
            "hook-command: node",
            "hook-command: sh",
        ]

    def test_event_mapped_to_single_handler(self):
        config = {"Stop": {"type": "command", "command": "bash done.sh"}}
        assert len(scan_hooks_config(config, "hooks.json")) == 1

    def test_malformed_input_degrades_to_nothing(self):
        assert scan_hooks_config(None, "hooks.json") == []
        assert scan_hooks_config([1, 2], "hooks.json") == []
        assert scan_hooks_config({"hooks": "nope"}, "hooks.json") == []
        assert scan_hooks_config({"Stop": [None, 3, {"type": "command"}]}, "hooks.json") == []
        assert scan_hooks_config({"Stop": [{"type": "command", "command": 12}]}, "hooks.json") == []

"""Tests for marketplace plugin discovery."""

from pathlib import Path

from compat_scanner.utils.discovery import discover_plugins, find_manifest


class TestDiscoverPlugins:
    def test_marketplace_layout(self, plugin_factory, tmp_path):
        market = tmp_path / "market"
        plugin_factory(name="zeta", root=market / "plugins")
        plugin_factory(name="alpha", root=market / "plugins")
        plugin_factory(name="ignored", root=market / "node_modules")
        plugin_factory(name="nested", root=market / "plugins" / "alpha" / "examples")
        bare = market / "extras" / "bare"
        bare.mkdir(parents=True)
        (bare / "plugin.json").write_text('{"name": "bare-plugin"}', encoding="utf-8")
        (market / "README.md").write_text("# Market", encoding="utf-8")

        plugins = discover_plugins(str(market))

        assert [p.name for p in plugins] == ["bare-plugin", "alpha", "zeta"]
        assert Path(plugins[1].path) == (market / "plugins" / "alpha").resolve()

    def test_root_is_plugin(self, plugin_factory):
        root = plugin_factory(name="solo", files={"skills/x/SKILL.md": "# x"})
        plugins = discover_plugins(str(root))
        assert [p.name for p in plugins] == ["solo"]

    def test_name_falls_back_to_directory(self, plugin_factory, tmp_path):
        plugin_factory(name="nameless", manifest="{broken", root=tmp_path / "m")
        plugins = discover_plugins(str(tmp_path / "m"))
        assert [p.name for p in plugins] == ["nameless"]

    def test_missing_root(self, tmp_path):
        assert discover_plugins(str(tmp_path / "missing")) == []

    def test_find_manifest_prefers_metadata_dir(self, plugin_factory):
        root = plugin_factory(name="both")
        (root / "plugin.json").write_text('{"name": "root"}', encoding="utf-8")
        assert find_manifest(root) == root / ".claude-plugin" / "plugin.json"

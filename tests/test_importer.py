"""
Tests for theme_manager.packages.importer.

This test suite covers:
- Live path resolution regardless of stored mappings
- Skipping unresolved files without failing
- Component selection for full themes
- Accent and LED settings, keeping lights a package does not list
- Removing old assets before a theme or overlay pack is applied
- Failure modes (bad manifests, kind mismatch, copy errors)
"""

import json

import pytest

from theme_manager.device.exceptions import (
    CleanupError,
    InventoryError,
    ManifestParseError,
    PackageCopyError,
    PackageNotFoundError,
    UnknownPackageKindError,
)
from theme_manager.device.leds import read_led_settings
from theme_manager.device.settings_io import SettingsIO
from theme_manager.domain import AccentColors, ComponentKind, ImportRequest, LEDSetting
from theme_manager.packages.importer import import_package


def _request(package, kind, **kwargs):
    return ImportRequest(package_path=package, kind=kind, **kwargs)


class TestImportFullTheme:
    """Tests for importing a complete .theme package."""

    def test_copies_every_resolved_file(self, full_theme, layout):
        """Test each theme file lands in its device slot with its bytes."""
        result = import_package(_request(full_theme, ComponentKind.FULL_THEME), layout)

        assert layout.root_background.read_bytes() == b"t-root"
        assert layout.recently_played_background.read_bytes() == b"t-rp"
        gba_media = layout.system_media("Game Boy Advance (GBA)")
        assert (gba_media / "bg.png").read_bytes() == b"t-gba-bg"
        assert (gba_media / "bglist.png").read_bytes() == b"t-gba-list"
        assert layout.collection_background("Handhelds").read_bytes() == b"t-handhelds-bg"
        assert layout.collections_icon.read_bytes() == b"t-collections-icon"
        assert layout.system_icon("Super Nintendo (SNES)").read_bytes() == b"t-snes-icon"
        assert layout.tool_icon("Clock").read_bytes() == b"t-clock"
        assert layout.collection_icon("Handhelds").read_bytes() == b"t-handhelds-icon"
        assert layout.overlay("GBA", "frame.png").read_bytes() == b"t-gba-overlay"
        assert layout.font("Next.ttf").read_bytes() == b"t-next-font"
        assert result.copied_count == 11

    def test_ignores_stale_stored_paths(self, full_theme, layout):
        """Test the manifest's absolute paths from another card are not used."""
        result = import_package(_request(full_theme, ComponentKind.FULL_THEME), layout)

        root_mapping = next(
            m for m in result.applied if m.package_path == "Wallpapers/SystemWallpapers/Root.png"
        )
        assert root_mapping.device_path == str(layout.root_background)

    def test_unrecognized_file_is_skipped(self, full_theme, layout):
        """Test a file outside every category is reported, not fatal."""
        result = import_package(_request(full_theme, ComponentKind.FULL_THEME), layout)

        assert result.skipped == ("Random/notes.txt",)
        assert not (layout.root / "Random").exists()

    def test_preview_and_manifest_are_not_copied(self, full_theme, layout):
        """Test package metadata never reaches the device."""
        result = import_package(_request(full_theme, ComponentKind.FULL_THEME), layout)

        package_paths = {m.package_path for m in result.applied}
        assert "preview.png" not in package_paths
        assert "manifest.json" not in package_paths

    def test_applies_settings(self, full_theme, layout, sample_accent_colors):
        """Test accent and LED settings embedded in the theme are written."""
        result = import_package(_request(full_theme, ComponentKind.FULL_THEME), layout)

        assert result.settings_applied == (ComponentKind.ACCENT, ComponentKind.LED)
        accent_text = layout.accent_settings.read_text()
        assert f"color2={sample_accent_colors['color2']}" in accent_text
        led_text = layout.led_settings.read_text()
        assert "[L&R triggers]" in led_text
        assert "inbrightness=100" in led_text

    def test_creates_media_directories(self, full_theme, layout):
        """Test .media folders of systems without theme files are created."""
        import_package(_request(full_theme, ComponentKind.FULL_THEME), layout)

        assert layout.system_media("Ports").is_dir()
        assert layout.system_media("Arcade (FBN) (MAME)").is_dir()

    def test_overwrites_existing_files(self, full_theme, populated_device):
        """Test device files already in a slot are replaced."""
        import_package(_request(full_theme, ComponentKind.FULL_THEME), populated_device)

        assert populated_device.root_background.read_bytes() == b"t-root"
        # Slots the theme does not cover stay untouched
        assert populated_device.root_media_background.read_bytes() == b"root-media-bg"

    def test_selected_kinds_only(self, full_theme, layout):
        """Test choosing icons applies icons and nothing else."""
        request = _request(
            full_theme, ComponentKind.FULL_THEME, selected_kinds=frozenset({ComponentKind.ICON})
        )

        result = import_package(request, layout)

        assert result.copied_count == 4
        assert all(m.package_path.startswith("Icons/") for m in result.applied)
        assert not layout.root_background.exists()
        assert not layout.accent_settings.exists()
        assert result.settings_applied == ()

    def test_selected_settings_only(self, full_theme, layout):
        """Test choosing accents copies no files."""
        request = _request(
            full_theme, ComponentKind.FULL_THEME, selected_kinds=frozenset({ComponentKind.ACCENT})
        )

        result = import_package(request, layout)

        assert result.copied_count == 0
        assert result.settings_applied == (ComponentKind.ACCENT,)
        assert not layout.led_settings.exists()


class TestImportComponents:
    """Tests for importing single-purpose component packages."""

    def test_wallpaper_with_empty_mappings(self, make_package, component_manifest_factory, layout):
        """Test a package whose manifest has no mappings still applies."""
        package = make_package(
            "Walls.bg",
            {"SystemWallpapers/Root.png": b"w-root", "ListWallpapers/Ports-list.png": b"w-ports"},
            component_manifest_factory("Walls", "wallpaper"),
        )

        result = import_package(_request(package, ComponentKind.WALLPAPER), layout)

        assert result.copied_count == 2
        assert layout.root_background.read_bytes() == b"w-root"
        assert (layout.system_media("Ports") / "bglist.png").read_bytes() == b"w-ports"

    def test_context_tag_fallback(self, make_package, component_manifest_factory, layout):
        """Test an untagged file uses the caller's system tag."""
        package = make_package(
            "Walls.bg",
            {"SystemWallpapers/Fancy.png": b"fancy"},
            component_manifest_factory("Walls", "wallpaper"),
        )

        import_package(_request(package, ComponentKind.WALLPAPER, context_tag="SNES"), layout)

        target = layout.system_media("Super Nintendo (SNES)") / "bg.png"
        assert target.read_bytes() == b"fancy"

    def test_tag_matches_renamed_system(self, make_package, component_manifest_factory, layout):
        """Test a file named after another card's folder finds the local one."""
        package = make_package(
            "Icons.icon",
            {"SystemIcons/GBA (GBA).png": b"gba"},
            component_manifest_factory("Icons", "icon"),
        )

        import_package(_request(package, ComponentKind.ICON), layout)

        assert layout.system_icon("Game Boy Advance (GBA)").read_bytes() == b"gba"

    def test_overlay_package(self, make_package, component_manifest_factory, layout):
        """Test overlay packs map Systems/<TAG>/ to the device overlays folder."""
        package = make_package(
            "Frames.over",
            {"Systems/SNES/scanlines.png": b"s", "Systems/readme.png": b"r"},
            component_manifest_factory("Frames", "overlay"),
        )

        result = import_package(_request(package, ComponentKind.OVERLAY), layout)

        assert layout.overlay("SNES", "scanlines.png").read_bytes() == b"s"
        assert result.skipped == ("Systems/readme.png",)

    def test_font_package(self, make_package, component_manifest_factory, layout):
        """Test font files at the package root go to the system font slots."""
        package = make_package(
            "Pixel.font",
            {"OG.ttf": b"og", "Next.backup.ttf": b"nb", "Other.ttf": b"x"},
            component_manifest_factory("Pixel", "font", path_mappings={}),
        )

        result = import_package(_request(package, ComponentKind.FONT), layout)

        assert layout.fonts.joinpath("font2.ttf").read_bytes() == b"og"
        assert layout.fonts.joinpath("font1.backup.ttf").read_bytes() == b"nb"
        assert result.skipped == ("Other.ttf",)

    def test_accent_package(
        self, make_package, component_manifest_factory, populated_device, sample_accent_colors
    ):
        """Test accent colors replace only the color lines."""
        package = make_package(
            "Warm.acc", {}, component_manifest_factory("Warm", "accent", accent_colors=sample_accent_colors)
        )

        result = import_package(_request(package, ComponentKind.ACCENT), populated_device)

        text = populated_device.accent_settings.read_text()
        assert "color2=0xE6A23C" in text
        assert "fontsize=16" in text
        assert "haptics=1" in text
        assert result.settings_applied == (ComponentKind.ACCENT,)

    def test_accent_package_with_custom_writer(
        self, make_package, component_manifest_factory, layout, sample_accent_colors, mocker
    ):
        """Test settings go through the supplied SettingsIO."""
        writer = mocker.Mock()
        package = make_package(
            "Warm.acc", {}, component_manifest_factory("Warm", "accent", accent_colors=sample_accent_colors)
        )

        import_package(
            _request(package, ComponentKind.ACCENT), layout, SettingsIO(write_accents=writer)
        )

        writer.assert_called_once_with(
            layout.accent_settings, AccentColors.from_dict(sample_accent_colors)
        )

    def test_led_package(self, make_package, component_manifest_factory, layout, sample_led_settings):
        """Test LED settings are written in section form."""
        package = make_package(
            "Glow.led", {}, component_manifest_factory("Glow", "led", led_settings=sample_led_settings)
        )

        import_package(_request(package, ComponentKind.LED), layout)

        text = layout.led_settings.read_text()
        assert text.startswith("[F1 key]\n")
        assert "color1=0xE6A23C" in text

    def test_led_package_keeps_unlisted_lights(
        self, make_package, component_manifest_factory, populated_device
    ):
        """Test lights missing from the manifest keep their device values."""
        package = make_package(
            "Red.led",
            {},
            component_manifest_factory("Red", "led", led_settings={"f1_key": {"effect": 3}}),
        )

        import_package(_request(package, ComponentKind.LED), populated_device)

        settings = read_led_settings(populated_device.led_settings)
        assert list(settings) == ["f1_key", "f2_key", "top_bar", "lr_triggers"]
        assert settings["f1_key"].effect == 3
        assert settings["f2_key"].speed == 500
        assert settings["lr_triggers"].color2 == "0x101010"

    def test_theme_leds_fill_missing_lights_with_defaults(self, full_theme, layout):
        """Test a light absent from both the theme and the device gets defaults."""
        manifest_path = full_theme / "manifest.json"
        data = json.loads(manifest_path.read_text())
        data["led_settings"] = {"top_bar": data["led_settings"]["top_bar"]}
        manifest_path.write_text(json.dumps(data))
        layout.led_settings.write_text("[F1 key]\neffect=2\nspeed=fast\n")

        import_package(_request(full_theme, ComponentKind.FULL_THEME), layout)

        settings = read_led_settings(layout.led_settings)
        assert len(settings) == 4
        assert settings["top_bar"].color1 == "0xE6A23C"
        assert settings["f1_key"] == LEDSetting()


class TestImportCleanup:
    """Tests for removing old assets before a package is applied."""

    def test_theme_replaces_previous_look(self, full_theme, populated_device):
        """Test slots the new theme does not fill are emptied, fonts are kept."""
        result = import_package(
            _request(full_theme, ComponentKind.FULL_THEME, clean=True), populated_device
        )

        assert len(result.removed) == 18
        assert not populated_device.root_media_background.exists()
        assert not populated_device.system_icon("Game Boy Advance (GBA)").exists()
        assert not populated_device.overlay("SNES", "scanlines.png").exists()
        assert populated_device.overlay("GBA", "frame.png").read_bytes() == b"t-gba-overlay"
        assert populated_device.root_background.read_bytes() == b"t-root"
        assert populated_device.font("OG.ttf").read_bytes() == b"og-font"

    def test_only_kinds_in_the_package_are_cleaned(
        self, make_package, theme_manifest, populated_device
    ):
        """Test a wallpaper-only theme leaves icons and overlays alone."""
        package = make_package(
            "Walls.theme", {"Wallpapers/SystemWallpapers/Root.png": b"new-root"}, theme_manifest
        )

        import_package(_request(package, ComponentKind.FULL_THEME, clean=True), populated_device)

        assert not populated_device.tools_background.exists()
        assert populated_device.root_background.read_bytes() == b"new-root"
        assert populated_device.tools_icon.read_bytes() == b"tools-icon"
        assert populated_device.overlay("SNES", "scanlines.png").is_file()

    def test_selection_limits_cleaning(self, full_theme, populated_device):
        """Test unselected kinds are neither cleaned nor applied."""
        request = _request(
            full_theme,
            ComponentKind.FULL_THEME,
            selected_kinds=frozenset({ComponentKind.ICON}),
            clean=True,
        )

        result = import_package(request, populated_device)

        assert len(result.removed) == 7
        assert populated_device.root_media_background.read_bytes() == b"root-media-bg"
        assert not populated_device.system_icon("Game Boy Advance (GBA)").exists()

    def test_overlay_pack(self, make_package, component_manifest_factory, populated_device):
        """Test an overlay pack removes overlays of systems it does not cover."""
        package = make_package(
            "Frames.over",
            {"Systems/GBA/frame.png": b"new-frame"},
            component_manifest_factory("Frames", "overlay"),
        )

        import_package(_request(package, ComponentKind.OVERLAY, clean=True), populated_device)

        assert populated_device.overlay("GBA", "frame.png").read_bytes() == b"new-frame"
        assert not populated_device.overlay("SNES", "scanlines.png").exists()
        assert populated_device.root_background.read_bytes() == b"root-bg"

    def test_not_cleaned_by_default(self, make_package, component_manifest_factory, populated_device):
        package = make_package(
            "Frames.over",
            {"Systems/GBA/frame.png": b"new-frame"},
            component_manifest_factory("Frames", "overlay"),
        )

        result = import_package(_request(package, ComponentKind.OVERLAY), populated_device)

        assert result.removed == ()
        assert populated_device.overlay("SNES", "scanlines.png").is_file()

    def test_removal_failure_stops_before_copying(self, full_theme, populated_device, mocker):
        """Test a file that cannot be removed aborts the import."""
        mocker.patch("pathlib.Path.unlink", side_effect=PermissionError(13, "Permission denied"))

        with pytest.raises(CleanupError) as exc_info:
            import_package(
                _request(full_theme, ComponentKind.FULL_THEME, clean=True), populated_device
            )

        assert exc_info.value.reason == "Permission denied"
        assert populated_device.root_background.read_bytes() == b"root-bg"


class TestImportFailures:
    """Tests for import error handling."""

    def test_missing_package(self, tmp_path, layout):
        """Test importing a package that does not exist."""
        with pytest.raises(PackageNotFoundError):
            import_package(_request(tmp_path / "Gone.theme", ComponentKind.FULL_THEME), layout)

    def test_parse_error_copies_nothing(self, make_package, layout):
        """Test a corrupt manifest stops the import before any copy."""
        package = make_package(
            "Broken.bg", {"manifest.json": b"{oops", "SystemWallpapers/Root.png": b"x"}
        )

        with pytest.raises(ManifestParseError):
            import_package(_request(package, ComponentKind.WALLPAPER), layout)

        assert not layout.root_background.exists()

    def test_kind_mismatch(self, full_theme, layout):
        """Test a theme cannot be imported as a wallpaper pack."""
        with pytest.raises(UnknownPackageKindError) as exc_info:
            import_package(_request(full_theme, ComponentKind.WALLPAPER), layout)

        assert "expected wallpaper" in exc_info.value.label

    def test_accent_package_without_colors(self, make_package, component_manifest_factory, layout):
        """Test an accent package must carry colors."""
        package = make_package("Empty.acc", {}, component_manifest_factory("Empty", "accent"))

        with pytest.raises(ManifestParseError):
            import_package(_request(package, ComponentKind.ACCENT), layout)

    def test_led_package_without_settings(self, make_package, component_manifest_factory, layout):
        """Test an LED package must carry settings."""
        package = make_package("Empty.led", {}, component_manifest_factory("Empty", "led"))

        with pytest.raises(ManifestParseError):
            import_package(_request(package, ComponentKind.LED), layout)

    def test_copy_failure_stops_import(self, full_theme, layout):
        """Test the first failed copy raises with the destination path."""
        layout.root_background.mkdir(parents=True)

        with pytest.raises(PackageCopyError) as exc_info:
            import_package(_request(full_theme, ComponentKind.FULL_THEME), layout)

        assert exc_info.value.destination == str(layout.root_background)
        assert not layout.accent_settings.exists()

    def test_missing_roms(self, full_theme, tmp_path):
        """Test a card without Roms cannot be themed."""
        from theme_manager.device.layout import DeviceLayout

        with pytest.raises(InventoryError):
            import_package(
                _request(full_theme, ComponentKind.FULL_THEME), DeviceLayout(tmp_path / "blank")
            )

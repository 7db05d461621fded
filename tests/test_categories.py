"""Tests for the cache location registry."""

from pathlib import Path

from cachecleaner.categories import (
    DAY_CHOICES,
    LOCATIONS,
    expand_path,
    get_all_locations,
)
from cachecleaner.models import CacheLocation


class TestRegistry:
    def test_registry_order(self):
        names = [loc.name for loc in LOCATIONS]
        assert names == [
            "System Caches",
            "Xcode",
            "npm/bun/pnpm",
            "node_modules",
            ".next builds",
            "Claude/AI Tools",
            "Docker",
            "Homebrew",
            "CocoaPods",
            "Gradle/Maven",
            "Python",
            "Logs",
        ]

    def test_names_are_unique(self):
        names = [loc.name for loc in LOCATIONS]
        assert len(names) == len(set(names))

    def test_every_location_has_paths(self):
        for location in LOCATIONS:
            assert location.base_paths, location.name

    def test_paths_are_home_relative(self):
        for location in LOCATIONS:
            for path in location.base_paths:
                assert path.startswith("~"), path

    def test_pattern_locations(self):
        patterns = {loc.name: loc.name_pattern for loc in LOCATIONS if loc.is_recursive}
        assert patterns == {"node_modules": "node_modules", ".next builds": ".next"}

    def test_day_choices(self):
        assert DAY_CHOICES == (7, 14, 21, 30, 60, 90)


class TestGetAllLocations:
    def test_returns_builtins(self):
        assert get_all_locations() == list(LOCATIONS)

    def test_appends_extra_locations(self):
        extra = CacheLocation(name="Custom", base_paths=["~/custom-cache"])
        locations = get_all_locations([extra])
        assert locations[-1] == extra
        assert locations[:-1] == list(LOCATIONS)


class TestExpandPath:
    def test_expands_home(self, home):
        assert expand_path("~/Library/Logs") == home / "Library" / "Logs"

    def test_expands_bare_tilde(self, home):
        assert expand_path("~") == home

    def test_expands_environment_variables(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CACHE_ROOT", str(tmp_path))
        assert expand_path("$CACHE_ROOT/cache") == tmp_path / "cache"

    def test_absolute_path_unchanged(self):
        assert expand_path("/var/tmp") == Path("/var/tmp")

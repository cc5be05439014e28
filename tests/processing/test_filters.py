# Copyright © 2025 Sierra Labs LLC
# SPDX-License-Identifier: AGPL-3.0-only
# License-Filename: LICENSE

"""
Tests for include/exclude path filtering.
"""

import pytest

from signalk_timestream.processing.filters import PathFilter, compile_glob


class TestCompileGlob:
    """Test glob to regex conversion."""

    def test_star_matches_any_suffix(self):
        """Test star matches any suffix."""
        regex = compile_glob("navigation.*")
        assert regex.fullmatch("navigation.speedOverGround")
        assert regex.fullmatch("navigation.position.latitude")

    def test_dot_is_literal(self):
        """Test dot is literal."""
        regex = compile_glob("navigation.speed")
        assert regex.fullmatch("navigation.speed")
        assert not regex.fullmatch("navigationXspeed")

    def test_whole_path_must_match(self):
        """Test whole path must match."""
        regex = compile_glob("speed")
        assert not regex.fullmatch("navigation.speed")
        assert not regex.fullmatch("speed.over")

    def test_star_in_middle(self):
        """Test star in middle."""
        regex = compile_glob("propulsion.*.revolutions")
        assert regex.fullmatch("propulsion.port.revolutions")
        assert not regex.fullmatch("propulsion.port.temperature")

    def test_regex_characters_are_escaped(self):
        """Test regex characters are escaped."""
        regex = compile_glob("environment.(temp)+")
        assert regex.fullmatch("environment.(temp)+")
        assert not regex.fullmatch("environment.temptemp")


class TestPathFilter:
    """Test filter modes."""

    def test_empty_exclude_accepts_everything(self):
        """Test empty exclude accepts everything."""
        path_filter = PathFilter([], "exclude")
        assert path_filter.accepts("navigation.speedOverGround")
        assert path_filter.accepts("environment.outside.temperature")

    def test_empty_include_accepts_nothing(self):
        """Test empty include accepts nothing."""
        path_filter = PathFilter([], "include")
        assert not path_filter.accepts("navigation.speedOverGround")
        assert not path_filter.accepts("environment.outside.temperature")

    def test_include_any_pattern(self):
        """Test include any pattern."""
        path_filter = PathFilter(["navigation.*", "environment.depth.*"], "include")
        assert path_filter.accepts("navigation.speedOverGround")
        assert path_filter.accepts("environment.depth.belowKeel")
        assert not path_filter.accepts("environment.outside.temperature")

    def test_exclude_every_pattern(self):
        """Test exclude every pattern."""
        path_filter = PathFilter(["navigation.*", "environment.depth.*"], "exclude")
        assert not path_filter.accepts("navigation.speedOverGround")
        assert not path_filter.accepts("environment.depth.belowKeel")
        assert path_filter.accepts("environment.outside.temperature")

    def test_default_mode_is_exclude(self):
        """Test default mode is exclude."""
        path_filter = PathFilter(["navigation.*"])
        assert path_filter.mode == "exclude"
        assert path_filter.accepts("environment.temp")

    def test_callable(self):
        """Test callable."""
        path_filter = PathFilter(["navigation.*"], "include")
        assert path_filter("navigation.speed")

    def test_unknown_mode_rejected(self):
        """Test unknown mode rejected."""
        with pytest.raises(ValueError):
            PathFilter([], "maybe")

    def test_empty_pattern_rejected(self):
        """Test empty pattern rejected."""
        with pytest.raises(ValueError):
            PathFilter(["navigation.*", ""], "include")

    def test_non_string_pattern_rejected(self):
        """Test non string pattern rejected."""
        with pytest.raises(ValueError):
            PathFilter([42], "include")

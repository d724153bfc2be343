"""Tests for prompt theming."""

import pytest

from modules.generation.prompts import DEFAULT_THEME, THEMES, build_themed_prompt


class TestBuildThemedPrompt:

    @pytest.mark.parametrize("style", sorted(THEMES))
    def test_every_theme_applies_its_direction(self, style):
        phrase, details = THEMES[style]
        prompt = build_themed_prompt("a waving frog", style)
        assert phrase in prompt
        assert details in prompt
        assert "a waving frog" in prompt

    def test_style_lookup_ignores_case_and_spaces(self):
        assert build_themed_prompt("x", " Pixel ") == build_themed_prompt("x", "pixel")

    def test_unknown_style_uses_default(self):
        prompt = build_themed_prompt("a frog", "baroque")
        assert DEFAULT_THEME[0] in prompt
        assert DEFAULT_THEME[1] in prompt

    def test_empty_style_uses_default(self):
        assert DEFAULT_THEME[0] in build_themed_prompt("a frog", "")

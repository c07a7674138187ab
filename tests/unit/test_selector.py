"""Tests for backend source selection."""

import pytest

from marinecompliance.pipeline.selector import SourceChoice, fallback_for, select_source


class TestSelectSource:
    def test_override_wins(self):
        choice = select_source("legacy", preference="enhanced", enhanced_available=True)
        assert choice == SourceChoice("legacy", "override")

    def test_override_enhanced_even_when_unavailable(self):
        assert select_source("enhanced", enhanced_available=False).type == "enhanced"

    def test_unknown_override(self):
        with pytest.raises(ValueError, match="Unknown API type"):
            select_source("beta")

    def test_preferred_enhanced_when_available(self):
        choice = select_source(preference="enhanced", enhanced_available=True)
        assert choice == SourceChoice("enhanced", "preferred")

    def test_enhanced_never_chosen_when_unavailable(self):
        choice = select_source(preference="enhanced", enhanced_available=False, last_successful="enhanced")
        assert choice == SourceChoice("legacy", "default")

    def test_last_success_keeps_enhanced(self):
        """A user preferring legacy stays on enhanced once it has worked."""
        choice = select_source(preference="legacy", enhanced_available=True, last_successful="enhanced")
        assert choice == SourceChoice("enhanced", "last_successful")

    def test_legacy_preference(self):
        choice = select_source(preference="legacy", enhanced_available=True, last_successful="legacy")
        assert choice.type == "legacy"

    def test_defaults_to_legacy(self):
        assert select_source().type == "legacy"


def test_fallback_for():
    assert fallback_for("enhanced") == "legacy"
    assert fallback_for("legacy") == "enhanced"

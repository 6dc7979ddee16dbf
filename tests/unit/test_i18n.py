"""Tests for translated error messages."""

import pytest

from app.core.i18n import EN, ES, LOCALES, get_message


@pytest.mark.unit
class TestGetMessage:
    def test_english(self) -> None:
        assert get_message("global_exception_forbidden", "en") == (
            "You don't have permission to do this."
        )

    def test_spanish(self) -> None:
        assert get_message("global_exception_forbidden", "es") == (
            "No tienes permiso para hacer esto."
        )

    def test_region_suffix_is_ignored(self) -> None:
        assert get_message("global_exception_notFound", "es-MX") == ES["global_exception_notFound"]

    def test_unknown_locale_falls_back_to_english(self) -> None:
        assert get_message("global_exception_notFound", "fr") == EN["global_exception_notFound"]


@pytest.mark.unit
def test_every_locale_defines_every_key() -> None:
    for locale, messages in LOCALES.items():
        assert set(messages) == set(EN), f"{locale} is missing keys"

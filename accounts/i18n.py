"""Message catalogs and Accept-Language resolution."""

import json
from functools import lru_cache
from pathlib import Path

DEFAULT_LOCALE = "en"
SUPPORTED_LOCALES = ("en", "tr")

LOCALES_DIR = Path(__file__).parent / "locales"


@lru_cache
def load_catalog(locale: str) -> dict[str, str]:
    """Load the JSON catalog for a supported locale."""
    with open(LOCALES_DIR / f"{locale}.json", encoding="utf-8") as f:
        return json.load(f)


def resolve_locale(accept_language: str | None) -> str:
    """Pick the first supported language from an Accept-Language header.

    Quality values are honoured; unknown or missing values fall back to English.
    """
    if not accept_language:
        return DEFAULT_LOCALE

    candidates: list[tuple[float, int, str]] = []
    for position, part in enumerate(accept_language.split(",")):
        tag, _, params = part.strip().partition(";")
        quality = 1.0
        params = params.strip()
        if params.startswith("q="):
            try:
                quality = float(params[2:])
            except ValueError:
                quality = 0.0
        primary = tag.strip().split("-")[0].lower()
        if primary:
            candidates.append((-quality, position, primary))

    for _, _, primary in sorted(candidates):
        if primary in SUPPORTED_LOCALES:
            return primary
    return DEFAULT_LOCALE


class Translator:
    """Looks up message keys for one locale."""

    def __init__(self, locale: str = DEFAULT_LOCALE) -> None:
        self.locale = locale if locale in SUPPORTED_LOCALES else DEFAULT_LOCALE
        self._messages = load_catalog(self.locale)

    def t(self, key: str) -> str:
        if key in self._messages:
            return self._messages[key]
        return load_catalog(DEFAULT_LOCALE).get(key, key)

    def translate_errors(self, errors: dict[str, str]) -> dict[str, str]:
        """Translate a field -> key mapping, keeping field order."""
        return {field: self.t(key) for field, key in errors.items()}

"""
Localization for sheet labels and notifications.

Translations are flat JSON files in cogs_knw/lang/<locale>.json keyed by
dotted strings (`KNW.Warfare.Commander.View`). A key with no translation
localizes to itself.
"""

from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Dict

log = logging.getLogger(__name__)

LANG_DIR = Path(__file__).parent / "lang"


class Localizer:
    def __init__(self, translations: Dict[str, str], locale: str = "en"):
        self.translations = translations
        self.locale = locale

    @classmethod
    def load(cls, locale: str = "en", lang_dir: Path = LANG_DIR) -> "Localizer":
        path = lang_dir / f"{locale}.json"
        if not path.exists():
            log.warning("No translations for locale %r, falling back to en", locale)
            path = lang_dir / "en.json"
            locale = "en"
        with open(path, "r", encoding="utf-8") as f:
            return cls(json.load(f), locale)

    def has(self, key: str) -> bool:
        return key in self.translations

    def localize(self, key: str) -> str:
        return self.translations.get(key, key)

    def format(self, key: str, **data) -> str:
        template = self.localize(key)
        try:
            return template.format(**data)
        except (KeyError, IndexError):
            log.warning("Missing format data for %s: %s", key, sorted(data))
            return template

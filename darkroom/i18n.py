"""Norwegian/English switching for elements carrying ``data-i18n-*`` labels."""

from __future__ import annotations

from typing import Iterable, MutableMapping

from darkroom.dom import Element

STORAGE_KEY = "site-lang"
LANGUAGES = ("nb", "en")
DEFAULT_LANGUAGE = "en"

# category -> (english, norwegian)
CATEGORY_LABELS = {
    "landscapes": ("Landscapes", "Landskap"),
    "astro": ("Astro", "Astro"),
    "wildlife": ("Wildlife", "Dyreliv"),
}


def category_i18n_attrs(category: str, toggle: bool = False) -> dict[str, str]:
    labels = CATEGORY_LABELS.get(category)
    if labels is None:
        return {}
    suffix = " ▼" if toggle else ""
    en, nb = labels
    return {"data-i18n-en": en + suffix, "data-i18n-nb": nb + suffix}


class Localizer:
    """Reads and persists the language preference in a local-storage-like mapping."""

    def __init__(self, storage: MutableMapping[str, str]):
        self.storage = storage

    @property
    def language(self) -> str:
        stored = self.storage.get(STORAGE_KEY)
        return stored if stored in LANGUAGES else DEFAULT_LANGUAGE

    def set_language(self, lang: str) -> str:
        if lang not in LANGUAGES:
            raise ValueError(f"unsupported language {lang!r}, expected one of {LANGUAGES}")
        self.storage[STORAGE_KEY] = lang
        return lang

    def apply(self, elements: Iterable[Element]) -> int:
        """Swap in the text for the current language; returns how many changed."""
        attr = f"data-i18n-{self.language}"
        changed = 0
        for root in elements:
            for el in root.iter():
                text = el.attrs.get(attr)
                if text is not None and el.text != text:
                    el.text = text
                    changed += 1
        return changed

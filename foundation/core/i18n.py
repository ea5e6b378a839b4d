from typing import Iterable, List, Optional, Tuple

from foundation.config import Settings
from foundation.core.exceptions import NoSupportedLocaleError


def _normalize(tag: str) -> str:
    return tag.strip().replace("_", "-").lower()


def _primary(tag: str) -> str:
    return _normalize(tag).split("-", 1)[0]


def parse_accept_language(header: Optional[str]) -> List[Tuple[str, float]]:
    """
    Parse an ``Accept-Language`` header into ``(tag, quality)`` pairs,
    best first. Entries with an invalid or zero quality are dropped.
    """
    if not header:
        return []

    entries = []
    for position, part in enumerate(header.split(",")):
        pieces = part.strip().split(";")
        tag = pieces[0].strip()
        if not tag:
            continue

        quality = 1.0
        for param in pieces[1:]:
            name, _, value = param.strip().partition("=")
            if name.strip().lower() == "q":
                try:
                    quality = float(value)
                except ValueError:
                    quality = 0.0

        if quality > 0:
            entries.append((tag, quality, position))

    entries.sort(key=lambda entry: (-entry[1], entry[2]))
    return [(tag, quality) for tag, quality, _ in entries]


class Locales:
    """The locales supported by the application"""

    def __init__(self, supported: Iterable[str]):
        self.supported = [locale.strip() for locale in supported if locale and locale.strip()]
        if not self.supported:
            raise NoSupportedLocaleError()

    @property
    def default(self) -> str:
        return self.supported[0]

    def is_supported(self, locale: str) -> bool:
        wanted = _normalize(locale)
        return any(_normalize(candidate) == wanted for candidate in self.supported)

    def negotiate(self, accept_language: Optional[str]) -> str:
        """
        Pick the supported locale that best matches the client's preferences.

        Exact tags win over primary-language matches (``de-AT`` accepting
        ``de``); with no match the default locale is returned.
        """
        for tag, _ in parse_accept_language(accept_language):
            if tag == "*":
                return self.default

            wanted = _normalize(tag)
            for candidate in self.supported:
                if _normalize(candidate) == wanted:
                    return candidate

            wanted_primary = _primary(tag)
            for candidate in self.supported:
                if _primary(candidate) == wanted_primary:
                    return candidate

        return self.default


def build_locales(settings: Settings) -> Locales:
    return Locales(settings.LOCALES)

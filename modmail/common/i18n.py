import logging
from typing import Dict, Optional

from babel.core import LOCALE_ALIASES
from redbot.core.i18n import Translator as RedTranslator
from redbot.core.i18n import get_locale, set_contextual_locale

from .constants import DEFAULT_LOCALE
from .messages import MESSAGES

log = logging.getLogger("red.modmail.i18n")
_ = RedTranslator("Modmail", __file__)


def red_locale(locale: Optional[str]) -> str:
    """Discord sends bare language codes for some locales (``fr``), Red catalogs are ``fr-FR``."""
    if not locale:
        return DEFAULT_LOCALE
    if "-" in locale:
        return locale
    alias = LOCALE_ALIASES.get(locale.lower())
    return alias.replace("_", "-") if alias else locale


class Translator:
    """Key based lookup over Red's translator.

    Each call switches Red's contextual locale to the requester's for the lookup and
    restores it afterwards. Strings missing from a catalog come back in English, unknown
    keys come back as the key itself.
    """

    def __init__(self, messages: Dict[str, str] = MESSAGES):
        self.messages = messages

    def t(self, key: str, locale: Optional[str] = None, **params) -> str:
        source = self.messages.get(key)
        if source is None:
            log.debug(f"Missing translation for '{key}'")
            text = key
        else:
            previous = get_locale()
            set_contextual_locale(red_locale(locale))
            try:
                text = _(source)
            finally:
                set_contextual_locale(previous)
        if params:
            text = text.format_map(params)
        return text

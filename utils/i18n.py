"""Lightweight JSON-based internationalization utility."""
from __future__ import annotations

import json
import os
from functools import lru_cache
from typing import Dict

from flask import request, g


_LOCALE_COOKIE = "ward_locale"

LANGUAGE_NATIVE_NAMES = {
    "en": "English",
    "hi": "हिंदी",
    "kn": "ಕನ್ನಡ",
}

# Day-first, as in the en-IN, hi-IN and kn-IN locales.
DATE_FORMAT = "%d/%m/%Y"


def _translations_dir() -> str:
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "translations"))


@lru_cache(maxsize=8)
def _load(lang: str) -> Dict[str, str]:
    path = os.path.join(_translations_dir(), f"{lang}.json")
    if not os.path.isfile(path):
        return {}
    with open(path, "r", encoding="utf-8") as handle:
        try:
            return json.load(handle)
        except json.JSONDecodeError:
            return {}


def translate(key: str, lang: str | None = None, default: str | None = None) -> str:
    locale = (lang or getattr(g, "locale", None) or "en").lower()
    bundle = _load(locale)
    if key in bundle:
        return bundle[key]
    if locale != "en":
        base = _load("en")
        if key in base:
            return base[key]
    return default or key


def supported_languages(app_config) -> list[str]:
    langs = (app_config.get("SUPPORTED_LANGUAGES") or "en,hi,kn").split(",")
    return [l.strip().lower() for l in langs if l.strip()]


def select_locale(app_config) -> str:
    langs = supported_languages(app_config)
    for requested in (request.args.get("lang"), request.cookies.get(_LOCALE_COOKIE)):
        if requested and requested.lower() in langs:
            return requested.lower()
    return langs[0] if langs else "en"


def format_date(value) -> str:
    if not value:
        return ""
    return value.strftime(DATE_FORMAT)


def inject_i18n(app):
    @app.before_request
    def _set_locale():
        g.locale = select_locale(app.config)

    @app.context_processor
    def _ctx():
        locale = getattr(g, "locale", None) or "en"
        return {
            "_": lambda key, default=None: translate(key, locale, default),
            "current_locale": locale,
            "language_names": LANGUAGE_NATIVE_NAMES,
            "format_date": format_date,
        }

    @app.after_request
    def _persist(response):
        lang = getattr(g, "locale", None) or "en"
        response.set_cookie(_LOCALE_COOKIE, lang, max_age=60 * 60 * 24 * 365, samesite="Lax", secure=app.config.get("SESSION_COOKIE_SECURE", True))
        return response

    return app

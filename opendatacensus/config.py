"""
@file config.py
@description
Immutable configuration for the census application. The value is built once at
boot and handed to `create_app`; nothing in request handling reads settings
from a global.

Responsibilities:
- Read the JSON settings file and merge environment secrets (.env aware).
- Resolve locale-aware display strings, falling back to "" when missing.
- Classify the contribute page as present, absent or still the placeholder.

External Dependencies:
- python-dotenv (loads SESSION_SECRET and Google OAuth credentials)
- json (Python standard library)
"""

import enum
import json
import os
from dataclasses import dataclass, field
from types import MappingProxyType

from dotenv import load_dotenv

CONTRIBUTE_PLACEHOLDER = "<h1>To set content for this page update your configuration file</h1>"

DEFAULT_SETTINGS_FILE = "settings.json"

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))

# Keys whose values may be a plain string or a {locale: string} mapping
DISPLAY_KEYS = (
    "title",
    "title_short",
    "custom_css",
    "google_analytics_key",
    "custom_footer",
    "navbar_logo",
    "banner_text",
    "post_submission_info",
    "share_submission_template",
    "share_page_template",
    "about_page",
    "faq_page",
    "contribute_page",
)


class ConfigError(ValueError):
    """Raised when the settings cannot produce a usable configuration."""


class ContributePage(enum.Enum):
    PRESENT = "present"
    ABSENT = "absent"
    PLACEHOLDER = "placeholder"

    @classmethod
    def classify(cls, value):
        if value is None or value == "" or value == {}:
            return cls.ABSENT
        if value == CONTRIBUTE_PLACEHOLDER:
            return cls.PLACEHOLDER
        if isinstance(value, dict) and all(v == CONTRIBUTE_PLACEHOLDER for v in value.values()):
            return cls.PLACEHOLDER
        return cls.PRESENT


@dataclass(frozen=True)
class Config:
    readonly: bool = False
    auth_on: bool = False
    auth_user: str = ""
    auth_passhash: str = ""
    testing: bool = False
    test_user: dict = None
    port: int = 5000
    log_level: str = "INFO"
    cache_max_age: int = 1800
    static_max_age: int = 3600
    locales: tuple = ("en",)
    default_locale: str = "en"
    display: MappingProxyType = field(default_factory=lambda: MappingProxyType({}))
    data_path: str = os.path.join(PACKAGE_DIR, "seed", "census.json")
    submissions_path: str = "submissions.json"
    reviewers: tuple = ()
    session_secret: str = "dummysecret"
    google_client_id: str = ""
    google_client_secret: str = ""

    def localized(self, key, locale=None):
        """
        Look up a display value for a locale.

        Args:
            key (str): Display key such as "title" or "banner_text".
            locale (str): Locale code; falls back to the default locale.

        Returns:
            str: The resolved string, or "" when nothing is configured.
        """
        value = self.display.get(key)
        if value is None:
            return ""
        if isinstance(value, dict):
            if locale in value:
                return value[locale]
            return value.get(self.default_locale, "")
        return value

    @property
    def contribute_page_state(self):
        return ContributePage.classify(self.display.get("contribute_page"))

    @property
    def has_contribute_page(self):
        return self.contribute_page_state is ContributePage.PRESENT


def _read_settings(path):
    if not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as settings_file:
        try:
            raw = json.load(settings_file)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"{path} must hold a JSON object")
    return raw


def _flatten(raw):
    # "appconfig" groups deployment flags, "test" groups the testing hook
    settings = dict(raw)
    settings.update(settings.pop("appconfig", None) or {})
    test = settings.pop("test", None) or {}
    if "testing" in test:
        settings["testing"] = test["testing"]
    if "user" in test:
        settings["test_user"] = test["user"]
    return settings


def _build(settings):
    display = {key: settings.pop(key) for key in DISPLAY_KEYS if key in settings}
    known = {name for name in Config.__dataclass_fields__ if name != "display"}
    values = {key: value for key, value in settings.items() if key in known}

    try:
        for key in ("cache_max_age", "static_max_age", "port"):
            if key in values:
                values[key] = int(values[key])
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid integer setting: {exc}") from exc

    for key in ("locales", "reviewers"):
        if key in values:
            values[key] = tuple(values[key])
    if "locales" in values and "default_locale" not in values and values["locales"]:
        values["default_locale"] = values["locales"][0]

    config = Config(display=MappingProxyType(display), **values)
    if config.auth_on and not (config.auth_user and config.auth_passhash):
        raise ConfigError("auth_on requires auth_user and auth_passhash")
    return config


def load_config(path=None, overrides=None):
    """
    Build the application configuration.

    Args:
        path (str): Settings file; defaults to $CENSUS_SETTINGS or settings.json.
        overrides (dict): Values applied on top of the file (same key layout).

    Returns:
        Config: The frozen configuration.
    """
    load_dotenv()
    path = path or os.environ.get("CENSUS_SETTINGS", DEFAULT_SETTINGS_FILE)
    settings = _flatten(_read_settings(path))
    settings.update(_flatten(overrides or {}))

    for env_key, setting in (
        ("SESSION_SECRET", "session_secret"),
        ("GOOGLE_CLIENT_ID", "google_client_id"),
        ("GOOGLE_CLIENT_SECRET", "google_client_secret"),
    ):
        if os.environ.get(env_key) and setting not in (overrides or {}):
            settings[setting] = os.environ[env_key]

    return _build(settings)

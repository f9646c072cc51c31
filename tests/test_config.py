import json

import pytest

from opendatacensus.config import CONTRIBUTE_PLACEHOLDER, ConfigError, ContributePage, load_config


def test_defaults_without_settings_file(tmp_path):
    config = load_config(path=str(tmp_path / "nope.json"))
    assert config.readonly is False
    assert config.auth_on is False
    assert config.cache_max_age == 1800
    assert config.locales == ("en",)


def test_appconfig_and_test_sections_are_flattened(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({
        "appconfig": {"readonly": True, "port": "8080"},
        "test": {"testing": True, "user": {"id": "tester", "name": "Tester"}},
    }))
    config = load_config(path=str(path))
    assert config.readonly is True
    assert config.port == 8080
    assert config.testing is True
    assert config.test_user["id"] == "tester"


def test_invalid_json_raises_config_error(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json")
    with pytest.raises(ConfigError):
        load_config(path=str(path))


def test_auth_on_requires_credentials(tmp_path):
    with pytest.raises(ConfigError):
        load_config(path=str(tmp_path / "nope.json"), overrides={"auth_on": True})


def test_bad_cache_max_age(tmp_path):
    with pytest.raises(ConfigError):
        load_config(path=str(tmp_path / "nope.json"), overrides={"cache_max_age": "soon"})


def test_localized_values_fall_back(make_config):
    config = make_config(banner_text="Hello", custom_footer={"en": "Footer", "fr": "Pied"})
    assert config.localized("title", "fr") == "Recensement"
    assert config.localized("title", "xx") == "Open Data Census"
    assert config.localized("banner_text", "fr") == "Hello"
    assert config.localized("custom_footer", "de") == "Footer"
    assert config.localized("navbar_logo", "en") == ""


@pytest.mark.parametrize("value, state", [
    (None, ContributePage.ABSENT),
    ("", ContributePage.ABSENT),
    (CONTRIBUTE_PLACEHOLDER, ContributePage.PLACEHOLDER),
    ({"en": CONTRIBUTE_PLACEHOLDER}, ContributePage.PLACEHOLDER),
    ("<p>Help us</p>", ContributePage.PRESENT),
])
def test_contribute_page_states(make_config, value, state):
    overrides = {} if value is None else {"contribute_page": value}
    config = make_config(**overrides)
    assert config.contribute_page_state is state
    assert config.has_contribute_page is (state is ContributePage.PRESENT)


def test_config_is_frozen(make_config):
    config = make_config()
    with pytest.raises(AttributeError):
        config.readonly = True

import logging

import pytest

from terrain_generator import config, resolve_settings


def test_defaults():
    settings = resolve_settings()
    assert settings["seed"] == config.DEFAULT_SEED
    assert settings["noise_scale"] == 100.0
    assert settings["octaves"] == 6
    assert settings["persistence"] == 0.65
    assert settings["lacunarity"] == 2.5
    assert settings["height_multiplier"] == 250.0
    assert settings["chunk_size"] == 200.0
    assert settings["chunk_resolution"] == 64
    assert settings["view_distance"] == 6
    assert settings["cache_capacity"] == 20
    assert dict(settings["terrain_levels"]) == {"water": 0.18, "plain": 0.25, "hill": 0.45, "mountain": 0.65}


def test_user_values_override_defaults():
    settings = resolve_settings({"seed": "77", "octaves": 3.0, "view_distance": 2})
    assert settings["seed"] == 77
    assert settings["octaves"] == 3
    assert settings["view_distance"] == 2
    assert settings["chunk_size"] == config.CHUNK_SIZE


def test_partial_terrain_levels_are_merged():
    settings = resolve_settings({"terrain_levels": {"water": 0.1}})
    assert settings["terrain_levels"]["water"] == 0.1
    assert settings["terrain_levels"]["mountain"] == 0.65


def test_settings_are_read_only():
    settings = resolve_settings()
    with pytest.raises(TypeError):
        settings["seed"] = 1
    with pytest.raises(TypeError):
        settings["terrain_levels"]["water"] = 0.5


def test_resolving_twice_is_stable():
    once = resolve_settings({"seed": 9, "cache_policy": "clear"})
    twice = resolve_settings(once)
    assert {k: v for k, v in twice.items() if k != "terrain_levels"} == \
        {k: v for k, v in once.items() if k != "terrain_levels"}
    assert dict(twice["terrain_levels"]) == dict(once["terrain_levels"])


def test_unknown_keys_are_logged_and_ignored(caplog):
    with caplog.at_level(logging.WARNING):
        settings = resolve_settings({"sea_level": 0.3})
    assert "sea_level" not in settings
    assert "sea_level" in caplog.text


@pytest.mark.parametrize("key, value", [
    ("noise_scale", 0),
    ("octaves", 0),
    ("chunk_size", -1.0),
    ("chunk_resolution", 1),
    ("view_distance", -1),
    ("hysteresis_margin", -2),
    ("cache_capacity", 0),
    ("cache_policy", "random"),
    ("max_workers", 0),
    ("terrain_levels", {"plain": 0.1}),
])
def test_invalid_values_raise(key, value):
    with pytest.raises(ValueError, match=key):
        resolve_settings({key: value})


def test_unknown_terrain_levels_are_logged_and_ignored(caplog):
    with caplog.at_level(logging.WARNING):
        settings = resolve_settings({"terrain_levels": {"sand": 0.2, "water": 0.1}})
    assert "sand" not in settings["terrain_levels"]
    assert settings["terrain_levels"]["water"] == 0.1
    assert "sand" in caplog.text

import pytest
from pydantic import ValidationError

from app.models.app_config import AppConfig
from app.schemas.config import DEFAULT_MILESTONE_OPTIONS
from app.services.config_store import UnknownConfigKey, get_tracker_config, set_config_value


def test_defaults_when_nothing_is_stored(db):
    config = get_tracker_config(db)
    assert config.milestone_options == DEFAULT_MILESTONE_OPTIONS
    assert config.row_colors.planned == "#fbdd2b"
    assert config.category_colors.support == "#f97316"
    assert config.category_opacity.dev == 1.0


def test_stored_value_overrides_one_key(db):
    set_config_value(db, "category_colors", {"dev": "#000000"})
    db.commit()

    config = get_tracker_config(db)
    assert config.category_colors.dev == "#000000"
    assert config.category_colors.test == "#3b82f6"
    assert config.milestone_options == DEFAULT_MILESTONE_OPTIONS
    assert db.query(AppConfig).count() == 1


def test_invalid_values_are_rejected(db):
    with pytest.raises(UnknownConfigKey):
        set_config_value(db, "theme", "dark")
    with pytest.raises(ValidationError):
        set_config_value(db, "category_opacity", {"dev": 2})


def test_corrupt_stored_value_falls_back_to_default(db):
    db.add(AppConfig(config_key="row_colors", config_value="not-an-object"))
    db.commit()
    assert get_tracker_config(db).row_colors.actual == "#1f3cd1"

from ordering.utils import feature_flags


def test_flags_default_to_enabled(monkeypatch):
    monkeypatch.delenv("PUSH_NOTIFICATIONS_ENABLED", raising=False)
    feature_flags.refresh_feature_flag_cache()
    flags = feature_flags.get_feature_flags()
    assert flags == {
        "push_notifications_enabled": True,
        "loyalty_points_enabled": True,
        "promotions_enabled": True,
    }


def test_flags_read_falsy_values(monkeypatch):
    monkeypatch.setenv("PROMOTIONS_ENABLED", "off")
    monkeypatch.setenv("LOYALTY_POINTS_ENABLED", "0")
    feature_flags.refresh_feature_flag_cache()
    assert not feature_flags.promotions_enabled()
    assert not feature_flags.loyalty_points_enabled()


def test_unknown_value_keeps_default(monkeypatch):
    monkeypatch.setenv("PROMOTIONS_ENABLED", "maybe")
    feature_flags.refresh_feature_flag_cache()
    assert feature_flags.promotions_enabled()


def test_values_are_cached_until_refresh(monkeypatch):
    monkeypatch.setenv("LOYALTY_POINTS_ENABLED", "true")
    feature_flags.refresh_feature_flag_cache()
    assert feature_flags.loyalty_points_enabled()
    monkeypatch.setenv("LOYALTY_POINTS_ENABLED", "false")
    assert feature_flags.loyalty_points_enabled()
    feature_flags.refresh_feature_flag_cache()
    assert not feature_flags.loyalty_points_enabled()

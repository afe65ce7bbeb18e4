from riskplan.config import get_settings


def test_defaults(monkeypatch):
    get_settings.cache_clear()
    for name in ("RISKPLAN_ORB_MINUTES", "ORB_MINUTES", "RISKPLAN_DTE_PRESET", "DTE_THRESHOLD_PRESET"):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.orb_minutes == 15
    assert settings.dte_threshold_preset == "default"
    assert settings.recompute_move_pct == 0.5
    assert settings.recompute_move_pct_0dte == 0.2
    get_settings.cache_clear()


def test_prefixed_and_bare_env_names(monkeypatch):
    get_settings.cache_clear()
    monkeypatch.setenv("RISKPLAN_ORB_MINUTES", "30")
    monkeypatch.setenv("BOLLINGER_K", "2.5")

    settings = get_settings()

    assert settings.orb_minutes == 30
    assert settings.bollinger_k == 2.5
    get_settings.cache_clear()


def test_preset_and_log_level_are_normalised(monkeypatch):
    get_settings.cache_clear()
    monkeypatch.setenv("DTE_THRESHOLD_PRESET", " Legacy ")
    monkeypatch.setenv("RISKPLAN_LOG_LEVEL", "debug")

    settings = get_settings()

    assert settings.dte_threshold_preset == "legacy"
    assert settings.log_level == "DEBUG"
    get_settings.cache_clear()


def test_settings_are_memoised_until_cache_clear(monkeypatch):
    get_settings.cache_clear()
    first = get_settings()
    monkeypatch.setenv("RISKPLAN_ORB_MINUTES", "5")

    assert get_settings() is first
    assert get_settings().orb_minutes == 15

    get_settings.cache_clear()
    assert get_settings().orb_minutes == 5
    get_settings.cache_clear()

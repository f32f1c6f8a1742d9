import json

from config import DEFAULT_CONFIG, AuditSettings, load_config, load_config_from_env


def test_missing_file_is_created_with_defaults(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("USE_ENV_CONFIG", raising=False)
    config_file = tmp_path / "config.json"

    config = load_config(str(config_file))

    assert config == DEFAULT_CONFIG
    assert json.loads(config_file.read_text()) == DEFAULT_CONFIG


def test_file_values_are_merged_with_defaults(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("USE_ENV_CONFIG", raising=False)
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps({"ENABLE_ORCA": False, "MIN_LIQUIDITY_SOL": 8}))

    config = load_config(str(config_file))

    assert config["ENABLE_ORCA"] is False
    assert config["MIN_LIQUIDITY_SOL"] == 8
    assert config["RECONNECT_DELAY_SECONDS"] == DEFAULT_CONFIG["RECONNECT_DELAY_SECONDS"]


def test_unreadable_file_falls_back_to_defaults(tmp_path, monkeypatch) -> None:
    monkeypatch.delenv("USE_ENV_CONFIG", raising=False)
    config_file = tmp_path / "config.json"
    config_file.write_text("{not json")

    assert load_config(str(config_file)) == DEFAULT_CONFIG


def test_environment_values_are_coerced(monkeypatch) -> None:
    monkeypatch.setenv("AUTO_AUDIT", "false")
    monkeypatch.setenv("MIN_HOLDER_COUNT", "25")
    monkeypatch.setenv("MAX_CREATOR_PERCENT", "12.5")
    monkeypatch.setenv("PUMPFUN_TOKEN_KEYS", "MintA, MintB,")
    monkeypatch.setenv("STATS_INTERVAL_SECONDS", "soon")

    config = load_config_from_env()

    assert config["AUTO_AUDIT"] is False
    assert config["MIN_HOLDER_COUNT"] == 25
    assert config["MAX_CREATOR_PERCENT"] == 12.5
    assert config["PUMPFUN_TOKEN_KEYS"] == ["MintA", "MintB"]
    assert config["STATS_INTERVAL_SECONDS"] == DEFAULT_CONFIG["STATS_INTERVAL_SECONDS"]


def test_use_env_config_switch(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("USE_ENV_CONFIG", "true")
    monkeypatch.setenv("ENABLE_RAYDIUM", "false")

    config = load_config(str(tmp_path / "absent.json"))

    assert config["ENABLE_RAYDIUM"] is False
    assert not (tmp_path / "absent.json").exists()


def test_audit_settings_from_config() -> None:
    settings = AuditSettings.from_config(dict(DEFAULT_CONFIG, AUDIT_HONEYPOT_CHECK=False, MIN_LIQUIDITY_SOL=7))

    assert settings.honeypot_check is False
    assert settings.min_liquidity == 7.0
    assert settings.max_top_holder_percent == 20.0
    assert settings.min_holder_count == 10
    assert settings.max_creator_percent == 10.0
    assert settings.cache_ttl_seconds == 300.0

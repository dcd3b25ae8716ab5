import pytest

from dframework.services.config_svc import load_settings, masked


def test_defaults_without_config(tmp_path):
    s = load_settings(str(tmp_path / "missing.yaml"), environ={})
    assert s.max_batch_size == 1500
    assert s.token_key == "token"
    assert s.api_token == ""


def test_yaml_then_env_override(tmp_path):
    cfg = tmp_path / "config.yaml"
    cfg.write_text("max_batch_size: 200\napi_token: from-yaml\nsecret_key: k\n", encoding="utf-8")
    s = load_settings(str(cfg), environ={"DFRAMEWORK_API_TOKEN": "from-env"})
    assert s.max_batch_size == 200
    assert s.api_token == "from-env"
    assert masked(s)["api_token"] == "***masked***"
    assert masked(s)["secret_key"] == "***masked***"


def test_bad_batch_size(tmp_path):
    with pytest.raises(ValueError):
        load_settings(str(tmp_path / "none.yaml"), environ={"DFRAMEWORK_MAX_BATCH_SIZE": "zero"})
    with pytest.raises(ValueError):
        load_settings(str(tmp_path / "none.yaml"), environ={"DFRAMEWORK_MAX_BATCH_SIZE": "0"})

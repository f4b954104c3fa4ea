import json
import logging

import pytest
from pydantic import ValidationError as PydanticValidationError

from chat_adapter.config.settings import AdapterSettings
from chat_adapter.infrastructure.logging.logger import JsonFormatter


def test_yaml_config_file(monkeypatch, tmp_path):
    cfg = tmp_path / "adapter.yaml"
    cfg.write_text("http_timeout: 12\nvision_models:\n  - my-vl-model\n", encoding="utf-8")
    monkeypatch.setenv("ADAPTER_CONFIG_FILE", str(cfg))
    monkeypatch.delenv("HTTP_TIMEOUT", raising=False)
    monkeypatch.delenv("VISION_MODELS", raising=False)
    s = AdapterSettings()
    assert s.http_timeout == 12
    assert s.vision_models == ["my-vl-model"]


def test_env_overrides_yaml(monkeypatch, tmp_path):
    cfg = tmp_path / "adapter.yaml"
    cfg.write_text("http_timeout: 12\n", encoding="utf-8")
    monkeypatch.setenv("ADAPTER_CONFIG_FILE", str(cfg))
    monkeypatch.setenv("HTTP_TIMEOUT", "45")
    assert AdapterSettings().http_timeout == 45


def test_short_api_key_rejected():
    with pytest.raises(PydanticValidationError):
        AdapterSettings(openai_api_key="short")


def test_json_formatter_includes_extra():
    record = logging.LogRecord("chat_adapter", logging.WARNING, __file__, 1, "cannot parse %s", ("line",), None)
    record.extra = {"provider": "openai"}
    payload = json.loads(JsonFormatter().format(record))
    assert payload["level"] == "WARNING"
    assert payload["msg"] == "cannot parse line"
    assert payload["provider"] == "openai"
    assert payload["ts"].endswith("Z")

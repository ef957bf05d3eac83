import dataclasses

import pytest

from servedby.config import DEFAULT_LISTEN, Settings, load_settings
from servedby.errors import ConfigError


def test_defaults_with_empty_env():
    s = load_settings(text="hi", env={})
    assert s.text == "hi"
    assert s.listen == DEFAULT_LISTEN == ":5678"
    assert s.lookup_timeout_secs == 2.0
    assert s.metadata_host == "169.254.169.254"
    assert s.consul_addr == "http://127.0.0.1:8500"
    assert s.nomad_addr == "http://127.0.0.1:4646"
    assert s.consul_verify is True
    assert s.nomad_verify is True
    assert s.metrics_enabled is False


def test_text_is_required():
    with pytest.raises(ConfigError, match="Missing -text option!"):
        load_settings(text="", env={})


def test_agent_env_overrides():
    env = {
        "CONSUL_HTTP_ADDR": "consul.service:8501",
        "CONSUL_HTTP_SSL": "true",
        "CONSUL_HTTP_TOKEN": "ctok",
        "CONSUL_HTTP_SSL_VERIFY": "false",
        "NOMAD_ADDR": "https://nomad.local:4646/",
        "NOMAD_TOKEN": "ntok",
        "NOMAD_REGION": "eu",
        "NOMAD_SKIP_VERIFY": "1",
        "GCE_METADATA_HOST": "metadata.google.internal",
        "SERVEDBY_LOOKUP_TIMEOUT_SECS": "0.5",
        "SERVEDBY_METRICS": "1",
        "LOG_LEVEL": "debug",
    }
    s = load_settings(listen="127.0.0.1:9000", text="hi", env=env)
    assert s.listen == "127.0.0.1:9000"
    assert s.consul_addr == "https://consul.service:8501"
    assert s.consul_token == "ctok"
    assert s.consul_verify is False
    assert s.nomad_addr == "https://nomad.local:4646"
    assert s.nomad_token == "ntok"
    assert s.nomad_region == "eu"
    assert s.nomad_verify is False
    assert s.metadata_host == "metadata.google.internal"
    assert s.lookup_timeout_secs == 0.5
    assert s.metrics_enabled is True
    assert s.log_level == "DEBUG"


def test_consul_addr_with_scheme_is_kept():
    s = load_settings(text="hi", env={"CONSUL_HTTP_ADDR": "http://10.0.0.1:8500/"})
    assert s.consul_addr == "http://10.0.0.1:8500"


@pytest.mark.parametrize("raw", ["abc", "0", "-1"])
def test_bad_timeout(raw):
    with pytest.raises(ConfigError, match="SERVEDBY_LOOKUP_TIMEOUT_SECS"):
        load_settings(text="hi", env={"SERVEDBY_LOOKUP_TIMEOUT_SECS": raw})


def test_settings_are_frozen():
    s = Settings(text="hi")
    with pytest.raises(dataclasses.FrozenInstanceError):
        s.text = "other"

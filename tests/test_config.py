"""Machine file loading."""

import pytest

from bmc_rpc.core.config import BmcConfig, ConfigurationError, load_config

VALID = """
username: admin
password: hunter2
api_endpoint: https://unifi.test:8443/
machines:
  node1:
    mac_address: "aa:bb:cc:dd:ee:ff"
    port_idx: 2
  node2:
    mac_address: "aa:bb:cc:dd:ee:ff"
    port_idx: "5"
"""


def write(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text)
    return path


def test_load_valid(tmp_path):
    cfg = load_config(write(tmp_path, VALID))
    assert cfg.api_endpoint == "https://unifi.test:8443"
    assert cfg.insecure is True
    assert cfg.site is None
    assert cfg.machine("node1").port_idx == "2"
    assert cfg.machine("node2").port_idx == "5"
    assert cfg.machine("node3") is None


def test_password_not_in_repr(tmp_path):
    cfg = load_config(write(tmp_path, VALID))
    assert "hunter2" not in repr(cfg)


def test_empty_machines(tmp_path):
    cfg = load_config(write(tmp_path, "username: a\npassword: b\napi_endpoint: https://x\nmachines:\n"))
    assert cfg.machines == {}


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="cannot read"):
        load_config(tmp_path / "nope.yaml")


def test_invalid_yaml(tmp_path):
    with pytest.raises(ConfigurationError, match="invalid YAML"):
        load_config(write(tmp_path, "machines: [unclosed"))


def test_not_a_mapping(tmp_path):
    with pytest.raises(ConfigurationError, match="mapping"):
        load_config(write(tmp_path, "- just\n- a list\n"))


def test_missing_credentials(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config(write(tmp_path, "api_endpoint: https://x\n"))


def test_boolean_port_rejected():
    with pytest.raises(ValueError):
        BmcConfig.model_validate({
            "username": "a", "password": "b", "api_endpoint": "https://x",
            "machines": {"n": {"mac_address": "aa", "port_idx": True}},
        })

"""Shared fixtures: an in-memory controller and a wired-up test client."""

import copy

import pytest
from fastapi.testclient import TestClient

from bmc_rpc.core.config import BmcConfig
from bmc_rpc.dependencies import get_bmc_config, get_translator
from bmc_rpc.exceptions.power import DeviceNotFoundException, UpstreamException
from bmc_rpc.main import app
from bmc_rpc.models.power import Device
from bmc_rpc.services.port_state import PortStateTranslator

SWITCH_MAC = "aa:bb:cc:dd:ee:ff"


def make_switch(modes):
    """Controller-shaped switch record with one port override per mode."""
    return {
        "_id": "5f0c0ffee",
        "mac": SWITCH_MAC,
        "name": "rack-switch",
        "model": "USW-Pro-24-PoE",
        "port_overrides": [
            {"port_idx": idx, "poe_mode": mode, "portconf_id": f"conf-{idx}"}
            for idx, mode in modes.items()
        ],
    }


class FakeUnifiClient:
    """Stands in for UnifiClient; keeps devices as raw controller dicts."""

    def __init__(self, devices=None):
        self.devices = {d["mac"]: d for d in (devices or [])}
        self.lookups = []
        self.updates = []
        self.fail_update = False
        self.fail_lookup = False

    async def get_device_by_mac(self, site, mac):
        self.lookups.append((site, mac.lower()))
        if self.fail_lookup:
            raise UpstreamException("GET /api/s/default/stat/device: HTTP 502: bad gateway", status=502)
        raw = self.devices.get(mac.lower())
        if raw is None:
            raise DeviceNotFoundException(mac.lower())
        return Device.model_validate(copy.deepcopy(raw))

    async def update_device(self, site, device):
        if self.fail_update:
            raise UpstreamException("PUT /api/s/default/rest/device: HTTP 500: api.err.Invalid", status=500)
        payload = device.to_payload()
        self.updates.append((site, payload))
        self.devices[payload["mac"]] = payload
        return Device.model_validate(payload)

    def mode_of(self, port_idx):
        for port in self.devices[SWITCH_MAC]["port_overrides"]:
            if port["port_idx"] == port_idx:
                return port["poe_mode"]
        return None


@pytest.fixture
def unifi():
    return FakeUnifiClient([make_switch({1: "auto", 2: "off", 3: "pasv24"})])


@pytest.fixture
def translator(unifi):
    return PortStateTranslator(unifi, "default")


@pytest.fixture
def bmc_config():
    return BmcConfig.model_validate({
        "username": "admin",
        "password": "hunter2",
        "api_endpoint": "https://unifi.test:8443",
        "machines": {
            "node1": {"mac_address": SWITCH_MAC, "port_idx": 1},
            "node2": {"mac_address": SWITCH_MAC, "port_idx": "2"},
            "node3": {"mac_address": SWITCH_MAC, "port_idx": 3},
            "ghost": {"mac_address": SWITCH_MAC, "port_idx": 9},
            "typo": {"mac_address": SWITCH_MAC, "port_idx": "two"},
            "orphan": {"mac_address": "11:22:33:44:55:66", "port_idx": 1},
        },
    })


@pytest.fixture
def client(bmc_config, translator):
    app.dependency_overrides[get_bmc_config] = lambda: bmc_config
    app.dependency_overrides[get_translator] = lambda: translator
    yield TestClient(app)
    app.dependency_overrides.clear()

import logging
import re
from typing import Optional, Tuple

from bmc_rpc.exceptions.power import (
    InvalidPortIndexException,
    PortNotFoundException,
    UpstreamException,
)
from bmc_rpc.models.power import POE_MODE_AUTO, POE_MODE_OFF, Device, PortOverride, PowerState
from bmc_rpc.services.unifi_client import UnifiClient

log = logging.getLogger("bmc_rpc.port_state")

_PORT_IDX_RE = re.compile(r"[+-]?[0-9]+")

# desired power state -> PoE mode
_STATE_TO_MODE = {
    "on": POE_MODE_AUTO,
    "off": POE_MODE_OFF,
}

def mode_to_power(mode: Optional[str]) -> PowerState:
    if mode == POE_MODE_AUTO:
        return "on"
    if mode == POE_MODE_OFF:
        return "off"
    return ""

def parse_port_idx(port_idx) -> int:
    if isinstance(port_idx, bool):
        raise InvalidPortIndexException(str(port_idx), "not an integer")
    if isinstance(port_idx, int):
        return port_idx
    # ASCII digits only: no padding, underscores or other scripts
    text = str(port_idx)
    if not _PORT_IDX_RE.fullmatch(text):
        raise InvalidPortIndexException(text, "invalid syntax")
    return int(text)


class PortStateTranslator:
    """
    Maps a machine (switch MAC + port index) to the PoE mode of that port.

    Public API:
      get_power(), set_power(), query_status()
    """

    def __init__(self, client: UnifiClient, site: str = "default"):
        self._client = client
        self._site = site

    async def _get_port(self, mac_address: str, port_idx) -> Tuple[Device, PortOverride]:
        idx = parse_port_idx(port_idx)

        try:
            dev = await self._client.get_device_by_mac(self._site, mac_address)
        except UpstreamException as e:
            raise UpstreamException(
                f"error getting device by MAC Address {mac_address}: {e.message}",
                context={"mac_address": mac_address, **e.context},
            ) from e

        port = dev.find_port(idx)
        if port is None:
            raise PortNotFoundException(mac_address, idx, {"device_id": dev.id})
        return dev, port

    async def get_power(self, mac_address: str, port_idx) -> PowerState:
        """Return 'on' | 'off' | '' (PoE mode is neither auto nor off)."""
        _, port = await self._get_port(mac_address, port_idx)
        state = mode_to_power(port.poe_mode)
        log.debug("power %s/%s: poe_mode=%s -> %r", mac_address, port_idx, port.poe_mode, state)
        return state

    async def set_power(self, mac_address: str, port_idx, state: str) -> bool:
        """
        Drive the port's PoE mode to match `state`.
        Returns True when an update was sent to the controller, False for a no-op.
        """
        dev, port = await self._get_port(mac_address, port_idx)

        mode = _STATE_TO_MODE.get(state)
        if mode is None:
            log.warning("Ignoring unsupported power state %r for %s/%s", state, mac_address, port_idx)
            return False
        if port.poe_mode == mode:
            log.debug("power %s/%s already %s", mac_address, port_idx, state)
            return False

        # the whole device record goes back, last writer wins
        port.poe_mode = mode
        try:
            await self._client.update_device(self._site, dev)
        except UpstreamException as e:
            raise UpstreamException(
                f"error updating device: {e.message}",
                context={"mac_address": mac_address, "device_id": dev.id, **e.context},
            ) from e

        log.info("power %s/%s -> %s (poe_mode=%s)", mac_address, port_idx, state, mode)
        return True

    async def query_status(self, mac_address: str, port_idx) -> str:
        """Human-readable status line for the MAAS webhook driver."""
        _, port = await self._get_port(mac_address, port_idx)
        state = mode_to_power(port.poe_mode)
        if state == "on":
            return "status : running"
        if state == "off":
            return "status : stopped"
        return f"query request for MAC Address {mac_address}, Port Index {port_idx}"

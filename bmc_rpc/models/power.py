from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Literal, Optional

# "" is reported when the switch uses a PoE mode that is neither on nor off
PowerState = Literal["on", "off", ""]
DesiredState = Literal["on", "off"]

POE_MODE_AUTO = "auto"
POE_MODE_OFF = "off"

class PortOverride(BaseModel):
    """One entry of a switch's port_overrides; unknown controller fields are kept."""
    model_config = ConfigDict(extra="allow")

    port_idx: int
    poe_mode: Optional[str] = None

class Device(BaseModel):
    """A UniFi device record as returned by stat/device."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(alias="_id")
    mac: str
    name: Optional[str] = None
    port_overrides: List[PortOverride] = Field(default_factory=list)

    def find_port(self, port_idx: int) -> Optional[PortOverride]:
        # first match wins
        for port in self.port_overrides:
            if port.port_idx == port_idx:
                return port
        return None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True, mode="json")

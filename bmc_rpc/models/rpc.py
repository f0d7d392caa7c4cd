from pydantic import BaseModel, Field, TypeAdapter, field_validator
from typing import Annotated, Any, Literal, Optional, Union

from bmc_rpc.models.power import DesiredState

PowerGetMethod = "power.get"
PowerSetMethod = "power.set"
BootDeviceMethod = "boot.device"
PingMethod = "ping"

METHODS = (PowerGetMethod, PowerSetMethod, BootDeviceMethod, PingMethod)

class PowerSetParams(BaseModel):
    state: DesiredState

class BootDeviceParams(BaseModel):
    device: str
    persistent: bool = False
    efi_boot: bool = False

class _Request(BaseModel):
    id: Any = None
    host: str = ""

    @field_validator("host", mode="before")
    @classmethod
    def _null_host(cls, v):
        return "" if v is None else v

class PowerGetRequest(_Request):
    method: Literal["power.get"]
    params: Any = None

class PowerSetRequest(_Request):
    method: Literal["power.set"]
    params: PowerSetParams

class BootDeviceRequest(_Request):
    method: Literal["boot.device"]
    params: BootDeviceParams

class PingRequest(_Request):
    method: Literal["ping"]
    params: Any = None

RpcRequest = Annotated[
    Union[PowerGetRequest, PowerSetRequest, BootDeviceRequest, PingRequest],
    Field(discriminator="method"),
]
rpc_request_adapter: TypeAdapter[RpcRequest] = TypeAdapter(RpcRequest)

class RpcError(BaseModel):
    code: str
    message: str

class RpcResponse(BaseModel):
    id: Any = None
    host: str = ""
    result: Any = None
    error: Optional[RpcError] = Field(None, description="Set only when the call failed")

    def payload(self) -> dict:
        exclude = {"error"} if self.error is None else None
        return self.model_dump(mode="json", exclude=exclude)

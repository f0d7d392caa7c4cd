import json
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from bmc_rpc.core.config import BmcConfig, Machine
from bmc_rpc.dependencies import get_bmc_config, get_translator
from bmc_rpc.exceptions.power import (
    InvalidRequestException,
    MachineNotFoundException,
    PowerControlException,
)
from bmc_rpc.models.rpc import (
    METHODS,
    BootDeviceRequest,
    PingRequest,
    PowerGetRequest,
    PowerSetRequest,
    RpcError,
    RpcResponse,
    rpc_request_adapter,
)
from bmc_rpc.services.port_state import PortStateTranslator

router = APIRouter(tags=["rpc"])
log = logging.getLogger("bmc_rpc.router.rpc")

ConfigDep = Annotated[BmcConfig, Depends(get_bmc_config)]
TranslatorDep = Annotated[PortStateTranslator, Depends(get_translator)]


def _error_response(req_id: Any, host: Any, exc: PowerControlException) -> JSONResponse:
    log.error("rpc [%s] host=%s: %s", exc.error_code, host, exc.message)
    rp = RpcResponse(
        id=req_id,
        host=host if isinstance(host, str) else "",
        error=RpcError(code=exc.error_code, message=exc.message),
    )
    return JSONResponse(status_code=exc.status_code, content=rp.payload())


def _machine(config: BmcConfig, host: str) -> Machine:
    machine = config.machine(host)
    if machine is None:
        raise MachineNotFoundException(host)
    return machine


async def _dispatch(req, config: BmcConfig, translator: PortStateTranslator) -> Any:
    if isinstance(req, PingRequest):
        return "pong"

    machine = _machine(config, req.host)

    if isinstance(req, PowerGetRequest):
        return await translator.get_power(machine.mac_address, machine.port_idx)

    if isinstance(req, PowerSetRequest):
        await translator.set_power(machine.mac_address, machine.port_idx, req.params.state)
        return None

    if isinstance(req, BootDeviceRequest):
        # not wired to the controller; echo what was asked for
        p = req.params
        return (
            f"boot device request for MAC Address {machine.mac_address}, Port Index {machine.port_idx}, "
            f"Device {p.device}, Persistent {str(p.persistent).lower()}, EFIBoot {str(p.efi_boot).lower()}"
        )

    raise InvalidRequestException(f"unsupported method {req.method}")


@router.post("/rpc")
async def rpc(request: Request, config: ConfigDep, translator: TranslatorDep):
    """Single RPC endpoint: {id, host, method, params} -> {id, host, result}"""
    try:
        raw = json.loads(await request.body())
    except ValueError as e:
        return _error_response(None, "", InvalidRequestException(f"malformed request body: {e}"))
    if not isinstance(raw, dict):
        return _error_response(None, "", InvalidRequestException("request body must be a JSON object"))

    req_id, host, method = raw.get("id"), raw.get("host", ""), raw.get("method")
    if method is None:
        return _error_response(req_id, host, InvalidRequestException("missing method"))
    if method not in METHODS:
        log.info("rpc: unknown method %r from host=%s", method, host)
        return Response(status_code=404)

    try:
        req = rpc_request_adapter.validate_python(raw)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        return _error_response(req_id, host, InvalidRequestException(f"invalid {method} request: {errors}"))

    log.info("rpc: %s host=%s id=%s", req.method, req.host, req.id)
    try:
        result = await _dispatch(req, config, translator)
    except PowerControlException as exc:
        return _error_response(req.id, req.host, exc)

    return JSONResponse(content=RpcResponse(id=req.id, host=req.host, result=result).payload())

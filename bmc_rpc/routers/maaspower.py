import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from bmc_rpc.dependencies import get_translator
from bmc_rpc.exceptions.power import PowerControlException
from bmc_rpc.services.port_state import PortStateTranslator

router = APIRouter(tags=["maaspower"])
log = logging.getLogger("bmc_rpc.router.maaspower")

TranslatorDep = Annotated[PortStateTranslator, Depends(get_translator)]

# Plain-text endpoints for the MAAS webhook power driver


def _error(exc: PowerControlException) -> PlainTextResponse:
    log.error("maaspower [%s]: %s", exc.error_code, exc.message)
    return PlainTextResponse(exc.message, status_code=exc.status_code)


@router.get("/{mac_address}/{port_idx}/query", response_class=PlainTextResponse)
async def query(mac_address: str, port_idx: str, translator: TranslatorDep):
    try:
        return await translator.query_status(mac_address, port_idx)
    except PowerControlException as exc:
        return _error(exc)


@router.post("/{mac_address}/{port_idx}/on", response_class=PlainTextResponse)
async def power_on(mac_address: str, port_idx: str, translator: TranslatorDep):
    log.info("maaspower/on: %s/%s", mac_address, port_idx)
    try:
        await translator.set_power(mac_address, port_idx, "on")
    except PowerControlException as exc:
        return _error(exc)
    return "status : running"


@router.post("/{mac_address}/{port_idx}/off", response_class=PlainTextResponse)
async def power_off(mac_address: str, port_idx: str, translator: TranslatorDep):
    log.info("maaspower/off: %s/%s", mac_address, port_idx)
    try:
        await translator.set_power(mac_address, port_idx, "off")
    except PowerControlException as exc:
        return _error(exc)
    return "status : stopped"

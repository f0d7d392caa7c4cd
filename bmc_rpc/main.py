from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI
from bmc_rpc.core.config import ConfigurationError, settings
from bmc_rpc.core.logging import setup_logging
from bmc_rpc.dependencies import cleanup_services, check_config_health, check_controller_health, get_bmc_config
from bmc_rpc.exceptions.power import PowerControlException, power_exception_handler, general_exception_handler
from bmc_rpc.routers import maaspower, rpc

VERSION = "0.1.0"

setup_logging(settings.LOG_LEVEL)
log = logging.getLogger("bmc_rpc.main")

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Load the machine file before serving; a bad file stops startup.
    The controller client is created on the first request.
    """
    try:
        get_bmc_config()
    except ConfigurationError as e:
        log.critical("error reading YAML file: %s", e)
        raise
    log.info("Application startup")
    yield
    log.info("Application shutdown - cleaning up services")
    await cleanup_services()

app = FastAPI(
    title=settings.APP_NAME,
    version=VERSION,
    docs_url="/docs",
    redoc_url=None,
    lifespan=lifespan,
)

app.add_exception_handler(PowerControlException, power_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.include_router(rpc.router)
app.include_router(maaspower.router, prefix="/maaspower")

@app.get("/health")
async def health_check():
    """Machine file and controller reachability"""
    config_health = check_config_health()
    controller_health = await check_controller_health()

    overall_status = "healthy" if (config_health["status"] == "healthy" and controller_health["status"] == "healthy") else "unhealthy"

    return {
        "status": overall_status,
        "services": {
            "config": config_health,
            "controller": controller_health
        },
        "version": VERSION
    }

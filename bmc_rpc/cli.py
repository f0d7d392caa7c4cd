"""Command line entry point: bmc-rpc -p 5000 -a 0.0.0.0 -c config.yaml"""
import argparse
import logging
import sys

import uvicorn

from bmc_rpc.core.config import ConfigurationError, settings
from bmc_rpc.core.logging import setup_logging
from bmc_rpc.dependencies import get_bmc_config

log = logging.getLogger("bmc_rpc.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bmc-rpc",
        description="RPC power control for machines powered by UniFi PoE switch ports",
    )
    parser.add_argument("-p", "--port", type=int, default=settings.PORT, help="port to listen on")
    parser.add_argument("-a", "--address", default=settings.HOST, help="address to listen on")
    parser.add_argument("-c", "--config", default=settings.CONFIG_FILE, help="configuration yaml file")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, help="logging level")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    settings.CONFIG_FILE = args.config
    settings.LOG_LEVEL = args.log_level
    setup_logging(args.log_level)

    try:
        # cached for the app; the lifespan reuses it
        get_bmc_config()
    except ConfigurationError as e:
        log.critical("error reading YAML file: %s", e)
        return 1

    # imported late so the app picks up the settings above
    from bmc_rpc.main import app

    log.info("Server is running on http://%s:%d", args.address, args.port)
    uvicorn.run(app, host=args.address, port=args.port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())

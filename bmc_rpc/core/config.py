import logging
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

log = logging.getLogger("bmc_rpc.config")


class Settings(BaseSettings):
    APP_NAME: str = "BMC RPC PoE Power Control"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Machine file (controller credentials + host -> switch port map)
    CONFIG_FILE: str = "config.yaml"

    # ---- UniFi controller ----
    # Site used when the machine file does not name one.
    UNIFI_SITE: str = "default"
    # Per-request timeout against the controller, seconds.
    UNIFI_TIMEOUT: float = 10.0

    # Listen address for the bundled uvicorn runner
    HOST: str = "0.0.0.0"
    PORT: int = 5000

    class Config:
        env_file = ".env"

settings = Settings()


class ConfigurationError(Exception):
    """The machine file could not be read or is invalid."""


class Machine(BaseModel):
    mac_address: str
    # Kept textual; parsed per request so a bad value is a request error.
    port_idx: str

    @field_validator("port_idx", mode="before")
    @classmethod
    def _stringify_port(cls, v):
        if isinstance(v, bool):
            raise ValueError("port_idx must be a number")
        if isinstance(v, int):
            return str(v)
        return v


class BmcConfig(BaseModel):
    username: str
    password: str = Field(repr=False)
    api_endpoint: str
    site: Optional[str] = None
    insecure: bool = True
    machines: Dict[str, Machine] = Field(default_factory=dict)

    @field_validator("api_endpoint")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("machines", mode="before")
    @classmethod
    def _none_is_empty(cls, v):
        return {} if v is None else v

    def machine(self, host: str) -> Optional[Machine]:
        return self.machines.get(host)


def load_config(path: str | Path) -> BmcConfig:
    """Read and validate the YAML machine file."""
    path = Path(path)
    try:
        raw = yaml.safe_load(path.read_text())
    except OSError as e:
        raise ConfigurationError(f"cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"invalid YAML in {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError(f"{path}: top level must be a mapping")

    try:
        cfg = BmcConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(f"{path}: {e}") from e

    log.info("Loaded %d machine(s) from %s", len(cfg.machines), path)
    return cfg

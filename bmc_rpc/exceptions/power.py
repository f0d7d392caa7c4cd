from fastapi import Request
from fastapi.responses import JSONResponse
import logging
import time
from typing import Optional, Dict, Any

log = logging.getLogger("bmc_rpc.exceptions.power")

_SENSITIVE_KEYS = ("password", "token", "key", "secret", "cookie")

class PowerControlException(Exception):
    """Base power control exception with error context"""
    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        timestamp: Optional[float] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.timestamp = timestamp or time.time()
        super().__init__(self.message)

    def safe_context(self) -> Dict[str, Any]:
        return {k: v for k, v in self.context.items() if k not in _SENSITIVE_KEYS}

class InvalidPortIndexException(PowerControlException):
    """Port index is not an integer"""
    def __init__(self, port_idx: str, reason: str, context: Optional[Dict[str, Any]] = None):
        ctx = {"port_idx": port_idx, **(context or {})}
        super().__init__(
            f"error getting integer value from port {port_idx}: {reason}",
            400, "INVALID_PORT_INDEX", ctx,
        )

class InvalidRequestException(PowerControlException):
    """RPC envelope could not be decoded"""
    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, 400, "INVALID_REQUEST", context)

class MachineNotFoundException(PowerControlException):
    """Host is not in the machine file"""
    def __init__(self, host: str, context: Optional[Dict[str, Any]] = None):
        ctx = {"host": host, **(context or {})}
        super().__init__(f"no machine configured for host '{host}'", 404, "MACHINE_NOT_FOUND", ctx)

class DeviceNotFoundException(PowerControlException):
    """Controller has no device with this MAC address"""
    def __init__(self, mac_address: str, context: Optional[Dict[str, Any]] = None):
        ctx = {"mac_address": mac_address, **(context or {})}
        super().__init__(
            f"error getting device by MAC Address {mac_address}: not found",
            404, "DEVICE_NOT_FOUND", ctx,
        )

class PortNotFoundException(PowerControlException):
    """Device has no port override with this index"""
    def __init__(self, mac_address: str, port_idx: int, context: Optional[Dict[str, Any]] = None):
        ctx = {"mac_address": mac_address, "port_idx": port_idx, **(context or {})}
        super().__init__(
            f"no port override with index {port_idx} on device {mac_address}",
            404, "PORT_NOT_FOUND", ctx,
        )

class UpstreamException(PowerControlException):
    """Controller request failed"""
    def __init__(self, message: str, status: Optional[int] = None, context: Optional[Dict[str, Any]] = None):
        ctx = {"upstream_status": status, **(context or {})} if status else (context or {})
        super().__init__(message, 500, "UPSTREAM_ERROR", ctx)


def error_body(exc: PowerControlException) -> Dict[str, Any]:
    body = {
        "code": exc.error_code,
        "type": exc.__class__.__name__,
        "message": exc.message,
        "timestamp": exc.timestamp,
    }
    ctx = exc.safe_context()
    if ctx:
        body["context"] = ctx
    return body


# Exception handlers
async def power_exception_handler(request: Request, exc: PowerControlException):
    request_info = {
        "method": request.method,
        "url": str(request.url),
    }

    log.error(
        f"Power control exception [{exc.error_code}]: {exc.message}",
        extra={
            "error_code": exc.error_code,
            "status_code": exc.status_code,
            "context": exc.safe_context(),
            "request": request_info,
        }
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": error_body(exc), "status_code": exc.status_code}
    )

async def general_exception_handler(request: Request, exc: Exception):
    log.error(
        f"Unexpected error: {str(exc)}",
        exc_info=True,
        extra={
            "error_type": exc.__class__.__name__,
            "request": {"method": request.method, "url": str(request.url)},
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_SERVER_ERROR",
                "type": "InternalServerError",
                "message": "An unexpected error occurred during power operation",
                "timestamp": time.time()
            },
            "status_code": 500
        }
    )

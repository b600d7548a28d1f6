#!/usr/bin/env python3
"""HTTP service configuration

Host/port for each of the order, payment and shipment APIs. The three APIs
share one document store, so they can also be mounted side by side in a
single process.
"""
import os
from dataclasses import dataclass

def _bool(val: str) -> bool:
    return val.lower() == "true"

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


@dataclass
class ServiceConfig:
    """Listening address of one HTTP service"""
    service_name: str
    service_host: str = "0.0.0.0"
    service_port: int = 8210
    debug: bool = False
    log_level: str = "INFO"

    # Default ports per service
    # ===========================================
    # order_service    8210
    # payment_service  8207
    # shipment_service 8231
    # ===========================================

    @classmethod
    def from_env(cls, service_name: str, default_port: int) -> 'ServiceConfig':
        """Load configuration for ``service_name`` (e.g. ``order_service``)"""
        prefix = service_name.upper()
        return cls(
            service_name=service_name,
            service_host=os.getenv(f"{prefix}_HOST", os.getenv("SERVICE_HOST", "0.0.0.0")),
            service_port=_int(os.getenv(f"{prefix}_PORT", ""), default_port),
            debug=_bool(os.getenv("DEBUG", "false")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

"""Transport factory and initialization."""

from __future__ import annotations

import os
from typing import Optional

from ..config import SwflowConfig, load_config
from .base import BaseTransport
from .inmemory import InMemoryTransport

_transport_instance: BaseTransport | None = None


def get_transport(
    backend: Optional[str] = None, config: Optional[SwflowConfig] = None
) -> BaseTransport:
    """Factory function to get the configured transport.

    The transport built from default configuration is cached, so that
    repeated calls within a process share one in-memory service.
    """

    global _transport_instance
    if _transport_instance is not None and backend is None and config is None:
        return _transport_instance

    use_default = backend is None and config is None
    config = config or load_config()
    backend = (
        backend
        or os.getenv("SWFLOW_TRANSPORT")
        or config.transport.backend
    ).lower()

    if backend == "inmemory":
        transport: BaseTransport = InMemoryTransport(domain=config.domain)
    elif backend == "swf":
        from .swf import SwfTransport

        swf_conf = config.transport.swf
        transport = SwfTransport(
            domain=config.domain,
            region_name=swf_conf.region_name,
            profile_name=swf_conf.profile_name,
            endpoint_url=swf_conf.endpoint_url,
        )
    else:
        raise ValueError(f"Unsupported transport backend: {backend}")

    if use_default:
        _transport_instance = transport
    return transport


__all__ = ["BaseTransport", "InMemoryTransport", "get_transport"]

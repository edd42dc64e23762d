"""
Protocol catalog for anchor-scheduler.

Protocols are declared in per-domain YAML files and loaded into an
immutable ProtocolCatalog value that the scheduler consumes.
"""

from .catalog import ProtocolCatalog, default_catalog
from .loader import protocol_from_dict

__all__ = [
    "ProtocolCatalog",
    "default_catalog",
    "protocol_from_dict",
]

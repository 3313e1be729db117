"""
OML measurement client.

Applications declare measurement points, initialize collection, inject
samples and close. Samples are sent in the OML text protocol to a collection
server (``tcp:host:port``) or a file (``file:path``, ``file:-`` for stdout) by
one background sender per channel.

Usage:
    import oml_client
    from oml_client import MeasurementPoint

    class CPU(MeasurementPoint, name="cpu"):
        pass

    CPU.param("load", type="double")

    oml_client.init(domain="lab", node_id="n1", app_name="monitor")
    CPU.inject(0.42)
    oml_client.close()
"""

from .client import close, init
from .errors import (
    ConfigurationError,
    OMLError,
    ProtocolError,
    SampleShapeError,
    SampleValueError,
)
from .measurement import MeasurementPoint
from .models import FieldDef, FieldType
from .registry import Registry, default_registry
from .version import VERSION_STRING, __version__

__all__ = [
    "init",
    "close",
    "MeasurementPoint",
    "Registry",
    "default_registry",
    "FieldDef",
    "FieldType",
    "OMLError",
    "ConfigurationError",
    "SampleShapeError",
    "SampleValueError",
    "ProtocolError",
    "VERSION_STRING",
    "__version__",
]

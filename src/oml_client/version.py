from .protocol import PROTOCOL_VERSION

__version__ = "1.0.0"

VERSION_STRING = f"oml-client {__version__} [Protocol V{PROTOCOL_VERSION}]"

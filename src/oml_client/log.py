"""Module-wide verbosity for OML client diagnostics.

All output goes through loguru. The level only gates optional diagnostics:
0 is info, anything above enables debug output, above 3 also dumps the
protocol headers written to each sink.
"""

from loguru import logger

loglevel = 0


def set_log_level(level: int) -> None:
    global loglevel
    loglevel = int(level)
    if verbose():
        logger.debug(f"OML log level set to {loglevel}")


def verbose(threshold: int = 0) -> bool:
    """True when diagnostics above ``threshold`` should be emitted."""
    return loglevel > threshold

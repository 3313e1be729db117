"""
Process-level entry points: ``init`` and ``close``.

``init`` resolves the domain, node id, application name and collection URI,
opens the default channel and runs the registration protocol on the
registry. ``close`` blocks until all outstanding measurements have been sent.
"""

from __future__ import annotations

import argparse
from typing import List, Optional, Sequence, Tuple

from loguru import logger

from .channel import DEFAULT
from .log import set_log_level
from .options import resolve_options
from .registry import Registry, default_registry
from .version import VERSION_STRING


def init(
    argv: Optional[Sequence[str]] = None,
    *,
    parser: Optional[argparse.ArgumentParser] = None,
    registry: Optional[Registry] = None,
    **opts,
) -> Tuple[argparse.Namespace, List[str]]:
    """Initialize measurement collection.

    Args:
        argv: Command line arguments (default: ``sys.argv[1:]``)
        parser: Application parser to extend with the ``--oml-*`` options
        registry: Registry to initialize (default: the process-wide one)
        **opts: domain, node_id, app_name, collect, noop (see options.resolve_options)

    Returns:
        The parsed namespace and the arguments left unparsed
    """
    logger.info(VERSION_STRING)

    options, ns, rest = resolve_options(argv, parser=parser, **opts)
    if options.log_level:
        set_log_level(options.log_level)
    if options.noop:
        logger.info("Measurement collection disabled (noop)")
        return ns, rest

    options.require()
    collect = options.collect_uri()

    reg = registry if registry is not None else default_registry()
    reg.directory.create(DEFAULT, collect)
    reg.init_all(options.domain, options.node_id, options.app_name)
    logger.info(f"Collection URI is {collect}")
    return ns, rest


def close(registry: Optional[Registry] = None) -> None:
    """Close all channels; blocks until outstanding data has been sent."""
    (registry if registry is not None else default_registry()).close()

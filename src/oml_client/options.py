"""
Resolution of initialization options from the environment, keyword
arguments and ``--oml-*`` command line arguments.

Precedence: command line, then environment, then keyword arguments (the
application name only comes from code). Deprecated spellings are accepted
with a warning.
"""

from __future__ import annotations

import argparse
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from loguru import logger
from pydantic import BaseModel

from .config import OMLSettings
from .errors import ConfigurationError


class InitOptions(BaseModel):
    """Resolved identifiers and collection target for ``init``."""

    domain: Optional[str] = None
    node_id: Optional[str] = None
    app_name: Optional[str] = None
    collect: Optional[str] = None
    noop: bool = False
    log_level: int = 0

    def require(self) -> None:
        if not (self.domain and self.node_id and self.app_name):
            raise ConfigurationError(
                "Missing values for parameters domain (--oml-domain), "
                "node_id (--oml-id), or app_name (in code)!"
            )

    def collect_uri(self, now: Optional[datetime] = None) -> str:
        """Configured collection URI, or a local file named after this run."""
        if self.collect:
            return self.collect
        stamp = (now or datetime.now().astimezone()).strftime("%Y-%m-%dt%H.%M.%S%z")
        return f"file:{self.app_name}_{self.node_id}_{self.domain}_{stamp}"


def add_oml_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    """Add the ``--oml-*`` options to ``parser`` in their own group."""
    group = parser.add_argument_group("OML")
    group.add_argument("--oml-id", dest="oml_id", help="Name to identify this app instance")
    group.add_argument("--oml-domain", dest="oml_domain", help="Name of experimental domain")
    group.add_argument(
        "--oml-collect", dest="oml_collect", help="URI of server to send measurements to"
    )
    group.add_argument(
        "--oml-log-level", dest="oml_log_level", type=int, help="Log level (info: 0 .. debug: 1)"
    )
    group.add_argument(
        "--oml-noop", dest="oml_noop", action="store_true", help="Do not collect measurements"
    )
    group.add_argument(
        "--oml-exp-id", dest="oml_exp_id", help="Obsolescent equivalent to --oml-domain"
    )
    group.add_argument(
        "--oml-file", dest="oml_file", help="Obsolescent equivalent to --oml-collect file:localPath"
    )
    group.add_argument(
        "--oml-server", dest="oml_server", help="Obsolescent equivalent to --oml-collect"
    )
    group.add_argument("--oml-help", action="help", help="Show this message")
    return parser


def _first(*values: Optional[str]) -> Optional[str]:
    for v in values:
        if v:
            return v
    return None


def resolve_options(
    argv: Optional[Sequence[str]] = None,
    *,
    parser: Optional[argparse.ArgumentParser] = None,
    settings: Optional[OMLSettings] = None,
    domain: Optional[str] = None,
    node_id: Optional[str] = None,
    app_name: Optional[str] = None,
    collect: Optional[str] = None,
    noop: bool = False,
    exp_id: Optional[str] = None,
    server: Optional[str] = None,
    url: Optional[str] = None,
) -> Tuple[InitOptions, argparse.Namespace, List[str]]:
    """Merge environment, keyword and command line options.

    Returns the resolved options, the parsed namespace (which also holds any
    application options added to ``parser``) and the unparsed arguments.
    """
    env = settings or OMLSettings()

    if env.OML_URL or url:
        raise ConfigurationError(
            "Neither OML_URL nor url are valid. Do you mean OML_COLLECT or collect?"
        )

    legacy_domain = _first(env.OML_EXP_ID, exp_id)
    if legacy_domain:
        logger.warning(
            "exp_id and OML_EXP_ID are deprecated; please use domain or OML_DOMAIN instead"
        )
    domain = _first(env.OML_DOMAIN, domain, legacy_domain)
    node_id = _first(env.OML_NAME, node_id, env.OML_ID)

    if env.OML_SERVER or server:
        logger.warning(
            "server and OML_SERVER are deprecated; please use collect or OML_COLLECT instead"
        )
    collect = _first(env.OML_COLLECT, env.OML_SERVER, collect, server)
    noop = noop or env.OML_NOOP
    log_level = env.OML_LOG_LEVEL

    parser = add_oml_arguments(parser or argparse.ArgumentParser(add_help=False))
    ns, rest = parser.parse_known_args(argv)

    if ns.oml_exp_id:
        domain = ns.oml_exp_id
        logger.warning(
            f"Option --oml-exp-id is deprecated; please use '--oml-domain {domain}' instead"
        )
    if ns.oml_file:
        collect = f"file:{ns.oml_file}"
        logger.warning(
            f"Option --oml-file is deprecated; please use '--oml-collect {collect}' instead"
        )
    if ns.oml_server:
        collect = ns.oml_server
        logger.warning(
            f"Option --oml-server is deprecated; please use '--oml-collect {collect}' instead"
        )
    domain = ns.oml_domain or domain
    node_id = ns.oml_id or node_id
    collect = ns.oml_collect or collect
    noop = noop or ns.oml_noop
    if ns.oml_log_level is not None:
        log_level = ns.oml_log_level

    opts = InitOptions(
        domain=domain,
        node_id=node_id,
        app_name=app_name,
        collect=collect,
        noop=noop,
        log_level=log_level,
    )
    return opts, ns, rest

"""
Settings for pipeserve, read from the environment.

A .env file in the working directory is loaded first, so defaults can be
pinned per project without touching the shell:

    PIPESERVE_PORT=8080
    PIPESERVE_CLEANUP=1
    PIPESERVE_TMPDIR=/var/tmp
"""

import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

from pipeserve.errors import ConfigError

DEFAULT_PORT = 9000

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("", "0", "false", "no", "off")


@dataclass(frozen=True)
class Settings:
    port: int = DEFAULT_PORT
    cleanup: bool = False
    tmpdir: str | None = None


def parse_port(value: str) -> int:
    """Parse a TCP port number, 0 meaning "any free port"."""
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"invalid port: {value!r}") from None
    if not 0 <= port <= 65535:
        raise ValueError(f"port out of range 0-65535: {port}")
    return port


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean: {value!r}")


def load_settings(environ=None, port=None, cleanup=None) -> Settings:
    """
    Build Settings from the environment.

    port and cleanup, when given (from the command line), win over the
    environment and the matching variable isn't read at all. When environ
    is None the process environment is used, after loading a .env file
    from the working directory (existing variables win).
    """
    if environ is None:
        load_dotenv(find_dotenv(usecwd=True))
        environ = os.environ

    try:
        if port is None:
            port = parse_port(environ.get("PIPESERVE_PORT", str(DEFAULT_PORT)))
        if cleanup is None:
            cleanup = parse_bool(environ.get("PIPESERVE_CLEANUP", ""))
    except ValueError as e:
        raise ConfigError(str(e)) from e

    tmpdir = environ.get("PIPESERVE_TMPDIR") or None

    return Settings(port=port, cleanup=cleanup, tmpdir=tmpdir)

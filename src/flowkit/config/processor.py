"""Pre-processing of raw configuration payloads before parsing."""

import json
import logging
import os
import re
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

_ENV_PATTERN = re.compile(r"\$\{(\w+)\}|\$(\w+)")

FROM_FILE_KEY = "fromFile"


def load_env(env_file: Optional[Path] = None) -> Dict[str, str]:
    """
    Collect substitution values from a .env file and the process environment.

    Process environment values win over .env values.

    Args:
        env_file: Path to the .env file (defaults to ./.env)

    Returns:
        Dictionary mapping variable name -> value
    """
    if env_file is None:
        env_file = Path.cwd() / ".env"

    values: Dict[str, str] = {}
    if env_file.exists():
        values.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
        logger.debug("loaded %d values from %s", len(values), env_file)

    values.update(os.environ)
    return values


def process_env(raw: bytes, env: Optional[Mapping[str, str]] = None) -> bytes:
    """
    Substitute $NAME and ${NAME} tokens.

    Unknown names are left as they are.

    Args:
        raw: Raw configuration payload
        env: Substitution values (defaults to load_env())

    Returns:
        Payload with known variables substituted
    """
    if env is None:
        env = load_env()

    def replace(match: re.Match) -> str:
        name = match.group(1) or match.group(2)
        if name in env:
            return env[name]
        return match.group(0)

    return _ENV_PATTERN.sub(replace, raw.decode("utf-8")).encode("utf-8")


def process_from_file(raw: bytes) -> Tuple[bytes, Dict[str, str]]:
    """
    Strip accounts declared as {"fromFile": path} from the payload.

    Payloads that are not valid JSON are returned unchanged so the parser can
    report the syntax error.

    Returns:
        Tuple of (payload without external accounts, account name -> file path)
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return raw, {}

    accounts = data.get("accounts") if isinstance(data, dict) else None
    if not isinstance(accounts, dict):
        return raw, {}

    from_file: Dict[str, str] = {}
    for name, value in list(accounts.items()):
        if isinstance(value, dict) and set(value.keys()) == {FROM_FILE_KEY}:
            from_file[name] = value[FROM_FILE_KEY]
            del accounts[name]

    if not from_file:
        return raw, {}

    return json.dumps(data).encode("utf-8"), from_file


def run(raw: bytes, env: Optional[Mapping[str, str]] = None) -> Tuple[bytes, Dict[str, str]]:
    """Apply environment substitution, then external account extraction."""
    raw = process_env(raw, env)
    return process_from_file(raw)


def add_from_file(raw: bytes, from_file: Mapping[str, str]) -> bytes:
    """Write {"fromFile": path} references for external accounts into a payload."""
    if not from_file:
        return raw

    data = json.loads(raw)
    accounts = data.setdefault("accounts", {})
    for name, location in from_file.items():
        accounts[name] = {FROM_FILE_KEY: location}
    return json.dumps(data, indent="\t").encode("utf-8")

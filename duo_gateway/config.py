import configparser
import os
from dataclasses import dataclass
from typing import Optional

from duo_gateway.errors import ConfigError
from duo_gateway.models import MfaPreference

DEFAULT_CONFIG_PATH = os.path.expanduser("~/.duo-gateway")
DEFAULT_PROFILE = "default"
DEFAULT_SP_ENTITY_ID = "DI8ESCQGSFOJRBUQSBVI"


@dataclass
class IDPAccount:
    """Settings for one gateway profile."""

    url: str
    username: str = ""
    mfa: MfaPreference = MfaPreference.AUTO
    skip_verify: bool = False
    sp_entity_id: str = DEFAULT_SP_ENTITY_ID
    poll_interval: float = 3.0
    max_polls: Optional[int] = None


def load_account(config_path: str = DEFAULT_CONFIG_PATH, profile: str = DEFAULT_PROFILE) -> IDPAccount:
    """Load one profile section from an INI file.

    A max_polls of 0 (or unset) means the status poll has no limit.
    """
    if not os.path.exists(config_path):
        raise ConfigError(f"config file {config_path} does not exist")

    config = configparser.ConfigParser()
    config.read(config_path)

    if not config.has_section(profile):
        raise ConfigError(f"profile [{profile}] not found in {config_path}")

    section = config[profile]
    if not section.get("url"):
        raise ConfigError(f"profile [{profile}] has no url")

    try:
        max_polls = section.getint("max_polls", fallback=0)
        account = IDPAccount(
            url=section["url"].rstrip("/"),
            username=section.get("username", ""),
            mfa=MfaPreference.parse(section.get("mfa", "Auto")),
            skip_verify=section.getboolean("skip_verify", fallback=False),
            sp_entity_id=section.get("sp_entity_id", DEFAULT_SP_ENTITY_ID),
            poll_interval=section.getfloat("poll_interval", fallback=3.0),
            max_polls=max_polls or None,
        )
    except ValueError as err:
        raise ConfigError(f"invalid value in profile [{profile}]: {err}") from err

    return account

"""Connection settings and where they come from.

``ConfigStore`` reads the ``[Salesforce]`` section of an INI file (or the
``SF_*`` environment variables) and hands back a validated, immutable
``Config``. Validation happens here so an incomplete configuration fails
before anything talks to the network.
"""

from configparser import ConfigParser
from dataclasses import dataclass, fields
import os
from pathlib import Path

from dotenv import load_dotenv

from .exceptions import ConfigError
from .logger import getLogger

LOGGER = getLogger("config")

DEFAULT_CONFIG_PATH = "salesforce_config.ini"
CONFIG_SECTION = "Salesforce"

# Config attribute -> INI key
INI_KEYS = {
    "api_version": "SalesforceVersionNumber",
    "consumer_key": "CONSUMER_KEY",
    "consumer_secret": "CONSUMER_SECRET",
    "username": "USERNAME",
    "password": "PASSWORD",
    "security_token": "TOKEN",
    "endpoint": "ENDPOINT",
}

# Config attribute -> environment variable
ENV_KEYS = {
    "api_version": "SF_API_VERSION",
    "consumer_key": "SF_CONSUMER_KEY",
    "consumer_secret": "SF_CONSUMER_SECRET",
    "username": "SF_USERNAME",
    "password": "SF_PASSWORD",
    "security_token": "SF_SECURITY_TOKEN",
    "endpoint": "SF_ENDPOINT",
}


@dataclass(frozen=True)
class Config:
    api_version: str
    consumer_key: str
    consumer_secret: str
    username: str
    password: str
    security_token: str
    endpoint: str

    def __post_init__(self):
        # frozen, so normalize through object.__setattr__
        for field in fields(self):
            value = getattr(self, field.name)
            object.__setattr__(self, field.name, (value or "").strip())
        object.__setattr__(self, "endpoint", self.endpoint.rstrip("/"))
        object.__setattr__(self, "api_version", self.api_version.lstrip("vV"))

    def __repr__(self):
        return (
            f"{type(self).__name__}(endpoint={self.endpoint!r}, "
            f"username={self.username!r}, api_version={self.api_version!r})"
        )

    def missing(self) -> list[str]:
        return [field.name for field in fields(self) if not getattr(self, field.name)]

    def validate(self, source: str | None = None) -> "Config":
        if missing := self.missing():
            raise ConfigError(missing, source)
        return self

    @property
    def token_url(self) -> str:
        return f"{self.endpoint}/services/oauth2/token"


class ConfigStore:
    """Loads ``Config`` values from an INI file"""

    path: Path

    def __init__(self, path: str | Path = DEFAULT_CONFIG_PATH):
        self.path = Path(path)

    @staticmethod
    def _parser() -> ConfigParser:
        parser = ConfigParser(interpolation=None)
        # keep the key case as written, e.g. SalesforceVersionNumber
        parser.optionxform = str  # type: ignore[assignment]
        return parser

    def write_template(self) -> Path:
        parser = self._parser()
        parser[CONFIG_SECTION] = {key: "" for key in INI_KEYS.values()}
        with self.path.open("w", encoding="utf-8") as config_file:
            parser.write(config_file)
        LOGGER.warning("Created configuration template at %s", self.path)
        return self.path

    def load(self) -> Config:
        if not self.path.exists():
            self.write_template()
            raise ConfigError(list(INI_KEYS.values()), str(self.path))

        parser = self._parser()
        parser.read(self.path, encoding="utf-8")
        if not parser.has_section(CONFIG_SECTION):
            raise ConfigError(
                [f"[{CONFIG_SECTION}]", *INI_KEYS.values()], str(self.path)
            )
        section = parser[CONFIG_SECTION]
        config = Config(
            **{attr: section.get(key, "") for attr, key in INI_KEYS.items()}
        )
        if missing := config.missing():
            raise ConfigError([INI_KEYS[attr] for attr in missing], str(self.path))
        LOGGER.debug("Loaded configuration for %s from %s", config.username, self.path)
        return config

    @classmethod
    def from_env(cls, dotenv_path: str | Path | None = None) -> Config:
        """Build a ``Config`` from ``SF_*`` environment variables.

        A ``.env`` file (by default in the working directory) is loaded
        first, without overriding variables that are already set.
        """
        load_dotenv(dotenv_path or Path.cwd() / ".env")
        config = Config(
            **{attr: os.environ.get(key, "") for attr, key in ENV_KEYS.items()}
        )
        if missing := config.missing():
            raise ConfigError([ENV_KEYS[attr] for attr in missing], "environment")
        return config

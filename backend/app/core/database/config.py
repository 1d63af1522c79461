"""
Connection configuration for the application Postgres database.

The configuration is sensitive: the password only ever leaves the model
through build_uri().
"""

from urllib.parse import quote, urlencode

from pydantic import BaseModel, ConfigDict, SecretStr

URI_SCHEME = "postgres"
DEFAULT_TIMEZONE = "utc"


class DatabaseConfig(BaseModel):
    """Required properties to use the database."""

    model_config = ConfigDict(frozen=True)

    user: str
    password: SecretStr = SecretStr("")
    host: str
    name: str
    disable_tls: bool = False

    @property
    def sslmode(self) -> str:
        return "disable" if self.disable_tls else "require"

    @property
    def uri(self) -> str:
        return build_uri(self)

    @property
    def safe_uri(self) -> str:
        """URI with the password masked, for logs and error messages."""
        return _render(self, "***" if self.password.get_secret_value() else "")


def _render(cfg: DatabaseConfig, escaped_password: str) -> str:
    userinfo = f"{quote(cfg.user, safe='')}:{escaped_password}"
    query = urlencode({"sslmode": cfg.sslmode, "timezone": DEFAULT_TIMEZONE})
    return f"{URI_SCHEME}://{userinfo}@{cfg.host}/{quote(cfg.name, safe='')}?{query}"


def build_uri(cfg: DatabaseConfig) -> str:
    """
    Canonical connection URI:
    postgres://<user>:<password>@<host>/<name>?sslmode=<disable|require>&timezone=utc

    Values are opaque; malformed ones only surface when connecting.
    """
    return _render(cfg, quote(cfg.password.get_secret_value(), safe=""))

"""
Authentication management for TeraBox SDK.

This module holds the credential bundle sent with every request: the
``ndus`` session cookie captured from a logged-in browser and the
application identifiers scraped from the web frontend.
"""

import os
from dataclasses import dataclass, fields
from typing import Optional, Dict, Any, Iterable, Mapping, Union

from .exceptions import ConfigurationError


DEFAULT_LANG = "en"
DEFAULT_APP_ID = "250528"
DEFAULT_HOST = "https://terabox.com"
DEFAULT_UPLOAD_HOST = "https://c-jp.terabox.com"
DEFAULT_BLOCK_ID = "5910a591dd8fc18c32a8f3df4fdc1761"
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/137.0.0.0 Safari/537.36"
)
DEFAULT_JS_TOKEN = (
    "0C911FEECAF128F69DC7400B26711AC301F4B35A0C14C794D9C3E9DB91F89353"
    "26E23BAE805D10167B33F36BB255375DE0B23AFCC96C61D1092BB647E7901C2C"
)

# field name -> environment variable
ENV_VARS = {
    "ndus": "TERABOX_NDUS",
    "lang": "TERABOX_LANG",
    "app_id": "TERABOX_APP_ID",
    "browser_id": "TERABOX_BROWSER_ID",
    "host": "TERABOX_HOST",
    "upload_host": "TERABOX_UPLOAD_HOST",
    "block_id": "TERABOX_BLOCK_ID",
    "user_agent": "TERABOX_USER_AGENT",
    "js_token": "TERABOX_JS_TOKEN",
}


@dataclass(frozen=True)
class Credentials:
    """
    Immutable credential bundle for the TeraBox web API.

    Only ``ndus`` is required; every other field falls back to the values
    the web frontend uses.
    """

    ndus: str
    lang: str = DEFAULT_LANG
    app_id: str = DEFAULT_APP_ID
    browser_id: Optional[str] = None
    host: str = DEFAULT_HOST
    upload_host: str = DEFAULT_UPLOAD_HOST
    block_id: str = DEFAULT_BLOCK_ID
    user_agent: str = DEFAULT_USER_AGENT
    js_token: str = DEFAULT_JS_TOKEN

    def __post_init__(self):
        if not isinstance(self.ndus, str) or not self.ndus:
            raise ConfigurationError(
                f'The "ndus" credential must be a non-empty string. Received {type(self.ndus).__name__}',
                config_key="ndus",
            )
        for name in ("host", "upload_host"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.startswith(("http://", "https://")):
                raise ConfigurationError(f"Invalid {name}: {value!r}", config_key=name)
            # frozen dataclass, so bypass __setattr__
            object.__setattr__(self, name, value.rstrip("/"))

    @classmethod
    def _check_fields(cls, names: Iterable[str]):
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(names) - known)
        if unknown:
            raise ConfigurationError(
                f"Unknown credential field(s): {', '.join(unknown)}",
                config_key=unknown[0],
            )

    @classmethod
    def from_env(cls, **overrides: Any) -> "Credentials":
        """
        Build credentials from ``TERABOX_*`` environment variables.

        Args:
            **overrides: Field values that take precedence over the environment

        Returns:
            Credentials instance
        """
        cls._check_fields(overrides)
        values = {}
        for name, env_var in ENV_VARS.items():
            value = os.getenv(env_var)
            if value:
                values[name] = value
        values.update({k: v for k, v in overrides.items() if v is not None})
        if "ndus" not in values:
            raise ConfigurationError(
                "ndus is required. Provide it as parameter or TERABOX_NDUS env var.",
                config_key="ndus",
            )
        return cls(**values)

    @classmethod
    def coerce(cls, value: Union["Credentials", Mapping[str, Any], str, None]) -> "Credentials":
        """
        Normalize the accepted credential shapes into a ``Credentials``.

        Args:
            value: A Credentials instance, a mapping of field names, a bare
                ``ndus`` string, or None to read the environment

        Returns:
            Credentials instance
        """
        if isinstance(value, Credentials):
            return value
        if value is None:
            return cls.from_env()
        if isinstance(value, str):
            return cls(ndus=value)
        if isinstance(value, Mapping):
            cls._check_fields(value)
            if "ndus" not in value:
                raise ConfigurationError('The "ndus" credential is required', config_key="ndus")
            return cls(**{k: v for k, v in value.items() if v is not None or k == "ndus"})
        raise ConfigurationError(
            f"Credentials must be a Credentials, mapping or string. Received {type(value).__name__}"
        )

    @property
    def cookies(self) -> str:
        """Cookie header value carrying the session."""
        parts = []
        if self.browser_id:
            parts.append(f"browserid={self.browser_id}")
        parts.append(f"lang={self.lang}")
        parts.append(f"ndus={self.ndus}")
        return "; ".join(parts)

    def headers(self) -> Dict[str, str]:
        """Headers attached to every API request."""
        return {
            "Cookie": self.cookies,
            "User-Agent": self.user_agent,
        }

    def params(self, **extra: Any) -> Dict[str, Any]:
        """
        Common query parameters of the ``/api`` endpoints.

        Args:
            **extra: Endpoint-specific parameters

        Returns:
            Query parameter dictionary
        """
        params = {
            "app_id": self.app_id,
            "web": 1,
            "channel": "dubox",
            "clienttype": 0,
            "jsToken": self.js_token,
        }
        params.update(extra)
        return params

    def url(self, path: str) -> str:
        """Absolute API URL for ``path``."""
        return f"{self.host}{path}"

    def __repr__(self) -> str:
        return f"Credentials(host={self.host!r}, app_id={self.app_id!r}, lang={self.lang!r})"

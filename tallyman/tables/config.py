"""Configuration for the external table service."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path

from tallyman import __version__
from tallyman.config import env_str

_DEFAULT_BASE_URL = "https://api.airtable.com"
API_VERSION = "0.1.0"
USER_AGENT = f"tallyman/{__version__}"


@dc.dataclass(frozen=True, slots=True)
class TableConfig:
    """Credentials and endpoint for the table API.

    Missing credentials are a valid state: the client reports itself as
    unconfigured and serves fallback rows instead of failing.

    Attributes
    ----------
    api_key
        Bearer token for the table API.
    app_id
        Workspace/application (base) identifier.
    base_url
        API root, without the ``/v0`` version segment.
    placeholder_path
        Optional YAML file with placeholder rows for the fallback provider.

    """

    api_key: str | None = None
    app_id: str | None = None
    base_url: str = _DEFAULT_BASE_URL
    placeholder_path: Path | None = None

    @property
    def configured(self) -> bool:
        """Return True when both credentials are present."""
        return bool(self.api_key) and bool(self.app_id)

    def table_url(self, table_name: str) -> str:
        """Return the records endpoint for ``table_name``."""
        return f"{self.base_url.rstrip('/')}/v0/{self.app_id}/{table_name}"

    def headers(self) -> dict[str, str]:
        """Return the headers sent with every table request."""
        return {
            "Authorization": f"Bearer {self.api_key}",
            "User-Agent": USER_AGENT,
            "X-API-VERSION": API_VERSION,
        }

    @classmethod
    def from_env(cls) -> TableConfig:
        """Read ``TALLYMAN_AIRTABLE_*`` and ``TALLYMAN_PLACEHOLDER_PATH``."""
        placeholder = env_str("TALLYMAN_PLACEHOLDER_PATH")
        return cls(
            api_key=env_str("TALLYMAN_AIRTABLE_API_KEY"),
            app_id=env_str("TALLYMAN_AIRTABLE_APP_ID"),
            base_url=env_str("TALLYMAN_AIRTABLE_URL") or _DEFAULT_BASE_URL,
            placeholder_path=Path(placeholder) if placeholder else None,
        )

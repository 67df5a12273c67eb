"""Kaggle credential store."""

import base64
import os
from dataclasses import dataclass, field
from typing import Mapping


@dataclass(frozen=True)
class Credentials:
    """Kaggle username and API key, fixed for the lifetime of the process."""

    username: str
    key: str = field(repr=False)

    def is_configured(self) -> bool:
        return bool(self.username) and bool(self.key)

    def as_env(self, base: Mapping[str, str] | None = None) -> dict[str, str]:
        """Environment for one Kaggle CLI invocation."""
        env = dict(os.environ if base is None else base)
        env["KAGGLE_USERNAME"] = self.username
        env["KAGGLE_KEY"] = self.key
        return env

    def as_basic_auth(self) -> str:
        """HTTP Basic authorization header value."""
        token = base64.b64encode(f"{self.username}:{self.key}".encode()).decode("ascii")
        return f"Basic {token}"

    def masked(self) -> str:
        """Display form that never reveals the key."""
        if not self.is_configured():
            return "not configured"
        return f"{self.username} (key: ****)"

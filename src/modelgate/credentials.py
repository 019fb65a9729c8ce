"""Credential storage for provider API keys and tokens.

Credentials are stored in ~/.modelgate/auth.yaml keyed by provider id:

    openrouter:
      type: api
      key: "sk-or-..."
    copilot:
      type: oauth
      refresh: "..."
      access: "..."
      expires: 1735689600

Only ``api`` credentials feed the provider key directly; other types are
consumed by plugin loaders.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Protocol, Union

import yaml
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from modelgate._internal.exceptions import CredentialError


class ApiCredential(BaseModel):
    type: Literal["api"] = "api"
    key: str


class OAuthCredential(BaseModel):
    type: Literal["oauth"] = "oauth"
    refresh: str
    access: str
    expires: int


class WellKnownCredential(BaseModel):
    type: Literal["wellknown"] = "wellknown"
    key: str
    token: str


Credential = Annotated[
    Union[ApiCredential, OAuthCredential, WellKnownCredential],
    Field(discriminator="type"),
]

_CREDENTIAL_ADAPTER: TypeAdapter[Credential] = TypeAdapter(Credential)


class CredentialStore(Protocol):
    """Read interface the registry needs from a credential store."""

    def all(self) -> Dict[str, Credential]:
        """Return every stored credential keyed by provider id."""

    def get(self, provider_id: str) -> Optional[Credential]:
        """Return the credential for ``provider_id`` or None."""


def default_auth_path() -> Path:
    override = os.environ.get("MODELGATE_AUTH_PATH")
    if override:
        return Path(override)
    return Path.home() / ".modelgate" / "auth.yaml"


@dataclass(slots=True)
class FileCredentialStore:
    """Store and retrieve provider credentials from a YAML file.

    Malformed entries are skipped on read so one broken credential cannot hide
    the others.
    """

    path: Path = field(default_factory=default_auth_path)

    def __post_init__(self) -> None:
        if not isinstance(self.path, Path):
            self.path = Path(self.path)

    def all(self) -> Dict[str, Credential]:
        result: Dict[str, Credential] = {}
        for provider_id, raw in self._load().items():
            credential = _parse_credential(raw)
            if credential is not None:
                result[str(provider_id)] = credential
        return result

    def get(self, provider_id: str) -> Optional[Credential]:
        return _parse_credential(self._load().get(provider_id))

    def set(self, provider_id: str, credential: Credential) -> None:
        """Persist ``credential`` for ``provider_id``."""
        if not isinstance(provider_id, str) or not provider_id.strip():
            raise ValueError("Provider id must be a non-empty string")
        data = self._load()
        data[provider_id.strip()] = credential.model_dump()
        self._write(data)

    def remove(self, provider_id: str) -> None:
        """Remove stored credentials for ``provider_id``."""
        data = self._load()
        if provider_id in data:
            del data[provider_id]
            self._write(data)

    # Internal helpers -------------------------------------------------
    def _load(self) -> Dict[str, Any]:
        """Load the auth file, returning an empty dict if missing."""
        if not self.path.exists():
            return {}

        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            raise CredentialError(
                f"Credential file {self.path} contains invalid YAML",
                context={"path": str(self.path)},
            ) from exc
        except OSError as exc:
            raise CredentialError(
                f"Unable to read {self.path}", context={"path": str(self.path)}
            ) from exc

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise CredentialError(
                f"Credential file {self.path} must contain a mapping",
                context={"path": str(self.path)},
            )
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        """Atomically write the auth file with owner-only permissions."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=str(self.path.parent), prefix="auth-", suffix=".yaml.tmp"
        )
        os.close(fd)
        tmp_path = Path(tmp_name)

        try:
            with tmp_path.open("w", encoding="utf-8") as fh:
                yaml.safe_dump(data, fh, default_flow_style=False, sort_keys=False)
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.path)
        finally:
            tmp_path.unlink(missing_ok=True)


class MemoryCredentialStore:
    """Credential store held in memory."""

    def __init__(self, credentials: Optional[Mapping[str, Credential]] = None) -> None:
        self._credentials: Dict[str, Credential] = dict(credentials or {})

    def all(self) -> Dict[str, Credential]:
        return dict(self._credentials)

    def get(self, provider_id: str) -> Optional[Credential]:
        return self._credentials.get(provider_id)

    def set(self, provider_id: str, credential: Credential) -> None:
        self._credentials[provider_id] = credential


def _parse_credential(raw: Any) -> Optional[Credential]:
    if not isinstance(raw, dict):
        return None
    try:
        return _CREDENTIAL_ADAPTER.validate_python(raw)
    except ValidationError:
        return None


def read_environment() -> Dict[str, str]:
    """Return a snapshot of the process environment."""
    return dict(os.environ)


__all__ = [
    "ApiCredential",
    "Credential",
    "CredentialStore",
    "FileCredentialStore",
    "MemoryCredentialStore",
    "OAuthCredential",
    "WellKnownCredential",
    "default_auth_path",
    "read_environment",
]

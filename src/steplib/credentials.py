from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from typing import Protocol

from pydantic import SecretStr, ValidationError

from .errors import CredentialError, StepParameterError
from .schemas import SecretText, UsernamePassword

logger = logging.getLogger(__name__)

_ENV_KEY_PATTERN = re.compile(r"[^A-Z0-9]+")

Credential = UsernamePassword | SecretText


class CredentialStore(Protocol):
    def username_password(self, credential_id: str) -> UsernamePassword:
        """Resolve a username/password credential."""

    def secret_text(self, credential_id: str) -> SecretText:
        """Resolve a secret text credential."""


class EnvCredentialStore:
    """Resolves credentials bound into the environment by the pipeline.

    Username/password credentials follow the ``<KEY>_USR`` / ``<KEY>_PSW``
    convention, secret text is read from ``<KEY>`` directly. ``<KEY>`` is the
    credential id upper-cased with every non-alphanumeric run replaced by
    ``_`` and prefixed with ``prefix``.
    """

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        *,
        prefix: str = "CRED_",
    ) -> None:
        self.environ = os.environ if environ is None else environ
        self.prefix = prefix

    def env_key(self, credential_id: str) -> str:
        normalized = _require_id(credential_id)
        body = _ENV_KEY_PATTERN.sub("_", normalized.upper()).strip("_")
        return f"{self.prefix}{body}"

    def username_password(self, credential_id: str) -> UsernamePassword:
        key = self.env_key(credential_id)
        username = self.environ.get(f"{key}_USR", "")
        password = self.environ.get(f"{key}_PSW", "")
        if not username or not password:
            raise CredentialError(
                f"username/password credential not found: id={credential_id} env={key}_USR,{key}_PSW"
            )
        logger.info("credential resolved id=%s kind=username_password", credential_id)
        try:
            return UsernamePassword(username=username, password=SecretStr(password))
        except ValidationError as exc:
            raise CredentialError(f"invalid credential id={credential_id}: {exc}") from exc

    def secret_text(self, credential_id: str) -> SecretText:
        key = self.env_key(credential_id)
        secret = self.environ.get(key, "")
        if not secret:
            raise CredentialError(f"secret text credential not found: id={credential_id} env={key}")
        logger.info("credential resolved id=%s kind=secret_text", credential_id)
        return SecretText(secret=SecretStr(secret))


class InMemoryCredentialStore:
    def __init__(self, credentials: Mapping[str, Credential] | None = None) -> None:
        self.credentials: dict[str, Credential] = dict(credentials or {})

    def add(self, credential_id: str, credential: Credential) -> None:
        self.credentials[_require_id(credential_id)] = credential

    def username_password(self, credential_id: str) -> UsernamePassword:
        credential = self._lookup(credential_id)
        if not isinstance(credential, UsernamePassword):
            raise CredentialError(f"credential id={credential_id} is not a username/password")
        return credential

    def secret_text(self, credential_id: str) -> SecretText:
        credential = self._lookup(credential_id)
        if not isinstance(credential, SecretText):
            raise CredentialError(f"credential id={credential_id} is not secret text")
        return credential

    def _lookup(self, credential_id: str) -> Credential:
        normalized = _require_id(credential_id)
        try:
            return self.credentials[normalized]
        except KeyError as exc:
            raise CredentialError(f"credential not found: id={normalized}") from exc


def _require_id(credential_id: str) -> str:
    normalized = credential_id.strip()
    if not normalized:
        raise StepParameterError("credential_id must not be empty")
    return normalized

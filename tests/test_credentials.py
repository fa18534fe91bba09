from __future__ import annotations

import pytest
from pydantic import SecretStr

from steplib.credentials import EnvCredentialStore, InMemoryCredentialStore
from steplib.errors import CredentialError, StepParameterError
from steplib.schemas import SecretText, UsernamePassword


def test_env_store_resolves_username_password() -> None:
    store = EnvCredentialStore(
        {
            "CRED_DOCKERHUB_CREDS_USR": "ogegak2003",
            "CRED_DOCKERHUB_CREDS_PSW": "s3cret",
        }
    )

    credential = store.username_password("dockerhub-creds")

    assert store.env_key("dockerhub-creds") == "CRED_DOCKERHUB_CREDS"
    assert credential.username == "ogegak2003"
    assert credential.password.get_secret_value() == "s3cret"
    assert "s3cret" not in repr(credential)


def test_env_store_resolves_secret_text_with_custom_prefix() -> None:
    store = EnvCredentialStore({"JENKINS_KUBE_TOKEN": "token-123"}, prefix="JENKINS_")

    assert store.secret_text("kube.token").secret.get_secret_value() == "token-123"


def test_env_store_missing_credential_raises() -> None:
    store = EnvCredentialStore({"CRED_GITHUB_USR": "bot"})

    with pytest.raises(CredentialError, match="CRED_GITHUB_PSW"):
        store.username_password("GitHub")
    with pytest.raises(CredentialError):
        store.secret_text("SonarQube")


def test_empty_credential_id_is_a_parameter_error() -> None:
    with pytest.raises(StepParameterError):
        EnvCredentialStore({}).username_password("  ")
    with pytest.raises(StepParameterError):
        InMemoryCredentialStore().secret_text("")


def test_in_memory_store_checks_credential_kind() -> None:
    store = InMemoryCredentialStore(
        {
            "registry": UsernamePassword(username="bot", password=SecretStr("pw")),
            "cluster": SecretText(secret=SecretStr("token")),
        }
    )

    assert store.username_password("registry").username == "bot"
    assert store.secret_text("cluster").secret.get_secret_value() == "token"
    with pytest.raises(CredentialError, match="not secret text"):
        store.secret_text("registry")
    with pytest.raises(CredentialError, match="not found"):
        store.username_password("missing")

"""Git server configuration and the providers that supply it per request."""

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from kubernetes import client, config as kube_config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from gitredirect import config
from gitredirect.errors import StateUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GitServerConfig:
    """Address of the internal git server and the user that pushes to it."""

    address: str
    push_username: str


class StateProvider(Protocol):
    def load_git_server(self) -> GitServerConfig: ...


class StaticStateProvider:
    """Always hands out the same configuration."""

    def __init__(self, git_server: GitServerConfig) -> None:
        self.git_server = git_server

    def load_git_server(self) -> GitServerConfig:
        return self.git_server


class ClusterStateProvider:
    """Read the git server configuration from the cluster state Secret.

    The Secret holds a JSON document under ``key``; only its ``gitServer``
    section is used. Nothing is cached: every call goes to the API server so
    a rotated address is picked up by the next admission request.
    """

    def __init__(
        self,
        namespace: str = config.STATE_NAMESPACE,
        secret_name: str = config.STATE_SECRET_NAME,
        key: str = config.STATE_SECRET_KEY,
        api: Optional[Any] = None,
    ) -> None:
        self.namespace = namespace
        self.secret_name = secret_name
        self.key = key
        self._api = api

    @property
    def api(self) -> Any:
        if self._api is None:
            try:
                kube_config.load_incluster_config()
                logger.info("Loaded in-cluster kube config")
            except kube_config.ConfigException:
                kube_config.load_kube_config()
                logger.info("Loaded local kube config")
            self._api = client.CoreV1Api()
        return self._api

    def load_git_server(self) -> GitServerConfig:
        try:
            secret = self.api.read_namespaced_secret(self.secret_name, self.namespace)
        except (ApiException, HTTPError, OSError, kube_config.ConfigException) as exc:
            raise StateUnavailableError(exc) from exc

        encoded = (secret.data or {}).get(self.key)
        if not encoded:
            raise StateUnavailableError(
                f"secret {self.namespace}/{self.secret_name} has no {self.key!r} entry"
            )

        try:
            state = json.loads(base64.b64decode(encoded))
        except (binascii.Error, ValueError) as exc:
            raise StateUnavailableError(exc) from exc

        git_server = state.get("gitServer") if isinstance(state, dict) else None
        if not isinstance(git_server, dict) or not git_server.get("address"):
            raise StateUnavailableError("state has no git server address")

        return GitServerConfig(
            address=git_server["address"],
            push_username=git_server.get("pushUsername") or config.GIT_PUSH_USERNAME,
        )


def provider_from_env() -> StateProvider:
    """Use the static override when GIT_SERVER_ADDRESS is set, else the cluster."""
    if config.GIT_SERVER_ADDRESS:
        logger.info("Using static git server %s", config.GIT_SERVER_ADDRESS)
        return StaticStateProvider(
            GitServerConfig(config.GIT_SERVER_ADDRESS, config.GIT_PUSH_USERNAME)
        )
    return ClusterStateProvider()

"""Component factory."""

from __future__ import annotations

import os

import structlog
from pydantic import SecretStr
from structlog.stdlib import BoundLogger

from .config import Config
from .services.reaper import Reaper
from .storage.ghcr import GhcrClient
from .storage.preloaded import PreloadedClient
from .storage.registry import RegistryClient


class Factory:
    """Build reaper components.

    Parameters
    ----------
    config
        Complete configuration.
    logger
        Logger to use for messages.
    """

    def __init__(
        self, config: Config, logger: BoundLogger | None = None
    ) -> None:
        self._config = config
        self._logger = logger or structlog.get_logger(__name__)

    def create_registry_client(self) -> RegistryClient:
        """Create the registry client the configuration calls for.

        A snapshot input file takes precedence over the live registry.

        Raises
        ------
        OSError
            Raised if the snapshot input file cannot be read.
        ValueError
            Raised if the snapshot input file is malformed.
        """
        reg = self._config.registry
        if reg.input_file:
            self._logger.info(f"Using package data from {reg.input_file}")
            return PreloadedClient.from_file(reg.input_file)
        client = GhcrClient(reg)
        if reg.token is None:
            token = os.getenv("GHCR_TOKEN", "")
            if token:
                client.authenticate(SecretStr(token))
            else:
                self._logger.warning("No registry token configured")
        return client

    def create_reaper(self, registry: RegistryClient) -> Reaper:
        return Reaper(self._config.policy, registry)

"""Module lifecycle service.

Modules bundle pages and templates for a virtual host. Fetching and
installing their code happens elsewhere; this service validates the
command and makes every worker forget the host's page directories.
"""

from typing import Any

from loguru import logger

from wcm_cache.entities import SOURCE_TYPES, ModuleInvalidation, ModuleSource
from wcm_cache.errors import ModuleConfigError

from .invalidation import InvalidationCoordinator


def validate_source(config: dict[str, Any] | None) -> ModuleSource:
    """Check a deploy command's module configuration.

    Args:
        config: The command body, expected as ``{"source": {"type", "uri", "path"}}``

    Returns:
        ModuleSource

    Raises:
        ModuleConfigError: If the configuration or its source descriptor is incomplete
    """
    if config is None:
        raise ModuleConfigError("Missing module config argument")

    source = config.get("source")
    if not source:
        raise ModuleConfigError("Missing module config source settings")
    if not source.get("type"):
        raise ModuleConfigError("The source descriptor is missing the module 'type' field")
    if not source.get("uri"):
        raise ModuleConfigError("The source descriptor is missing the module 'uri' field")

    if source["type"] not in SOURCE_TYPES:
        raise ModuleConfigError(f"Unsupported module source type: {source['type']}")

    return ModuleSource(type=source["type"], uri=source["uri"], path=source.get("path") or "/")


class ModuleService:
    """Runs module commands for a host."""

    def __init__(self, coordinator: InvalidationCoordinator) -> None:
        self._coordinator = coordinator

    async def deploy(self, host: str, module_id: str, config: dict[str, Any] | None) -> ModuleSource:
        source = validate_source(config)
        logger.info(f"Deploying module {module_id} on {host} from {source.type}:{source.uri}{source.path}")
        await self._coordinator.module_changed(ModuleInvalidation(command="deploy", host=host))
        return source

    async def undeploy(self, host: str, module_id: str) -> None:
        logger.info(f"Undeploying module {module_id} from {host}")
        await self._coordinator.module_changed(ModuleInvalidation(command="undeploy", host=host))

    async def redeploy(self, host: str, module_id: str, config: dict[str, Any] | None) -> ModuleSource:
        """Undeploy then deploy. The configuration is checked before anything changes."""
        validate_source(config)
        await self.undeploy(host, module_id)
        return await self.deploy(host, module_id, config)

    async def refresh(self, host: str, module_id: str) -> None:
        logger.info(f"Refreshing module {module_id} on {host}")
        await self._coordinator.module_changed(ModuleInvalidation(command="refresh", host=host))

"""HTTP handlers for module commands.

Module endpoints always answer 200; a rejected command is reported as
``{"ok": false, "message": ...}``. Deploy and redeploy echo the host,
undeploy and refresh answer a bare ``{"ok": true}``.
"""

from loguru import logger

from wcm_cache.dto import ModuleCommandRequest, ModuleCommandResponse
from wcm_cache.errors import ModuleConfigError
from wcm_cache.services import ModuleService


class ModuleHandler:
    """HTTP handlers for module deploy, undeploy, redeploy and refresh."""

    def __init__(self, module_service: ModuleService) -> None:
        self._modules = module_service

    @staticmethod
    def _config(request: ModuleCommandRequest | None) -> dict | None:
        return request.to_config() if request is not None else None

    async def deploy(self, host: str, module_id: str, request: ModuleCommandRequest | None) -> ModuleCommandResponse:
        """Handle POST /_modules/_deploy requests."""
        try:
            await self._modules.deploy(host, module_id, self._config(request))
        except ModuleConfigError as e:
            logger.warning(f"Rejected deploy of {module_id} on {host}: {e}")
            return ModuleCommandResponse(ok=False, message=str(e))
        return ModuleCommandResponse(ok=True, host=host)

    async def undeploy(self, host: str, module_id: str) -> ModuleCommandResponse:
        """Handle POST /_modules/_undeploy requests."""
        await self._modules.undeploy(host, module_id)
        return ModuleCommandResponse(ok=True)

    async def redeploy(self, host: str, module_id: str, request: ModuleCommandRequest | None) -> ModuleCommandResponse:
        """Handle POST /_modules/_redeploy requests."""
        try:
            await self._modules.redeploy(host, module_id, self._config(request))
        except ModuleConfigError as e:
            logger.warning(f"Rejected redeploy of {module_id} on {host}: {e}")
            return ModuleCommandResponse(ok=False, message=str(e))
        return ModuleCommandResponse(ok=True, host=host)

    async def refresh(self, host: str, module_id: str) -> ModuleCommandResponse:
        """Handle POST /_modules/_refresh requests."""
        await self._modules.refresh(host, module_id)
        return ModuleCommandResponse(ok=True)


from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from msbroker.api import broker
from msbroker.api.utils import register_exception_handlers
from msbroker.config import Settings
from msbroker.deploys.fuse.deployer import FuseDeployer
from msbroker.deploys.launcher.deployer import LauncherDeployer
from msbroker.kube_adapter import KubeAdapter
from msbroker.logging_config import configure_logging
from msbroker.services.controller import ProvisioningController

logger = logging.getLogger(__name__)


def build_controller(settings: Settings | None = None) -> ProvisioningController:
    """Create a controller with the built-in deployers registered."""
    settings = settings or Settings.from_env()
    controller = ProvisioningController.from_settings(settings)
    kube = KubeAdapter(timeout=settings.kubectl_timeout)
    controller.register_deployer(FuseDeployer(kube=kube, route_suffix=settings.route_suffix))
    controller.register_deployer(LauncherDeployer(kube=kube))
    return controller


def create_app(controller: ProvisioningController | None = None) -> FastAPI:
    app = FastAPI(
        title="Managed Services Broker",
        description="Service broker provisioning managed services on a cluster",
        version="0.1.0",
    )
    app.state.controller = controller or build_controller()

    @app.get("/", include_in_schema=False)
    def root() -> RedirectResponse:
        """Redirect root URL to Swagger UI docs."""
        return RedirectResponse(url="/docs")

    app.include_router(broker.router)
    register_exception_handlers(app)
    logger.info("Broker ready with deployers: %s", ", ".join(app.state.controller.registry.identities()) or "none")
    return app


if __name__ == "__main__":
    configure_logging()
    uvicorn.run(create_app(), host="0.0.0.0", port=8080, log_level="info")

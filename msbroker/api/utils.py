import logging

from fastapi import Request
from starlette.responses import JSONResponse

from msbroker.errors import (
    BrokerException,
    DeployerException,
    DuplicateDeployerException,
    InvalidParametersException,
    NoMatchingDeployerException,
    NoSuchInstanceException,
    UnimplementedException,
)
from msbroker.services.controller import ProvisioningController

ERROR_STATUS = {
    NoSuchInstanceException: 404,
    InvalidParametersException: 400,
    DuplicateDeployerException: 409,
    UnimplementedException: 501,
    NoMatchingDeployerException: 500,
    DeployerException: 500,
}

logger = logging.getLogger(__name__)


def status_for(exc: Exception) -> int:
    return next((ERROR_STATUS[cls] for cls in type(exc).__mro__ if cls in ERROR_STATUS), 500)


def _exception_handler(request: Request, exc: Exception):
    status = status_for(exc)
    if status >= 500 and status != 501:
        logger.exception("Broker error for path=%s: %s", request.url.path, exc)
    else:
        logger.warning("Request failed path=%s status=%s error=%s", request.url.path, status, exc)
    return JSONResponse({"description": str(exc)}, status_code=status)


def register_exception_handlers(app):
    app.exception_handler(BrokerException)(_exception_handler)


def get_controller(request: Request) -> ProvisioningController:
    return request.app.state.controller

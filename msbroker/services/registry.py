from __future__ import annotations

import logging

from msbroker.errors import DuplicateDeployerException, NoMatchingDeployerException
from msbroker.models import Catalog
from msbroker.services.deployer import Deployer

logger = logging.getLogger(__name__)


class DeployerRegistry:
    """Deployers keyed by identity.

    Populated during startup and read-only while requests are served, so no
    locking is done here.
    """

    def __init__(self, *, reject_duplicates: bool = False) -> None:
        self._reject_duplicates = reject_duplicates
        self._deployers: dict[str, Deployer] = {}

    def register(self, deployer: Deployer) -> None:
        identity = deployer.identity()
        if identity in self._deployers:
            if self._reject_duplicates:
                raise DuplicateDeployerException(identity)
            logger.warning("Replacing previously registered deployer '%s'", identity)
        self._deployers[identity] = deployer
        logger.info("Registered deployer '%s'", identity)

    def get(self, identity: str) -> Deployer | None:
        return self._deployers.get(identity)

    def identities(self) -> list[str]:
        return list(self._deployers)

    def catalog(self) -> Catalog:
        services = []
        for deployer in self._deployers.values():
            services.extend(deployer.catalog_entries())
        return Catalog(services=services)

    def dispatch(self, service_id: str) -> Deployer:
        for deployer in self._deployers.values():
            if deployer.responsible(service_id):
                logger.debug("Dispatching service_id=%s to deployer '%s'", service_id, deployer.identity())
                return deployer
        raise NoMatchingDeployerException(service_id)

    def __len__(self) -> int:
        return len(self._deployers)

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import Iterator

from msbroker.errors import DeployerException
from msbroker.proc import AdapterCommandError

logger = logging.getLogger(__name__)


@contextmanager
def provisioning_step(step: str, message: str) -> Iterator[None]:
    """Re-raise cluster failures inside the block as a ``DeployerException`` for ``step``."""
    logger.debug("Provisioning step started: %s", step)
    try:
        yield
    except (AdapterCommandError, ValueError) as exc:
        logger.warning("Provisioning step '%s' failed: %s", step, exc)
        raise DeployerException(f"{message}: {exc}", step=step) from exc

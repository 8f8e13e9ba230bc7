from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
import logging
import threading
from typing import Any, Iterator

from msbroker.errors import NoSuchInstanceException

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Many concurrent readers or a single writer.

    Waiting writers block new readers so a steady read load cannot starve them.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass(frozen=True)
class ServiceInstanceRecord:
    name: str
    credential: dict[str, Any] = field(default_factory=dict)


class InstanceStore:
    """Instance ID to record mapping, guarded by a reader/writer lock."""

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._instances: dict[str, ServiceInstanceRecord] = {}

    def get(self, instance_id: str) -> ServiceInstanceRecord:
        with self._lock.read():
            try:
                return self._instances[instance_id]
            except KeyError:
                raise NoSuchInstanceException(instance_id) from None

    def put(self, instance_id: str, record: ServiceInstanceRecord) -> None:
        with self._lock.write():
            replaced = instance_id in self._instances
            self._instances[instance_id] = record
        logger.debug("Stored instance id=%s replaced=%s", instance_id, replaced)

    def delete(self, instance_id: str) -> bool:
        with self._lock.write():
            removed = self._instances.pop(instance_id, None) is not None
        logger.debug("Deleted instance id=%s removed=%s", instance_id, removed)
        return removed

    def __contains__(self, instance_id: object) -> bool:
        with self._lock.read():
            return instance_id in self._instances

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._instances)

"""A minimal object-store client for the resources the scaler works on."""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from natscaler.api import NamespacedName

T = TypeVar("T")


class NotFoundError(LookupError):
    """The requested object does not exist."""


@dataclass
class Deployment:
    """A deployment and its desired replica count."""

    name: str
    namespace: str
    replicas: int = 1

    @property
    def key(self) -> NamespacedName:
        return NamespacedName(self.name, self.namespace)


class KubeClient(Protocol):
    """Reads and writes cluster objects."""

    def get(self, kind: type[T], key: NamespacedName) -> T: ...

    def update(self, obj: Any) -> None: ...


def _key_of(obj: Any) -> tuple[type, NamespacedName]:
    return type(obj), NamespacedName(obj.name, obj.namespace)


class InMemoryClient:
    """A thread-safe client holding objects in memory; reads return copies."""

    def __init__(self) -> None:
        self._objects: dict[tuple[type, NamespacedName], Any] = {}
        self._lock = threading.Lock()

    def add(self, obj: Any) -> None:
        key = _key_of(obj)
        with self._lock:
            if key in self._objects:
                raise ValueError(f"{key[0].__name__} {key[1]} already exists")
            self._objects[key] = copy.deepcopy(obj)

    def get(self, kind: type[T], key: NamespacedName) -> T:
        with self._lock:
            try:
                return copy.deepcopy(self._objects[(kind, key)])
            except KeyError:
                raise NotFoundError(f"{kind.__name__} {key} not found") from None

    def update(self, obj: Any) -> None:
        key = _key_of(obj)
        with self._lock:
            if key not in self._objects:
                raise NotFoundError(f"{key[0].__name__} {key[1]} not found")
            self._objects[key] = copy.deepcopy(obj)

    def delete(self, kind: type, key: NamespacedName) -> None:
        with self._lock:
            try:
                del self._objects[(kind, key)]
            except KeyError:
                raise NotFoundError(f"{kind.__name__} {key} not found") from None
import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "\u0000"


class ObjectStore(ABC):
    """Key/value persistence for launchpad records."""

    @staticmethod
    def create_composite_key(index_key: str, parts: Iterable[str] = ()) -> str:
        """
        Deterministic key of a record: its index key followed by its identifying fields.

        :param index_key: str - record type, e.g. LaunchpadSale.INDEX_KEY
        :param parts: identifying fields, e.g. the vault address
        """
        return KEY_SEPARATOR + KEY_SEPARATOR.join([index_key, *parts]) + KEY_SEPARATOR

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    def put(self, key: str, obj: Any):
        pass

    @abstractmethod
    def delete(self, key: str):
        pass


class InMemoryObjectStore(ObjectStore):
    """
    Dict-backed store. Objects are deep-copied on the way in and out, so callers
    always hold their own instance.
    """

    def __init__(self):
        self._objects: Dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        obj = self._objects.get(key)
        return copy.deepcopy(obj) if obj is not None else None

    def put(self, key: str, obj: Any):
        logger.debug("put %r", key)
        self._objects[key] = copy.deepcopy(obj)

    def delete(self, key: str):
        self._objects.pop(key, None)

    def keys(self):
        return list(self._objects)

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self._objects)

    def restore(self, snapshot: Dict[str, Any]):
        self._objects = snapshot

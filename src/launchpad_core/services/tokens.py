import copy
from abc import ABC, abstractmethod
from typing import Dict, Union

from launchpad_core.common.errors import NotFoundError, ValidationFailedError
from launchpad_core.common.model import TokenClass, TokenClassKey, TokenInstanceKey


def _class_key(key: Union[TokenClassKey, TokenInstanceKey]) -> TokenClassKey:
    if isinstance(key, TokenInstanceKey):
        return key.token_class_key
    return key


class TokenService(ABC):
    """Token metadata lookups."""

    @abstractmethod
    def register_token(self, token_class: TokenClass):
        pass

    @abstractmethod
    def get_token_class(self, key: Union[TokenClassKey, TokenInstanceKey]) -> TokenClass:
        pass

    def get_token_decimals(self, key: Union[TokenClassKey, TokenInstanceKey]) -> int:
        return self.get_token_class(key).decimals


class InMemoryTokenService(TokenService):

    def __init__(self):
        self._classes: Dict[TokenClassKey, TokenClass] = {}

    def register_token(self, token_class: TokenClass):
        if token_class.key in self._classes:
            raise ValidationFailedError(
                f"Token class {token_class.key.to_string_key()} already exists.", ["token_symbol"]
            )
        if token_class.decimals < 0:
            raise ValidationFailedError("Token decimals cannot be negative.", ["decimals"])
        self._classes[token_class.key] = token_class

    def get_token_class(self, key: Union[TokenClassKey, TokenInstanceKey]) -> TokenClass:
        class_key = _class_key(key)
        if class_key not in self._classes:
            raise NotFoundError(f"Token class {class_key.to_string_key()} not found.")
        return self._classes[class_key]

    def snapshot(self):
        return copy.deepcopy(self._classes)

    def restore(self, snapshot):
        self._classes = snapshot

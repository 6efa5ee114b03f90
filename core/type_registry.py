import logging
from typing import Any, Callable, Dict, Optional

from core.exceptions import UnknownTypeError

logger = logging.getLogger("Herald.TypeRegistry")


def type_identifier(cls: type) -> str:
    """Stable string identifier for a class: ``module.QualName``."""
    return f"{cls.__module__}.{cls.__qualname__}"


class TypeRegistry:
    """
    Maps stable string identifiers to classes and constructor closures.

    Anything that crosses the queue boundary (jobs, listeners, events) is
    stored by identifier and rebuilt through this registry on the worker,
    so an unknown identifier is an explicit error instead of an import
    failure deep inside a job.
    """

    def __init__(self):
        self._types: Dict[str, type] = {}
        self._factories: Dict[str, Callable[[], Any]] = {}
        self._identifiers: Dict[type, str] = {}

    def register(
        self,
        cls: type,
        factory: Optional[Callable[[], Any]] = None,
        identifier: Optional[str] = None,
    ) -> str:
        """
        Register a class under an identifier.

        Args:
            cls: The class to register
            factory: Zero-argument callable building an instance. Defaults to cls()
            identifier: Identifier to use. Defaults to type_identifier(cls)

        Returns:
            The identifier the class is registered under
        """
        identifier = identifier or self._identifiers.get(cls) or type_identifier(cls)
        self._types[identifier] = cls
        self._identifiers[cls] = identifier
        if factory is not None:
            self._factories[identifier] = factory
        logger.debug(f"Registered type '{identifier}'")
        return identifier

    def identifier_for(self, cls: type) -> str:
        return self._identifiers.get(cls, type_identifier(cls))

    def has(self, identifier: str) -> bool:
        return identifier in self._types

    def resolve(self, identifier: str) -> type:
        try:
            return self._types[identifier]
        except KeyError:
            raise UnknownTypeError(identifier) from None

    def make(self, identifier: str) -> Any:
        """Build a fresh instance for the identifier."""
        cls = self.resolve(identifier)
        factory = self._factories.get(identifier)
        return factory() if factory is not None else cls()

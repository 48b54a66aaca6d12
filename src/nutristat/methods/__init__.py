"""
Methods registry for automatic classifier discovery.

This module provides automatic registration of classification methods by
introspecting BaseClassifier subclasses that declare an ``indicator``.
"""

from typing import Dict, List, Type, Union
import functools

from ..reference import Indicator
from .base import BaseClassifier

# Import classifier modules to register subclasses
from . import bands


def _all_subclasses(cls: type) -> List[type]:
    found = []
    for sub in cls.__subclasses__():
        found.append(sub)
        found.extend(_all_subclasses(sub))
    return found


def _build_registry() -> Dict[Indicator, Type[BaseClassifier]]:
    """Build the registry by discovering indicator-bound subclasses."""
    registry = {}
    for cls in _all_subclasses(BaseClassifier):
        if cls.indicator is not None:
            registry[cls.indicator] = cls
    return registry


# Global registry instance
registry = _build_registry()


@functools.lru_cache(maxsize=None)
def get_classifier(indicator: Union[Indicator, str]) -> BaseClassifier:
    """Return the shared default-vocabulary classifier for an indicator."""
    return registry[Indicator(indicator)]()


__all__ = ["registry", "get_classifier", "bands", "BaseClassifier"]

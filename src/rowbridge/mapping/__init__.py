"""Per-entity mapping configurations."""

from .models import (
    ConfigurationError,
    CustomGetter,
    CustomSetter,
    FieldMapping,
    MappingConfig,
    NO_TRANSFORM,
    NoTransform,
)
from .loader import MappingLoader

__all__ = [
    "ConfigurationError",
    "CustomGetter",
    "CustomSetter",
    "FieldMapping",
    "MappingConfig",
    "NO_TRANSFORM",
    "NoTransform",
    "MappingLoader",
]

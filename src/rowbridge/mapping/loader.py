"""Loading of code-defined mapping configurations."""

import dataclasses
import importlib.util
import logging
import re
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, Optional

from ..config import settings
from .models import ConfigurationError, MappingConfig

if TYPE_CHECKING:
    from ..store.base import EntitySchema

logger = logging.getLogger(__name__)

_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

SCHEMAS_MODULE = "schemas"


class MappingLoader:
    """
    Loads mapping configurations from a directory of Python modules.

    Each ``<name>.py`` defines a module-level ``CONFIG``, either a
    ``MappingConfig`` or a dict accepted by ``MappingConfig.from_dict``.
    An optional ``schemas.py`` defines ``SCHEMAS``, the entity schemas to
    register with the document store.
    """

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = Path(config_path or settings.mapping_config_path)
        self._cache: dict[str, MappingConfig] = {}

    def _load_module(self, name: str) -> ModuleType:
        if not _NAME_PATTERN.match(name):
            raise ConfigurationError(f"Invalid mapping configuration name: {name!r}")

        module_path = self.config_path / f"{name}.py"
        if not module_path.is_file():
            raise ConfigurationError(
                f"Mapping configuration '{name}' not found in {self.config_path}"
            )

        spec = importlib.util.spec_from_file_location(f"rowbridge_mappings.{name}", module_path)
        module = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            raise ConfigurationError(f"Failed to load mapping configuration '{name}': {e}") from e
        return module

    def load(self, name: str) -> MappingConfig:
        """
        Load a mapping configuration by name.

        Raises:
            ConfigurationError: If the module is missing, fails to import or
                defines no usable CONFIG
        """
        if name in self._cache:
            return self._cache[name]

        module = self._load_module(name)
        raw = getattr(module, "CONFIG", None)
        if isinstance(raw, MappingConfig):
            config = raw if raw.name else dataclasses.replace(raw, name=name)
        elif isinstance(raw, dict):
            config = MappingConfig.from_dict(raw, name=name)
        else:
            raise ConfigurationError(f"Mapping configuration '{name}' defines no CONFIG")

        self._cache[name] = config
        logger.info(f"Loaded mapping configuration '{name}' ({len(config.fields)} fields)")
        return config

    def load_schemas(self) -> list["EntitySchema"]:
        """Load entity schemas from ``schemas.py``, if present."""
        from ..store.base import EntitySchema

        if not (self.config_path / f"{SCHEMAS_MODULE}.py").is_file():
            return []

        module = self._load_module(SCHEMAS_MODULE)
        schemas = list(getattr(module, "SCHEMAS", []))
        for schema in schemas:
            if not isinstance(schema, EntitySchema):
                raise ConfigurationError(f"SCHEMAS entry is not an EntitySchema: {schema!r}")
        return schemas

    def available(self) -> list[str]:
        """Names of the mapping configurations in the config directory."""
        if not self.config_path.is_dir():
            return []
        return sorted(
            p.stem
            for p in self.config_path.glob("*.py")
            if p.stem != SCHEMAS_MODULE and not p.stem.startswith("_")
        )

    def clear_cache(self):
        self._cache.clear()

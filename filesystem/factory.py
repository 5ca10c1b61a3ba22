"""Filesystem adapter factory with registry pattern."""
from typing import Any, Callable
import importlib

from core.config import Settings
from core.logging_config import get_logger
from .base import FilesystemAdapter
from .config import AdapterType
from .exceptions import ConfigurationError, FilesystemException

logger = get_logger(__name__)

# Adapter builder type: receives the adapter's settings group
AdapterBuilder = Callable[[Any], FilesystemAdapter]

# Global registry for filesystem adapters
_adapter_registry: dict[AdapterType, AdapterBuilder] = {}

# Settings group handed to each builder
_settings_groups: dict[AdapterType, str] = {
    AdapterType.SWIFT: "swift",
}


def register_adapter(
    adapter_type: AdapterType,
    builder: AdapterBuilder
) -> None:
    """Register a filesystem adapter builder.

    Args:
        adapter_type: Type of filesystem adapter
        builder: Function to build adapter instance
    """
    _adapter_registry[adapter_type] = builder
    logger.info(f"Registered filesystem adapter: {adapter_type}")


def unregister_adapter(adapter_type: AdapterType) -> None:
    _adapter_registry.pop(adapter_type, None)


def create_adapter(settings: Settings) -> FilesystemAdapter:
    """Create filesystem adapter instance based on settings.

    Args:
        settings: Application settings

    Returns:
        Configured filesystem adapter instance

    Raises:
        ConfigurationError: If adapter type not registered or creation fails
    """
    try:
        adapter_type = AdapterType(settings.filesystem.type)
    except ValueError:
        raise ConfigurationError(
            f"Unknown filesystem adapter '{settings.filesystem.type}'. "
            f"Available: {[t.value for t in AdapterType]}"
        ) from None

    if adapter_type not in _adapter_registry:
        # Try to auto-register built-in adapters
        _auto_register_adapters()

        if adapter_type not in _adapter_registry:
            raise ConfigurationError(
                f"Filesystem adapter '{adapter_type.value}' not registered. "
                f"Available: {list(_adapter_registry.keys())}"
            )

    builder = _adapter_registry[adapter_type]
    group = getattr(settings, _settings_groups[adapter_type])

    try:
        adapter = builder(group)
        logger.info("Created filesystem adapter", adapter=adapter_type.value)
        return adapter
    except FilesystemException:
        logger.error("Failed to create filesystem adapter", adapter=adapter_type.value)
        raise
    except Exception as e:
        logger.error(
            "Failed to create filesystem adapter",
            adapter=adapter_type.value,
            error=str(e)
        )
        raise ConfigurationError(
            f"Failed to create filesystem adapter '{adapter_type.value}': {e}"
        ) from e


def _auto_register_adapters() -> None:
    """Auto-register built-in filesystem adapters."""
    adapters = [
        (AdapterType.SWIFT, "filesystem.adapters.swift", "build_swift_adapter"),
    ]

    for adapter_type, module_path, builder_name in adapters:
        if adapter_type in _adapter_registry:
            continue

        try:
            module = importlib.import_module(module_path)
            builder = getattr(module, builder_name)
            register_adapter(adapter_type, builder)
        except (ImportError, AttributeError) as e:
            logger.debug(f"Adapter {adapter_type} not available: {e}")

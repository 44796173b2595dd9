# Configuration module for Cosmos DB session storage
from .options import CosmosDBSessionStorageOptions, DEFAULT_CONTAINER_NAME
from .settings import CosmosSettings, clear_settings_cache, get_settings, load_settings

__all__ = [
    "CosmosDBSessionStorageOptions",
    "DEFAULT_CONTAINER_NAME",
    "CosmosSettings",
    "clear_settings_cache",
    "get_settings",
    "load_settings",
]

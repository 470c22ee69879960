from .settings import Settings, StoreSettings, GenerationSettings, ServerSettings, get_settings

__all__ = ["Settings", "StoreSettings", "GenerationSettings", "ServerSettings", "get_settings"]

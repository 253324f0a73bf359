from .settings import Settings, settings, BASE_DIR

__all__ = ["Settings", "settings", "BASE_DIR"]

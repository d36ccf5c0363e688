"""Third-party music catalog access."""

from .deezer import DeezerCatalog

__all__ = ["DeezerCatalog"]

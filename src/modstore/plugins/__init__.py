"""Store plugins."""

from modstore.plugins.logger import create_logger

__all__ = ["create_logger"]

"""Module tree."""

from modstore.module.collection import NAMESPACE_SEPARATOR, ModuleCollection
from modstore.module.module import Module

__all__ = ["NAMESPACE_SEPARATOR", "Module", "ModuleCollection"]

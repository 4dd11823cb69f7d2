"""Shared Pydantic models."""
from director.models.base import CamelModel, FrozenCamelModel, to_camel

__all__ = ["CamelModel", "FrozenCamelModel", "to_camel"]

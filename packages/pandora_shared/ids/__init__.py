"""Identifier helpers."""

from packages.pandora_shared.ids.ulid import generate_ulid_str

__all__ = ["generate_ulid_str"]

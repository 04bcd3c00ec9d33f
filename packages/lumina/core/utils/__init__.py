"""Shared utilities for Lumina."""

from lumina.core.utils.json import read_json, write_json

__all__ = ["read_json", "write_json"]

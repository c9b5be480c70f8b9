"""Persistence adapters for Cityrade worlds."""

from cityrade.repository.json_store import JsonWorldRepository

__all__ = ["JsonWorldRepository"]

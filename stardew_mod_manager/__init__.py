"""Mod library and profile manager for Stardew Valley."""

__version__ = "0.1.0"

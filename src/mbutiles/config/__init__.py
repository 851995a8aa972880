"""Configuration loading utilities for mbutiles."""

from .loader import ConfigLoader, ConversionConfig, load_config

__all__ = ["ConfigLoader", "ConversionConfig", "load_config"]

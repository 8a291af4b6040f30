"""Configuration management for the compatibility scanner."""

from .scan_config import ScanConfig, load_config

__all__ = ["ScanConfig", "load_config"]

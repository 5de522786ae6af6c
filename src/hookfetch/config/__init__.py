"""
Configuration loading for hookfetch.
"""

from hookfetch.config.loader import Config, load_config
from hookfetch.config.resolver import resolve_config

__all__ = ["Config", "load_config", "resolve_config"]

"""Configuration for tcover."""

from tcover.config.settings import TcoverSettings, load_settings

__all__ = ["TcoverSettings", "load_settings"]

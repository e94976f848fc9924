"""
Core Module - shared infrastructure.

Components:
- logging_config: loguru sink setup driven by settings
"""

from src.core.logging_config import setup_logging

__all__ = ["setup_logging"]

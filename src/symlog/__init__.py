"""
Symlog

Conversational symptom logger: turns free-text, multi-turn descriptions into
validated symptom records by driving an external text generator.
"""

__version__ = "0.1.0"

from symlog.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]

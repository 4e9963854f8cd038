"""
Dialogue Tutor.

Session engine for a linear instructional dialogue: navigation, autoplay,
learning statistics, notes, quiz scoring and AI questions, with progress kept
in a local key-value store.
"""

from .config.loader import load_settings

__all__ = ["load_settings"]

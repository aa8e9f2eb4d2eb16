"""
Model package for the arena.

The arena state is plain in-memory data; nothing here is persisted.
"""

from .arena import ArenaConfig, ArenaFullError, ArenaPlayer, ArenaWorld, now_ms

__all__ = ['ArenaConfig', 'ArenaFullError', 'ArenaPlayer', 'ArenaWorld', 'now_ms']

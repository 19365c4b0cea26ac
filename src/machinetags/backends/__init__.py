"""Machinetags Backends - compile or evaluate filter expressions per target store."""

from machinetags.backends.memory import MemoryBackend
from machinetags.backends.sql import CompiledQuery, SQLCompiler

__all__ = ["CompiledQuery", "MemoryBackend", "SQLCompiler"]

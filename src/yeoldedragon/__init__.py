"""Ye Olde Dragon: a compiler for a small scripting language."""

__version__ = "0.1.0"

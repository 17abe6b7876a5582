"""HLPFL Forms - hosted form-builder backend."""

__version__ = "2.0.0"

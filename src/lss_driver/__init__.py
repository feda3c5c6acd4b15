"""Async driver for Lynxmotion LSS smart servos."""

__version__ = "0.1.0"

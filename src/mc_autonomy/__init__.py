"""Autonomous Minecraft agent: perceive, decide, execute, verify, learn."""

__version__ = "0.1.0"

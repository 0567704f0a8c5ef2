"""Scenepack: write in-memory scene graphs as glTF 2.0 documents."""

__version__ = "0.1.0"

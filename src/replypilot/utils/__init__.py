"""Utility helpers (logging, file IO)."""

"""Neuro-biological trading audit: session analytics & readiness engine."""

__version__ = "0.1.0"

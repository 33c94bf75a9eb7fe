"""
Registry Service Routes
=======================

API route handlers for the registry service.
"""

from services.registry.routes import registry, requests, verifications


__all__ = ["registry", "requests", "verifications"]

"""
Registry Service Dependencies
=============================

Shared FastAPI dependencies for the registry routes.
"""

import asyncio

from incomeguard.registry import VerificationRegistry, get_registry


# Serializes state-changing registry calls; reads go through unlocked
registry_lock = asyncio.Lock()


def get_registry_dependency() -> VerificationRegistry:
    """Resolve the process-wide registry instance."""
    return get_registry()

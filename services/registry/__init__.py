"""
Registry Service
================

HTTP front for the confidential income verification registry.

This service provides:
- Encrypted income claim submission
- Authority approval and rejection
- Threshold checks and record comparison over encrypted values
- Record deactivation and per-user listings

Version: 0.1.0
"""

__version__ = "0.1.0"

"""
IncomeGuard Shared Library
==========================

Confidential income verification on an FHE-enabled ledger.

Modules:
    - config: Configuration management with Pydantic Settings
    - logging: Structured logging with structlog
    - auth: JWT bearer authentication for the API
    - ledger: Execution host interface (mock/testnet)
    - fhe: Confidential-value service and encrypted handles
    - registry: Verification request/record lifecycle
    - models: Shared Pydantic response models

Version: 0.1.0
"""

__version__ = "0.1.0"
__author__ = "IncomeGuard Team"

from incomeguard.config import settings
from incomeguard.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
    "__version__",
]

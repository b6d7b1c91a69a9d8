"""Public API for the Pandora composition root."""

from packages.pandora_core.health import CoreHealthResult, evaluate_core_health
from packages.pandora_core.main import create_application, main

__all__ = [
    "CoreHealthResult",
    "create_application",
    "evaluate_core_health",
    "main",
]

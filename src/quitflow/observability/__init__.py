"""
QuitFlow - Observability Package.

Provides:
- Funnel event logging (JSONL per session)
"""

from quitflow.observability.funnel_logger import FunnelLogger

__all__ = [
    "FunnelLogger",
]

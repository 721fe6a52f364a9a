"""
Status sink: connector health, last values and recent-item logs.
"""
from .service import (
    StatusEvent,
    StatusEventKind,
    StatusSnapshot,
    SystemStatusService,
)

__all__ = ["StatusEvent", "StatusEventKind", "StatusSnapshot", "SystemStatusService"]

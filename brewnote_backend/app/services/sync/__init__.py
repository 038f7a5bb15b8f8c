# brewnote_backend/app/services/sync/__init__.py
from __future__ import annotations

from .reconciler import OfflineQueueReconciler  # noqa: F401

__all__ = ["OfflineQueueReconciler"]

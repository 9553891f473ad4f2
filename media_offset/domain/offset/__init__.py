from .manifest_inspector import build_manifest_url, parse_manifest_timing, resolve_timing
from .offset_models import (
    FilterAction,
    ManifestTimingInfo,
    OffsetReconcileResult,
    ReconcileStatus,
)
from .offset_reconciler import OffsetReconciler, reconcile_offset

__all__ = [
    "FilterAction",
    "ManifestTimingInfo",
    "OffsetReconcileResult",
    "OffsetReconciler",
    "ReconcileStatus",
    "build_manifest_url",
    "parse_manifest_timing",
    "reconcile_offset",
    "resolve_timing",
]

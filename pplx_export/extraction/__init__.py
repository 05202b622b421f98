"""Conversation Extraction Package.

This package harvests the conversation from the live page:
- DirectScanStrategy: renders mounted blocks while scrolling
- ExportCaptureStrategy: intercepts the host's Markdown export
- CopyAffordanceStrategy: reads the host's copy controls via the clipboard
- ExtractionOrchestrator: deterministic fallback chain over the three
"""

from pplx_export.extraction.base import ExtractionStrategy, blocked_navigation
from pplx_export.extraction.capture import CaptureBridge, decode_payload
from pplx_export.extraction.copy_affordance import CopyAffordanceStrategy
from pplx_export.extraction.direct_scan import DirectScanStrategy
from pplx_export.extraction.export_capture import ExportCaptureStrategy
from pplx_export.extraction.fingerprint import SeenContent, fingerprint
from pplx_export.extraction.orchestrator import ExtractionOrchestrator, ExtractionOutcome


__all__ = [
    "CaptureBridge",
    "CopyAffordanceStrategy",
    "DirectScanStrategy",
    "ExportCaptureStrategy",
    "ExtractionOrchestrator",
    "ExtractionOutcome",
    "ExtractionStrategy",
    "SeenContent",
    "blocked_navigation",
    "decode_payload",
    "fingerprint",
]

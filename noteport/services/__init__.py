"""
Services for Noteport.

High-level import pipeline services:
- ImportEngine: Unified interface for imports and job queries
- ImportOrchestrator: File-to-notes materialization with per-note isolation
- ResourceResolver: Attachment upload and per-job de-duplication
- ContentTranslator: ENML/HTML rewrite and plaintext projection
- JobTracker: Job status and progress queries
"""

from noteport.services.content_translator import ContentTranslator
from noteport.services.import_engine import ImportEngine
from noteport.services.import_orchestrator import ImportOrchestrator
from noteport.services.job_tracker import JobTracker
from noteport.services.resource_resolver import (
    ResolvedResources,
    ResourceResolver,
    StoredResource,
)

__all__ = [
    "ImportEngine",
    "ImportOrchestrator",
    "ResourceResolver",
    "ResolvedResources",
    "StoredResource",
    "ContentTranslator",
    "JobTracker",
]

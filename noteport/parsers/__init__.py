"""
Upload parsers for Noteport.

Available parsers:
- EnexParser: Evernote ENEX exports (many notes, embedded resources)
- DocumentParser: PDF, DOCX and plain text (one note per file)
"""

from noteport.parsers.base import ExportParser
from noteport.parsers.detector import SUPPORTED_EXTENSIONS, FormatDetector
from noteport.parsers.document_parser import DocumentParser
from noteport.parsers.enex_parser import EnexParser

__all__ = [
    "ExportParser",
    "FormatDetector",
    "SUPPORTED_EXTENSIONS",
    "EnexParser",
    "DocumentParser",
]

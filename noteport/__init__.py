"""Noteport - Evernote and document import pipeline for a note-taking app."""

__version__ = "0.1.0"

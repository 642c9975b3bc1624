"""
ID generation utilities for Noteport.

Provides consistent ID generation for all entity types:
- Notes: note_xxx
- Notebooks: nb_xxx
- Tags: tag_xxx
- Attachments: att_xxx
- Import jobs: job_xxx
"""

from uuid import uuid4


def _short_hex() -> str:
    return uuid4().hex[:12]


def generate_note_id() -> str:
    """
    Generate unique Note ID.

    Returns:
        ID in format "note_xxx" where xxx is 12 hex characters
    """
    return f"note_{_short_hex()}"


def generate_notebook_id() -> str:
    """
    Generate unique Notebook ID.

    Returns:
        ID in format "nb_xxx" where xxx is 12 hex characters
    """
    return f"nb_{_short_hex()}"


def generate_tag_id() -> str:
    """
    Generate unique Tag ID.

    Returns:
        ID in format "tag_xxx" where xxx is 12 hex characters
    """
    return f"tag_{_short_hex()}"


def generate_attachment_id() -> str:
    """Generate unique Attachment ID (att_xxx)."""
    return f"att_{_short_hex()}"


def generate_job_id() -> str:
    """
    Generate unique import Job ID.

    Returns:
        ID in format "job_xxx" where xxx is 12 hex characters
    """
    return f"job_{_short_hex()}"

"""
TranscriptVault storage core.

Versioned transcript storage across an object store (content) and a
relational index (metadata): upload with compensation, version history,
latest-version listing and search, deletes and orphan repair. The public
entry point is ``storage.service.TranscriptService``.
"""

__version__ = "0.1.0"

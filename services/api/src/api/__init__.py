"""
TranscriptVault REST API.

Thin FastAPI layer over the storage core: transcript upload, retrieval,
version history, listing, search, status updates and deletes.
"""

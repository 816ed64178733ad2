"""
API router package for TranscriptVault.

Contains the transcript and health router modules.
"""

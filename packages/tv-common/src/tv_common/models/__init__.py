"""
Shared Pydantic data models for TranscriptVault.
"""

from tv_common.models.transcript import (
    ProcessingStatus,
    StatusChange,
    TranscriptContent,
    TranscriptFormat,
    TranscriptMetadata,
    TranscriptPage,
    UploadMetadata,
    UploadResult,
)

__all__ = [
    "ProcessingStatus",
    "StatusChange",
    "TranscriptContent",
    "TranscriptFormat",
    "TranscriptMetadata",
    "TranscriptPage",
    "UploadMetadata",
    "UploadResult",
]

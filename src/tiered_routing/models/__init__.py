"""
Value objects for requests, responses and result shapes.
"""

from .data_structures import (
    AdapterReply,
    ContentKind,
    DuplicateGroup,
    DuplicateReport,
    FileDescriptor,
    FileRoute,
    FolderPlan,
    FolderRules,
    FolderSpec,
    OcrResult,
    ProviderRequest,
    ProviderResponse,
    RenameResult,
    file_stem,
)

__all__ = [
    "AdapterReply",
    "ContentKind",
    "DuplicateGroup",
    "DuplicateReport",
    "FileDescriptor",
    "FileRoute",
    "FolderPlan",
    "FolderRules",
    "FolderSpec",
    "OcrResult",
    "ProviderRequest",
    "ProviderResponse",
    "RenameResult",
    "file_stem",
]

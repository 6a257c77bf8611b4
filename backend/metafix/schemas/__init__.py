"""
API Schemas Package

Contains Pydantic models for API requests and responses, plus the
metainfo.json folder entry model.
These schemas are used for OpenAPI documentation and validation.
"""

from metafix.schemas.responses import (
    SuccessResponse,
    ErrorResponse,
    ConnectionTestResponse,
)

from metafix.schemas.requests import (
    CorrectionRequest,
    OpenListSettingsUpdateRequest,
)

from metafix.schemas.metainfo import (
    FolderEntry,
    metainfo_path,
    dump_metainfo,
)

__all__ = [
    # Responses
    'SuccessResponse',
    'ErrorResponse',
    'ConnectionTestResponse',
    # Requests
    'CorrectionRequest',
    'OpenListSettingsUpdateRequest',
    # metainfo.json
    'FolderEntry',
    'metainfo_path',
    'dump_metainfo',
]

"""
API Request Schemas

Pydantic models for API requests.
Used for OpenAPI documentation and request validation.
"""

from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ============================================================================
# Correction Requests
# ============================================================================

class CorrectionRequest(BaseModel):
    """
    Request model for correcting the TMDB mapping of one folder.

    folder and tmdbId are required, but they are declared optional here so
    that their absence is reported by the correction service as a 400
    validation error instead of FastAPI's generic 422.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "folder": "The Matrix (1999)",
                "tmdbId": 603,
                "title": "The Matrix",
                "posterPath": "/f89U3ADr1oiB1s9GkdPOEpXUk5H.jpg",
                "releaseDate": "1999-03-31",
                "overview": "Set in the 22nd century...",
                "voteAverage": 8.2,
                "mediaType": "movie"
            }
        },
    )

    folder: Optional[str] = Field(
        None,
        description="Folder name (key under 'folders' in metainfo.json)",
        examples=["The Matrix (1999)"]
    )
    tmdb_id: Optional[Union[int, str]] = Field(
        None,
        alias="tmdbId",
        description="TMDB identifier; stored as given",
        examples=[603]
    )
    title: Optional[str] = Field(None, description="Display title")
    poster_path: Optional[str] = Field(None, alias="posterPath", description="TMDB poster path")
    release_date: Optional[str] = Field(None, alias="releaseDate", description="ISO release date")
    overview: Optional[str] = Field(None, description="Synopsis")
    vote_average: Optional[Union[int, float]] = Field(None, alias="voteAverage", description="TMDB rating")
    media_type: Optional[str] = Field(
        None,
        alias="mediaType",
        description="Media type tag (movie, tv, ...)",
        examples=["movie"]
    )


# ============================================================================
# Settings Requests
# ============================================================================

class OpenListSettingsUpdateRequest(BaseModel):
    """Request model for updating the OpenList storage settings."""
    openlist_url: Optional[str] = Field(
        None,
        description="OpenList base URL (must be http/https)",
        examples=["https://pan.example.com"]
    )
    openlist_token: Optional[str] = Field(
        None,
        description="OpenList API token"
    )
    openlist_username: Optional[str] = Field(
        None,
        description="OpenList username used to refresh an expired token"
    )
    openlist_password: Optional[str] = Field(
        None,
        description="OpenList password used to refresh an expired token"
    )
    openlist_root_path: Optional[str] = Field(
        None,
        description="Storage root holding metainfo.json",
        examples=["/media"]
    )
    log_level: Optional[str] = Field(
        None,
        pattern="^(DEBUG|INFO|WARNING|ERROR)$",
        description="Application log level"
    )

    @field_validator('openlist_url', mode='before')
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate URL format."""
        if v and not (v.startswith('http://') or v.startswith('https://')):
            raise ValueError('URL must start with http:// or https://')
        return v

    @field_validator('openlist_root_path', mode='before')
    @classmethod
    def validate_root_path(cls, v: Optional[str]) -> Optional[str]:
        """Root path must be absolute."""
        if v and not v.startswith('/'):
            raise ValueError('Root path must start with /')
        return v

    model_config = {
        "json_schema_extra": {
            "example": {
                "openlist_url": "https://pan.example.com",
                "openlist_root_path": "/media",
                "log_level": "INFO"
            }
        }
    }

"""
OpenList Correction API Routes

This module exposes the endpoint used by the web UI to fix a wrong TMDB
match on a media folder stored in OpenList.

Features:
    - POST /api/openlist/correct: Replace one folder entry in metainfo.json

Responses:
    200 {"success": true, "message": ...}
    400 {"error": ...}            missing folder/tmdbId, bad body, OpenList not configured
    401 {"error": ...}            no valid session cookie
    404 {"error": ...}            metainfo.json does not exist
    500 {"error": ..., "details": ...}  any other failure
"""

import logging
from typing import Callable, Optional

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as RequestValidationError
from sqlalchemy.orm import Session

from metafix.database import get_db
from metafix.models.settings import OpenListConfig, Settings
from metafix.schemas.requests import CorrectionRequest
from metafix.schemas.responses import ErrorResponse, SuccessResponse
from metafix.services.auth import AuthInfo, require_auth
from metafix.services.correction_service import CorrectionService, validate_correction
from metafix.services.exceptions import (
    ConfigError,
    MetaInfoError,
    NotFoundError,
    ValidationError,
    public_details,
)
from metafix.services.metainfo_cache import MetaInfoCache, get_metainfo_cache
from metafix.services.openlist_client import OpenListClient
from metafix.services.structured_logging import set_root_path

logger = logging.getLogger(__name__)

router = APIRouter()


def get_openlist_config_loader(db: Session = Depends(get_db)) -> Callable[[], Optional[OpenListConfig]]:
    """
    FastAPI dependency returning a loader for the OpenList section of the settings.

    Database errors raised by the loader are rendered by the handler.
    """
    return lambda: Settings.get_settings(db).openlist_config()


def get_openlist_transport() -> Optional[httpx.AsyncBaseTransport]:
    """FastAPI dependency for the HTTP transport used by OpenList clients (default: network)."""
    return None


def _error(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body = {'error': error}
    if details is not None:
        body['details'] = details
    return JSONResponse(status_code=status_code, content=body)


@router.post(
    "/api/openlist/correct",
    response_model=SuccessResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def correct_folder(
    request: Request,
    auth_info: AuthInfo = Depends(require_auth),
    load_openlist_config: Callable[[], Optional[OpenListConfig]] = Depends(get_openlist_config_loader),
    cache: MetaInfoCache = Depends(get_metainfo_cache),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_openlist_transport),
):
    """
    Correct the TMDB mapping of a folder.

    Body: {folder, tmdbId, title?, posterPath?, releaseDate?, overview?, voteAverage?, mediaType?}
    """
    try:
        body = await request.json()
        payload = CorrectionRequest.model_validate(body)
        validate_correction(payload)
    except (ValueError, RequestValidationError, ValidationError) as e:
        logger.info(f"Rejected correction from '{auth_info.username}': {e}")
        return _error(400, "Missing or invalid parameters")

    try:
        openlist_config = load_openlist_config()
        if openlist_config is None:
            raise ConfigError("OpenList is not configured")

        set_root_path(openlist_config.root_path)
        client = OpenListClient(
            openlist_config.url,
            openlist_config.token,
            openlist_config.username,
            openlist_config.password,
            transport=transport,
        )
        service = CorrectionService(client, cache, openlist_config.root_path)
        await service.correct(payload)

        return {'success': True, 'message': 'Correction saved'}

    except ConfigError as e:
        logger.warning(f"Correction refused: {e}")
        return _error(400, e.message)
    except NotFoundError as e:
        logger.warning(f"Correction failed: {e}")
        return _error(404, "metainfo.json does not exist")
    except MetaInfoError as e:
        logger.error(f"Correction of '{payload.folder}' failed: {e}")
        return _error(500, "Correction failed", public_details(e))
    except Exception as e:
        logger.exception(f"Unexpected error correcting '{payload.folder}': {type(e).__name__}: {e}")
        return _error(500, "Correction failed", str(e))

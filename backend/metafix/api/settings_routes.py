"""
Settings API Routes for Metafix

This module manages the OpenList storage connection used by the correction
endpoint.

Features:
    - GET /api/settings/openlist: Current settings (secrets masked)
    - PUT /api/settings/openlist: Partial update (clears the metainfo cache, applies log_level)
    - POST /api/settings/openlist/test: Check that OpenList accepts the stored credentials
"""

import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from metafix.api.openlist_routes import get_openlist_transport
from metafix.database import get_db
from metafix.models.settings import Settings
from metafix.schemas.requests import OpenListSettingsUpdateRequest
from metafix.schemas.responses import ConnectionTestResponse
from metafix.services.auth import AuthInfo, require_auth
from metafix.services.exceptions import MetaInfoError
from metafix.services.metainfo_cache import MetaInfoCache, get_metainfo_cache
from metafix.services.openlist_client import OpenListClient
from metafix.services.structured_logging import apply_log_level

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/settings/openlist")
async def get_openlist_settings(
    db: Session = Depends(get_db),
    auth_info: AuthInfo = Depends(require_auth),
):
    """
    Get current OpenList settings.

    Returns:
        Settings as JSON with token and password masked
    """
    try:
        return Settings.get_settings(db).to_dict(mask_secrets=True)
    except Exception as e:
        logger.error(f"Error retrieving settings: {e}")
        raise HTTPException(status_code=500, detail=f"Error retrieving settings: {str(e)}")


@router.put("/api/settings/openlist")
async def update_openlist_settings(
    settings_update: OpenListSettingsUpdateRequest,
    db: Session = Depends(get_db),
    cache: MetaInfoCache = Depends(get_metainfo_cache),
    auth_info: AuthInfo = Depends(require_auth),
):
    """
    Update OpenList settings.

    Only provided fields will be updated. Null/missing fields are ignored.
    Cached metainfo documents are dropped since they may belong to another
    server or root.

    Returns:
        Updated settings (secrets masked)
    """
    try:
        update_data = settings_update.model_dump(exclude_none=True)
        settings = Settings.update_settings(db, **update_data)
        cache.clear()
        if 'log_level' in update_data:
            apply_log_level(update_data['log_level'])

        logger.info(f"Settings updated by '{auth_info.username}': {list(update_data.keys())}")

        return settings.to_dict(mask_secrets=True)

    except Exception as e:
        logger.error(f"Error updating settings: {e}")
        raise HTTPException(status_code=500, detail=f"Error updating settings: {str(e)}")


@router.post("/api/settings/openlist/test", response_model=ConnectionTestResponse)
async def test_openlist_connection(
    db: Session = Depends(get_db),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_openlist_transport),
    auth_info: AuthInfo = Depends(require_auth),
):
    """
    Test the stored OpenList connection.

    Logs in first when username/password are configured, then lists the
    storage root.

    Returns:
        Connection test result
    """
    config = Settings.get_settings(db).openlist_config()
    if config is None:
        raise HTTPException(status_code=400, detail="Please configure OpenList URL and token first")

    client = OpenListClient(
        config.url,
        config.token,
        config.username,
        config.password,
        transport=transport,
    )

    try:
        if config.has_credentials:
            client.token = await OpenListClient.login(
                config.url, config.username, config.password, transport=transport
            )

        listing = await client.list_directory(config.root_path, page=1, per_page=1)
    except MetaInfoError as e:
        logger.warning(f"OpenList connection test failed: {e}")
        return {"status": "error", "message": str(e), "url": config.url}

    if listing.get('code') != 200:
        return {
            "status": "error",
            "message": f"OpenList returned code {listing.get('code')}: {listing.get('message', '')}",
            "url": config.url,
        }

    logger.info("OpenList connection test successful")
    return {
        "status": "success",
        "message": f"OpenList is reachable ({config.root_path})",
        "url": config.url,
    }

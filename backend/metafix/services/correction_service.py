"""
Correction Service for Metafix

Implements the read-modify-write cycle that corrects the TMDB mapping of one
media folder inside an OpenList metainfo.json document.

Workflow:
    1. Validate that folder and tmdbId are present (no network before this)
    2. Read the document from the MetaInfoCache, or fetch it on a miss:
       get_file(<root>/metainfo.json) -> download(raw_url) -> json parse
    3. Replace the folder's entry with a fresh FolderEntry
       (last_updated = now, failed = False)
    4. Upload the whole document back to the same path
    5. Invalidate, then repopulate the cache with the uploaded document

Failure Semantics:
    Any step failure aborts the correction. The cached document is never
    modified in place, so a failed upload leaves the cache as it was. The
    only retry is the client's single re-login on HTTP 401.

Concurrency:
    Corrections against the same root path are serialized with the cache's
    per-root lock, so two requests in one process cannot interleave their
    read and write. Writers in other processes still race (last write wins).
"""

import json
import logging
import time
from typing import Any, Callable, Dict, Optional

from metafix.schemas.metainfo import FolderEntry, dump_metainfo, metainfo_path
from metafix.schemas.requests import CorrectionRequest
from metafix.services.exceptions import NotFoundError, ParseError, ValidationError
from metafix.services.metainfo_cache import MetaInfo, MetaInfoCache
from metafix.services.openlist_client import OpenListClient

logger = logging.getLogger(__name__)


def parse_metainfo(content: str) -> Optional[MetaInfo]:
    """
    Parse metainfo.json text into a document.

    A document without 'folders' gets an empty mapping. JSON null gives None.

    Raises:
        ParseError: If the text is not JSON, not an object, or 'folders' is not an object
    """
    try:
        document = json.loads(content)
    except ValueError as e:
        raise ParseError(f"metainfo.json is not valid JSON: {e}") from e

    if document is None:
        return None

    if not isinstance(document, dict):
        raise ParseError("metainfo.json root is not an object")

    folders = document.setdefault('folders', {})
    if not isinstance(folders, dict):
        raise ParseError("metainfo.json 'folders' is not an object")

    return document


def validate_correction(request: CorrectionRequest) -> None:
    """
    Check required correction fields.

    Raises:
        ValidationError: If folder or tmdbId is missing or empty
    """
    if not request.folder:
        raise ValidationError("Missing required parameter: folder", field='folder')
    if not request.tmdb_id:
        raise ValidationError("Missing required parameter: tmdbId", field='tmdbId')


class CorrectionService:
    """
    Corrects folder entries of the metainfo.json stored under one OpenList root.

    Attributes:
        client: OpenList client used for get/download/upload
        cache: Process-wide metainfo cache
        root_path: Storage root holding metainfo.json
    """

    def __init__(
        self,
        client: OpenListClient,
        cache: MetaInfoCache,
        root_path: str = '/',
        clock: Optional[Callable[[], float]] = None,
    ):
        self.client = client
        self.cache = cache
        self.root_path = root_path or '/'
        self._clock = clock or time.time

    @property
    def document_path(self) -> str:
        return metainfo_path(self.root_path)

    async def fetch_metainfo(self) -> MetaInfo:
        """
        Fetch and parse metainfo.json from OpenList, bypassing the cache.

        Raises:
            RemoteError: If a storage call or the download fails
            NotFoundError: If OpenList reports no such file, or the file holds JSON null
            ParseError: If the content is not a valid document
        """
        path = self.document_path
        file_info = await self.client.get_file(path)

        data = file_info.get('data') if isinstance(file_info, dict) else None
        raw_url = data.get('raw_url') if isinstance(data, dict) else None
        if not raw_url or file_info.get('code') != 200:
            raise NotFoundError(
                f"{path} not found",
                response_data=file_info.get('message') if isinstance(file_info, dict) else None,
            )

        content = await self.client.download(raw_url)
        document = parse_metainfo(content)
        if document is None:
            raise NotFoundError(f"{path} is empty")
        logger.info(f"Loaded {path} ({len(document['folders'])} folders)")
        return document

    async def load_metainfo(self) -> MetaInfo:
        """Return the cached document for this root, fetching it on a miss."""
        document = self.cache.get(self.root_path)
        if document is not None:
            return document
        return await self.fetch_metainfo()

    def _timestamp(self, previous: Any) -> int:
        now_ms = int(self._clock() * 1000)
        if isinstance(previous, dict):
            last = previous.get('last_updated')
            if isinstance(last, int) and not isinstance(last, bool) and now_ms <= last:
                return last + 1
        return now_ms

    def build_entry(self, request: CorrectionRequest, previous: Any = None) -> Dict[str, Any]:
        """
        Build the replacement folder entry for a correction.

        title, poster_path and media_type are copied only when the request
        carried them, so an explicit null is kept and an absent field is omitted.
        """
        optional = {
            name: getattr(request, name)
            for name in FolderEntry.OMITTED_WHEN_UNSET
            if name in request.model_fields_set
        }
        entry = FolderEntry(
            tmdb_id=request.tmdb_id,
            release_date=request.release_date or '',
            overview=request.overview or '',
            vote_average=request.vote_average or 0,
            last_updated=self._timestamp(previous),
            failed=False,
            **optional,
        )
        return entry.to_document()

    async def correct(self, request: CorrectionRequest) -> Dict[str, Any]:
        """
        Replace the TMDB mapping of request.folder and persist metainfo.json.

        Args:
            request: Correction fields

        Returns:
            The folder entry that was written

        Raises:
            ValidationError: If folder or tmdbId is missing
            NotFoundError: If metainfo.json does not exist
            ParseError: If metainfo.json cannot be parsed
            RemoteError: If a storage call fails
            AuthError: If the storage API rejects the credentials
        """
        validate_correction(request)

        async with self.cache.lock(self.root_path):
            current = await self.load_metainfo()

            folders = current.get('folders') or {}
            entry = self.build_entry(request, folders.get(request.folder))
            updated = {**current, 'folders': {**folders, request.folder: entry}}

            path = self.document_path
            await self.client.upload_file(path, dump_metainfo(updated))

            self.cache.invalidate(self.root_path)
            self.cache.set(self.root_path, updated)

        logger.info(
            f"Corrected '{request.folder}' -> TMDB {request.tmdb_id} "
            f"({request.media_type or 'unknown type'}) in {path}"
        )
        return entry

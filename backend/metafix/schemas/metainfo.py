"""
metainfo.json Schemas

The metadata document is kept as a plain dict so that keys this service does
not know about survive a read-modify-write cycle. Only the folder entry
written by a correction is modelled.

Document shape:
    {
      "folders": {
        "<folder name>": {
          "tmdb_id": 603,
          "title": "The Matrix",
          "poster_path": "/f89U3ADr1oiB1s9GkdPOEpXUk5H.jpg",
          "release_date": "1999-03-31",
          "overview": "...",
          "vote_average": 8.2,
          "media_type": "movie",
          "last_updated": 1718000000000,
          "failed": false
        }
      }
    }
"""

import json
from typing import Any, ClassVar, Dict, Optional, Tuple, Union

from pydantic import BaseModel, Field

METAINFO_FILENAME = 'metainfo.json'


class FolderEntry(BaseModel):
    """TMDB mapping of one media folder."""
    OMITTED_WHEN_UNSET: ClassVar[Tuple[str, ...]] = ('title', 'poster_path', 'media_type')

    tmdb_id: Union[int, str]
    title: Optional[str] = None
    poster_path: Optional[str] = None
    release_date: str = ''
    overview: str = ''
    vote_average: Union[int, float] = 0
    media_type: Optional[str] = None
    last_updated: int = Field(..., description="Milliseconds since epoch")
    failed: bool = False

    def to_document(self) -> Dict[str, Any]:
        """
        Serialize for metainfo.json.

        title, poster_path and media_type are omitted when they were never
        set. A value explicitly set to None is written as null.
        """
        document = self.model_dump()
        for name in self.OMITTED_WHEN_UNSET:
            if name not in self.model_fields_set:
                document.pop(name)
        return document


def metainfo_path(root_path: str) -> str:
    """
    Path of metainfo.json under a storage root.

    Exactly one separator is placed between root and file name:
    '/media' and '/media/' both give '/media/metainfo.json'.
    """
    root = root_path or '/'
    return f"{root}{'' if root.endswith('/') else '/'}{METAINFO_FILENAME}"


def dump_metainfo(document: Dict[str, Any]) -> str:
    """Serialize a metadata document as pretty-printed UTF-8 JSON text."""
    return json.dumps(document, ensure_ascii=False, indent=2)

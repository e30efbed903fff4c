from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


# ---------- RESPONSE MODELS ----------
class AttemptInfo(BaseModel):
    name: str
    status: str
    count: int = 0
    error: Optional[str] = None


class ResponseMetadata(BaseModel):
    identifier: str
    source: Optional[str] = None  # matched strategy, "fallback" or None
    matched_strategy: Optional[str] = None
    attempted: List[AttemptInfo] = []
    count: int = 0
    took_ms: int = 0
    related: Optional[Dict[str, Any]] = None  # e.g. the artist a release list was resolved for


class CatalogResponse(BaseModel):
    success: bool
    message: str
    data: List[Dict[str, Any]]
    metadata: ResponseMetadata


class HealthResponse(BaseModel):
    status: str
    store_configured: bool
    store_reachable: Optional[bool] = None
    error: Optional[str] = None


# ---------- ROW SHAPING ----------
def normalize_release(row: Dict[str, Any]) -> Dict[str, Any]:
    """Fill the fields the front end expects on every release."""
    tracks = row.get("tracks") or []
    images = list(row.get("images") or [])
    if row.get("artwork_url") and not images:
        images.append({"url": row["artwork_url"], "height": 300, "width": 300})
    return {
        **row,
        "title": row.get("title") or row.get("name") or "Unknown Release",
        "type": row.get("type") or "album",
        "artists": row.get("artists") or [],
        "tracks": tracks,
        "images": images,
        "release_date": row.get("release_date") or date.today().isoformat(),
        "release_date_precision": row.get("release_date_precision") or "day",
        "external_urls": row.get("external_urls") or {"spotify": row.get("spotify_url") or ""},
        "uri": row.get("spotify_uri") or row.get("uri") or "",
        "total_tracks": row.get("total_tracks") or len(tracks),
    }


def normalize_artist(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        **row,
        "name": row.get("name") or "Unknown Artist",
        "image_url": row.get("image_url") or row.get("profile_image_url") or "",
        "external_urls": row.get("external_urls") or {"spotify": row.get("spotify_url") or ""},
    }

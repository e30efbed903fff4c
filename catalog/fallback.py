"""Fallback payloads served when no strategy finds anything.

A fallback provider is any callable taking the identifier and returning the
substitute payload (or ``None`` for "no fallback"). Handlers receive their
provider through a FastAPI dependency, so deployments and tests can swap it
with ``app.dependency_overrides``.
"""

import copy
from typing import Any, Callable, Dict, List, Optional

FallbackProvider = Callable[[str], Optional[Any]]

BUILDIT_RECORDS_LABEL_ID = "buildit-records"

_FALLBACK_RELEASES: List[Dict[str, Any]] = [
    {
        "id": "7Fsl2iDvkXZpQTF1PuKxXO",
        "title": "You Never Know",
        "type": "single",
        "release_date": "2020-09-28",
        "total_tracks": 1,
        "artwork_url": "https://i.scdn.co/image/ab67616d0000b2734bec23eaf5ffc57f6b1cff7d",
        "spotify_url": "https://open.spotify.com/album/7Fsl2iDvkXZpQTF1PuKxXO",
        "spotify_uri": "spotify:album:7Fsl2iDvkXZpQTF1PuKxXO",
        "artists": [{"id": "37BAm9SFMmFBFoV5VjdUGm", "name": "Monsieur Minimal"}],
        "label_id": BUILDIT_RECORDS_LABEL_ID,
    },
    {
        "id": "5i1Ov3Uw8mbk0Keik0h8qj",
        "title": "Ambient Series EP",
        "type": "album",
        "release_date": "2021-05-15",
        "total_tracks": 4,
        "artwork_url": "https://i.scdn.co/image/ab67616d0000b273e2de2ec0f5d9c9a1e6b0d647",
        "spotify_url": "https://open.spotify.com/album/5i1Ov3Uw8mbk0Keik0h8qj",
        "spotify_uri": "spotify:album:5i1Ov3Uw8mbk0Keik0h8qj",
        "artists": [{"id": "2mpeljBig2IXLXRAFO9AAs", "name": "George Lesley"}],
        "label_id": BUILDIT_RECORDS_LABEL_ID,
    },
    {
        "id": "1yUbD38zXuKr1SeZkOTbU9",
        "title": "Nessun Dorma",
        "type": "album",
        "release_date": "2020-10-29",
        "total_tracks": 10,
        "artwork_url": "https://i.scdn.co/image/ab67616d0000b273ef4d02a8e8782baced0e770c",
        "spotify_url": "https://open.spotify.com/album/1yUbD38zXuKr1SeZkOTbU9",
        "spotify_uri": "spotify:album:1yUbD38zXuKr1SeZkOTbU9",
        "artists": [{"id": "4xPodCBfM05BqrPnCCDuFm", "name": "Casimann"}],
        "label_id": BUILDIT_RECORDS_LABEL_ID,
    },
]


def placeholder_artist(identifier: str) -> Dict[str, Any]:
    return {
        "id": identifier,
        "name": f"Artist {identifier}",
        "image_url": "https://via.placeholder.com/300",
        "spotify_id": f"spotify-{identifier}",
        "spotify_url": f"https://open.spotify.com/artist/placeholder-{identifier}",
        "label_id": "unknown",
    }


def static_releases(identifier: str) -> List[Dict[str, Any]]:
    # callers may mutate the rows
    return copy.deepcopy(_FALLBACK_RELEASES)


def get_artist_fallback() -> FallbackProvider:
    return placeholder_artist


def get_releases_fallback() -> FallbackProvider:
    return static_releases
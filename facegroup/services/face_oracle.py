"""
Face recognition oracle.

The clustering engine only needs ``search_similar_faces``; everything else here
(collection lifecycle, adding/removing faces) is used by the indexing side.
The production adapter talks to the Face++ FaceSet API: a collection is a
FaceSet ``outer_id`` and a face id is a Face++ ``face_token``.
"""

import logging
from typing import List, NamedTuple, Optional, Protocol, Sequence

import httpx

from facegroup.config import settings
from facegroup.core.errors import CollectionNotFoundError, FaceSearchError, DependencyFailureError

log = logging.getLogger("facegroup.oracle")

# Face++ reports a missing FaceSet with these error codes
_MISSING_COLLECTION_ERRORS = ("INVALID_OUTER_ID", "INVALID_FACESET_TOKEN")


class SimilarFace(NamedTuple):
    face_id: str
    similarity: float


class FaceOracle(Protocol):
    async def search_similar_faces(
        self,
        collection_id: str,
        face_id: str,
        max_candidates: int,
        threshold: float,
    ) -> List[SimilarFace]:
        ...


class FacePlusPlusOracle:
    """FaceOracle backed by Face++ FaceSet search."""

    def __init__(
        self,
        endpoint: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        timeout: Optional[float] = None,
        max_results: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = (endpoint or settings.FACEPP_API_ENDPOINT).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.FACEPP_API_KEY
        self.api_secret = api_secret if api_secret is not None else settings.FACEPP_API_SECRET
        self.timeout = timeout or settings.FACEPP_TIMEOUT_SECONDS
        self.max_results = max_results or settings.FACEPP_MAX_RESULTS
        self._transport = transport

    def _auth(self) -> dict:
        return {"api_key": self.api_key, "api_secret": self.api_secret}

    async def _post(self, path: str, data: dict, collection_id: str) -> dict:
        url = f"{self.endpoint}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.post(url, data={**self._auth(), **data})
        except httpx.HTTPError as exc:
            raise FaceSearchError(f"Face++ request to {path} failed: {exc}") from exc
        try:
            obj = r.json()
        except ValueError:
            obj = None
        if r.status_code == 200 and not isinstance(obj, dict):
            raise FaceSearchError(f"Face++ {path} returned an unreadable body")
        if not isinstance(obj, dict):
            obj = {}
        if r.status_code != 200:
            error = str(obj.get("error_message", r.status_code))
            if any(code in error for code in _MISSING_COLLECTION_ERRORS):
                raise CollectionNotFoundError(f"Face collection '{collection_id}' not found")
            raise FaceSearchError(f"Face++ {path} returned {r.status_code}: {error}")
        return obj

    async def search_similar_faces(
        self,
        collection_id: str,
        face_id: str,
        max_candidates: int,
        threshold: float,
    ) -> List[SimilarFace]:
        obj = await self._post(
            "/facepp/v3/search",
            {
                "face_token": face_id,
                "outer_id": collection_id,
                "return_result_count": max(1, min(max_candidates, self.max_results)),
            },
            collection_id,
        )
        matches = []
        try:
            for result in obj.get("results") or []:
                token = result.get("face_token")
                confidence = float(result.get("confidence", 0.0))
                if token and token != face_id and confidence >= threshold:
                    matches.append(SimilarFace(token, confidence))
        except (ValueError, TypeError, AttributeError) as exc:
            raise FaceSearchError(f"Malformed Face++ search response for {face_id}: {exc}") from exc
        return matches

    async def create_collection(self, collection_id: str) -> None:
        await self._post("/facepp/v3/faceset/create", {"outer_id": collection_id}, collection_id)
        log.info("Created face collection %s", collection_id)

    async def delete_collection(self, collection_id: str) -> None:
        await self._post(
            "/facepp/v3/faceset/delete",
            {"outer_id": collection_id, "check_empty": 0},
            collection_id,
        )
        log.info("Deleted face collection %s", collection_id)

    async def index_faces(self, collection_id: str, face_ids: Sequence[str]) -> int:
        """Add face tokens to the collection, five per call (Face++ limit)."""
        added = 0
        for i in range(0, len(face_ids), 5):
            chunk = face_ids[i:i + 5]
            obj = await self._post(
                "/facepp/v3/faceset/addface",
                {"outer_id": collection_id, "face_tokens": ",".join(chunk)},
                collection_id,
            )
            added += int(obj.get("face_added", 0))
        return added

    async def delete_faces(self, collection_id: str, face_ids: Sequence[str]) -> int:
        removed = 0
        for i in range(0, len(face_ids), 1000):
            chunk = face_ids[i:i + 1000]
            obj = await self._post(
                "/facepp/v3/faceset/removeface",
                {"outer_id": collection_id, "face_tokens": ",".join(chunk)},
                collection_id,
            )
            removed += int(obj.get("face_removed", 0))
        return removed


_oracle: Optional[FaceOracle] = None


def get_face_oracle() -> FaceOracle:
    """Process-wide oracle; FastAPI dependency and worker entry point."""
    global _oracle
    if _oracle is None:
        if not (settings.FACEPP_API_KEY and settings.FACEPP_API_SECRET):
            raise DependencyFailureError("Face recognition oracle is not configured")
        _oracle = FacePlusPlusOracle()
    return _oracle

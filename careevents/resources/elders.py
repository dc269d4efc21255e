"""
elders.py - Elder (resident profile) REST client.

POST   /api/elders/              create
GET    /api/elders/              list
GET    /api/elders/{id}/         get
PATCH  /api/elders/{id}/         update (only the fields given)
DELETE /api/elders/{id}/         delete
POST   /api/elders/{id}/audio/   upload audio (multipart: audio_file, elder)

Logs carry elder ids only, never names or free-text details.
"""
import logging
import mimetypes
from pathlib import Path
from typing import Any, BinaryIO, List, Mapping, Optional, Tuple, Union

from careevents.errors import ApiResult, ErrorKind, ResourceError
from careevents.resources.base import ResourceClient, parse_many, parse_one
from careevents.resources.schemas import Elder, ElderAudio, ElderCreate, ElderUpdate

logger = logging.getLogger(__name__)

AudioSource = Union[str, Path, bytes, BinaryIO]

DEFAULT_AUDIO_FILENAME = "recording.webm"

# mimetypes maps several of these to video/* (webm, mp4); recordings are audio
AUDIO_CONTENT_TYPES = {
    ".webm": "audio/webm",
    ".ogg": "audio/ogg",
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
    ".m4a": "audio/mp4",
}


class EldersClient(ResourceClient):

    async def create(self, elder: Union[ElderCreate, Mapping[str, Any]]) -> ApiResult[Elder]:
        result = await self._call(
            "create elder", "POST", self.path("elders"),
            body=elder, body_model=ElderCreate, parse=parse_one(Elder),
        )
        if result.ok:
            logger.info("Created elder elder_id=%s", result.value.id)
        return result

    async def list(self) -> ApiResult[List[Elder]]:
        return await self._call("fetch elders", "GET", self.path("elders"), parse=parse_many(Elder))

    async def get(self, elder_id: int) -> ApiResult[Elder]:
        return await self._call(
            f"fetch elder {elder_id}", "GET", self.path("elders", elder_id),
            parse=parse_one(Elder),
        )

    async def update(
        self,
        elder_id: int,
        changes: Union[ElderUpdate, Mapping[str, Any]],
    ) -> ApiResult[Elder]:
        return await self._call(
            f"update elder {elder_id}", "PATCH", self.path("elders", elder_id),
            body=changes, body_model=ElderUpdate, exclude_unset=True,
            parse=parse_one(Elder),
        )

    async def delete(self, elder_id: int) -> ApiResult[None]:
        result = await self._call(f"delete elder {elder_id}", "DELETE", self.path("elders", elder_id))
        if result.ok:
            logger.info("Deleted elder elder_id=%s", elder_id)
        return result

    async def upload_audio(
        self,
        elder_id: int,
        audio: AudioSource,
        *,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> ApiResult[ElderAudio]:
        """
        Upload a recording for an elder.

        The returned ElderAudio usually has transcript=None: transcription
        and the profile summary are produced later by the backend.
        """
        operation = f"upload audio for elder {elder_id}"
        try:
            content, filename = _read_audio(audio, filename)
        except OSError as exc:
            logger.warning("%s: cannot read audio source: %s", operation, exc)
            return ApiResult.failure(ResourceError(operation, ErrorKind.validation, detail=str(exc)))

        content_type = content_type or _guess_content_type(filename)
        result = await self._call(
            operation, "POST", self.path("elders", elder_id, "audio"),
            files={"audio_file": (filename, content, content_type)},
            form={"elder": str(elder_id)},
            parse=parse_one(ElderAudio),
        )
        if result.ok:
            logger.info("Uploaded audio elder_id=%s audio_id=%s bytes=%d", elder_id, result.value.id, len(content))
        return result


def _guess_content_type(filename: str) -> str:
    suffix = Path(filename).suffix.lower()
    return AUDIO_CONTENT_TYPES.get(suffix) or mimetypes.guess_type(filename)[0] or "application/octet-stream"


def _read_audio(audio: AudioSource, filename: Optional[str]) -> Tuple[bytes, str]:
    if isinstance(audio, (str, Path)):
        path = Path(audio)
        return path.read_bytes(), filename or path.name
    if isinstance(audio, (bytes, bytearray)):
        return bytes(audio), filename or DEFAULT_AUDIO_FILENAME
    name = getattr(audio, "name", None)
    default_name = Path(name).name if isinstance(name, str) else DEFAULT_AUDIO_FILENAME
    return audio.read(), filename or default_name

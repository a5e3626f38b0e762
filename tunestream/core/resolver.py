"""Track resolver backed by the audio-resolution HTTP service.

The service receives a track reference and either streams back the audio
as base64 (``mode: "player"``) or prepares a downloadable file
(``mode: "download"``). Failures are expected (third-party scraping) and
are reported as ``ResolutionFailure``; nothing here retries.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any

import httpx

from tunestream.core.config import ResolverConfig
from tunestream.core.errors import ResolutionFailure
from tunestream.core.models import DownloadLink, ResolvePurpose

logger = logging.getLogger(__name__)


class HttpTrackResolver:
    """Resolve track references through ``POST {base_url}{endpoint}``."""

    def __init__(
        self,
        config: ResolverConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or ResolverConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._config.base_url, timeout=self._config.timeout
        )

    async def __aenter__(self) -> HttpTrackResolver:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this resolver created it."""
        if self._owns_client:
            await self._client.aclose()

    async def resolve(
        self, reference: str, purpose: ResolvePurpose = ResolvePurpose.PLAYBACK
    ) -> bytes:
        """Fetch playable audio for ``reference``.

        Args:
            reference: Opaque track reference (e.g. a Spotify track URL)
            purpose: Only ``PLAYBACK`` yields audio bytes

        Returns:
            Decoded audio buffer

        Raises:
            ResolutionFailure: On network error, error status, or bad payload
        """
        if purpose is not ResolvePurpose.PLAYBACK:
            raise ValueError("resolve() only returns audio for playback; use request_download()")

        data = await self._post(reference, purpose)
        audio = data.get("audio")
        if not isinstance(audio, str) or not audio:
            raise ResolutionFailure(reference, "response carried no audio")
        try:
            buffer = base64.b64decode(audio, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ResolutionFailure(reference, f"undecodable audio: {e}") from e

        logger.debug("[Resolver] %s resolved (%d bytes)", reference, len(buffer))
        return buffer

    async def request_download(self, reference: str) -> DownloadLink:
        """Ask the service to prepare a downloadable file for ``reference``.

        Raises:
            ResolutionFailure: On network error, error status, or bad payload
        """
        data = await self._post(reference, ResolvePurpose.DOWNLOAD)
        url = data.get("download")
        if not isinstance(url, str) or not url:
            raise ResolutionFailure(reference, "response carried no download link")
        return DownloadLink(url=url, filename=data.get("filename"), short_id=data.get("shortId"))

    async def _post(self, reference: str, purpose: ResolvePurpose) -> dict[str, Any]:
        """POST a resolution request and return the successful JSON payload."""
        try:
            response = await self._client.post(
                self._config.endpoint, json={"url": reference, "mode": purpose.value}
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning("[Resolver] %s: HTTP %s", reference, e.response.status_code)
            raise ResolutionFailure(reference, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.warning("[Resolver] %s: %s", reference, e)
            raise ResolutionFailure(reference, str(e) or type(e).__name__) from e
        except ValueError as e:
            logger.warning("[Resolver] %s: invalid JSON response", reference)
            raise ResolutionFailure(reference, "invalid JSON response") from e

        if not isinstance(data, dict) or not data.get("success"):
            raise ResolutionFailure(reference, "service reported failure")
        return data

from __future__ import annotations

import base64
import binascii
import json
import logging
from io import BytesIO
from typing import Any, Optional

import httpx
from PIL import Image
from pydantic import ValidationError

from .config import ProxyConfig
from .errors import InvalidImage, MissingInput, PayloadTooLarge, UpstreamFailure
from .models import (
    AnalyzeRequest,
    CompletionRequest,
    ImageUrl,
    ImageUrlPart,
    TextPart,
    UserMessage,
)
from .prompts import (
    INTERPRETER_PROMPT,
    JSON_OBJECT_RESPONSE_FORMAT,
    build_image_data_uri,
)

logger = logging.getLogger(__name__)


class ImageAnalysisForwarder:
    """Validate an inbound image, send it to the completions API, return the raw reply.

    Each step raises its own :class:`~algolens.proxy.errors.ProxyError` subclass.
    Nothing is cached between calls.
    """

    def __init__(
        self,
        cfg: ProxyConfig,
        api_key: Optional[str] = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.cfg = cfg
        self._api_key = api_key
        self.client = client or httpx.AsyncClient(
            timeout=cfg.upstream_timeout_ms / 1000
        )

    @staticmethod
    def extract_image(body: Any) -> str:
        try:
            return AnalyzeRequest.model_validate(body).image
        except ValidationError as exc:
            raise MissingInput() from exc

    def check_image(self, image: str) -> int:
        """Apply the configured size and format guards; return the decoded size."""

        limit = self.cfg.max_image_bytes
        if not self.cfg.validate_image:
            # Rough size estimate: base64 length * 3/4
            estimated = int(len(image) * 0.75)
            if limit and estimated > limit:
                raise PayloadTooLarge(limit)
            return estimated

        try:
            raw = base64.b64decode("".join(image.split()), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidImage() from exc
        if limit and len(raw) > limit:
            raise PayloadTooLarge(limit)
        try:
            with Image.open(BytesIO(raw)) as img:
                img.verify()
        except Image.DecompressionBombError:
            # Header parsed, so it is an image; pixel count is the upstream's concern.
            logger.warning(
                "[forwarder] Image exceeds Pillow pixel limit; forwarding unverified"
            )
        except (OSError, SyntaxError, ValueError) as exc:
            raise InvalidImage() from exc
        return len(raw)

    def build_request(self, image: str) -> CompletionRequest:
        return CompletionRequest(
            model=self.cfg.model,
            messages=[
                UserMessage(
                    content=[
                        TextPart(text=INTERPRETER_PROMPT),
                        ImageUrlPart(image_url=ImageUrl(url=build_image_data_uri(image))),
                    ]
                )
            ],
            max_tokens=self.cfg.max_tokens,
            response_format=dict(JSON_OBJECT_RESPONSE_FORMAT),
        )

    def _headers(self) -> dict[str, str]:
        # An unset key still goes out; the upstream rejects it with its own 401.
        token = f"Bearer {self._api_key}" if self._api_key else "Bearer"
        return {"Content-Type": "application/json", "Authorization": token}

    async def call_upstream(self, completion: CompletionRequest) -> bytes:
        resp = await self.client.post(
            self.cfg.upstream_url,
            json=completion.to_payload(),
            headers=self._headers(),
        )
        if not 200 <= resp.status_code < 300:
            logger.warning(
                "[forwarder] Upstream returned %s for model %s",
                resp.status_code,
                completion.model,
            )
            raise UpstreamFailure(resp.status_code, resp.text)
        # Parse only to reject non-JSON bodies; the original bytes are relayed.
        json.loads(resp.content)
        return resp.content

    async def analyze(self, body: Any) -> bytes:
        image = self.extract_image(body)
        size = self.check_image(image)
        logger.debug("[forwarder] Forwarding image of ~%d bytes", size)
        completion = self.build_request(image)
        return await self.call_upstream(completion)

    async def aclose(self) -> None:
        await self.client.aclose()

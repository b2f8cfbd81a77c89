from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class AnalyzeRequest(BaseModel):
    image: str = Field(..., min_length=1)


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImageUrl(BaseModel):
    url: str


class ImageUrlPart(BaseModel):
    type: Literal["image_url"] = "image_url"
    image_url: ImageUrl


class UserMessage(BaseModel):
    role: Literal["user"] = "user"
    content: List[Union[TextPart, ImageUrlPart]]


class CompletionRequest(BaseModel):
    model: str
    messages: List[UserMessage]
    max_tokens: int
    response_format: Optional[Dict[str, Any]] = None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)

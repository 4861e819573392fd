"""Provider interface for the vision model behind the extraction endpoint."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from pydantic import BaseModel, Field


class VisionRequest(BaseModel):
    """A single prompt plus page images (bare base64 PNG, no data-URL prefix)."""

    model: str
    prompt: str
    images: List[str] = Field(default_factory=list)


class Provider(ABC):
    """Sends a vision request upstream and returns the model's text output."""

    @abstractmethod
    async def complete(self, request: VisionRequest) -> str:
        """Return the text the model produced.

        Raises:
            UpstreamError: The endpoint answered with a non-success status or
                could not be reached
            ResponseFormatError: The endpoint answered without any text
        """

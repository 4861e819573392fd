# Expose the public provider API for the extraction workflow.

from .base import Provider, VisionRequest
from .openai_provider import OpenAIProvider

__all__ = ["Provider", "VisionRequest", "OpenAIProvider"]

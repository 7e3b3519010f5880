"""
Vision providers.

Interchangeable AI vision backends behind one contract:
- OpenAI (GPT-4o)
- Anthropic (Claude)
- Google (Gemini)
"""

from alt_text.services.providers.base import ImageInput, VisionProvider
from alt_text.services.providers.factory import VisionProviderFactory

__all__ = [
    "ImageInput",
    "VisionProvider",
    "VisionProviderFactory",
]

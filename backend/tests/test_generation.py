"""
Tests for single-image alt-text generation.
"""

import asyncio
import base64

import pytest

from alt_text.core.config import DEFAULT_PROMPT
from alt_text.services.generation import AltTextGenerator, build_prompt
from alt_text.utils.exceptions import FetchError, UnsupportedImageTypeError, VisionProviderError
from conftest import StubProvider


@pytest.fixture
def generator(stub_provider, fetcher):
    return AltTextGenerator(
        provider=stub_provider,
        fetcher=fetcher,
        prompt_template=DEFAULT_PROMPT,
        max_length=80,
        language="English",
    )


def generate(generator, image_url, filename, image_id="1"):
    return asyncio.run(generator.generate(image_id, image_url, filename, "media"))


class TestBuildPrompt:
    """Tests for prompt templating."""

    def test_placeholders(self):
        prompt = build_prompt("{filename} in {language}, max {maxLength}", "cat.png", 60, "Dutch")

        assert prompt == "cat.png in Dutch, max 60"

    def test_missing_filename(self):
        assert build_prompt("{filename}", None, 80, "English") == "unknown"

    def test_extension_appended(self):
        prompt = build_prompt("Base", "a.png", 80, "English", "  Mention colours.  ")

        assert prompt == "Base\n\nMention colours."

    def test_blank_extension_ignored(self):
        assert build_prompt("Base", "a.png", 80, "English", "   ") == "Base"

    def test_default_prompt_is_filled(self):
        prompt = build_prompt(DEFAULT_PROMPT, "beachSunset.jpg", 80, "English")

        assert '"beachSunset.jpg"' in prompt
        assert "max 80 characters" in prompt
        assert "{" not in prompt


class TestAltTextGenerator:
    """Tests for AltTextGenerator.generate()."""

    def test_raster_image(self, generator, stub_provider, png_bytes):
        result = generate(generator, "https://cdn.example.com/media/cat.png", "cat.png")

        assert result.suggested_alt == "A red square on a plain background"
        assert result.id == "1"
        assert result.image_url == "https://cdn.example.com/media/cat.png"

        image, prompt = stub_provider.calls[0]
        assert base64.b64decode(image.base64_data) == png_bytes
        assert image.media_type == "image/png"
        assert '"cat.png"' in prompt

    def test_svg_skips_fetch_and_provider(self, generator, stub_provider, image_server):
        result = generate(generator, "/media/Company-Logo.svg", "Company-Logo.svg")

        assert result.suggested_alt == "company logo"
        assert stub_provider.calls == []
        assert image_server.requests == []

    def test_unsupported_type(self, generator):
        with pytest.raises(UnsupportedImageTypeError) as exc_info:
            generate(generator, "/media/report.pdf", "report.pdf")

        assert exc_info.value.extension == "pdf"
        assert '".pdf"' in exc_info.value.message

    def test_extension_from_url_when_filename_has_none(self, generator, stub_provider):
        generate(generator, "https://cdn.example.com/media/cat.png?w=300", None)

        assert len(stub_provider.calls) == 1

    def test_fetch_failure_propagates(self, generator, stub_provider):
        with pytest.raises(FetchError):
            generate(generator, "https://cdn.example.com/missing.png", "missing.png")

        assert stub_provider.calls == []

    def test_provider_failure_propagates(self, fetcher):
        generator = AltTextGenerator(
            provider=StubProvider(responses=[ValueError("model overloaded")]),
            fetcher=fetcher,
            prompt_template=DEFAULT_PROMPT,
        )

        with pytest.raises(VisionProviderError, match="model overloaded"):
            generate(generator, "https://cdn.example.com/cat.png", "cat.png")

    def test_length_bound_holds(self, fetcher):
        generator = AltTextGenerator(
            provider=StubProvider(default="word " * 100),
            fetcher=fetcher,
            prompt_template=DEFAULT_PROMPT,
            max_length=25,
        )

        first = generate(generator, "https://cdn.example.com/cat.png", "cat.png")
        second = generate(generator, "https://cdn.example.com/cat.png", "cat.png")

        assert len(first.suggested_alt) <= 25
        assert first.suggested_alt == second.suggested_alt

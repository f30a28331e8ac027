"""Tests for the DALLE3 tool adapter (sanitize, call, map, persist, format)."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError

from imagetool.agents.dalle3 import DALLE3, DEFAULT_SYSTEM_PROMPT
from imagetool.clients.dalle import DalleAPIError
from imagetool.core import cost
from imagetool.core.config import settings
from imagetool.core.models import ImageData, ImagesResponse

IMAGE_URL = "https://oaidalleapiprodscus.blob.core.windows.net/private/img-abc123.png?st=1&sig=2"


def _response(url: str | None = IMAGE_URL) -> ImagesResponse:
    return ImagesResponse(created=1700000000, data=[ImageData(url=url)])


@pytest.fixture
def fake_client():
    client = MagicMock()
    client.generate.return_value = _response()
    return client


@pytest.fixture
def fake_storage():
    return MagicMock(return_value="/images/user-1/img-abc123.png")


@pytest.fixture
def tool(fake_client, fake_storage):
    return DALLE3(user_id="user-1", file_strategy="local", client=fake_client, storage=fake_storage)


class TestConstruction:
    def test_missing_api_key_raises(self, monkeypatch):
        monkeypatch.setattr(settings, "dalle_api_key", None)
        with pytest.raises(RuntimeError, match="Missing DALLE_API_KEY environment variable."):
            DALLE3(user_id="u")

    def test_explicit_api_key_wins(self, monkeypatch):
        monkeypatch.setattr(settings, "dalle_api_key", None)
        tool = DALLE3(user_id="u", api_key="sk-explicit")
        assert tool.client.key == "sk-explicit"

    def test_api_key_from_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "dalle_api_key", "sk-env")
        assert DALLE3().client.key == "sk-env"

    def test_system_prompt_override(self, fake_client, monkeypatch):
        monkeypatch.setattr(settings, "dalle3_system_prompt", "Only draw cats.")
        tool = DALLE3(client=fake_client)
        assert tool.description_for_model == "Only draw cats."
        assert DALLE3.manifest()["description_for_model"] == "Only draw cats."

    def test_default_system_prompt(self, fake_client, monkeypatch):
        monkeypatch.setattr(settings, "dalle3_system_prompt", None)
        assert DALLE3(client=fake_client).description_for_model == DEFAULT_SYSTEM_PROMPT


def test_manifest_describes_arguments():
    manifest = DALLE3.manifest()
    assert manifest["name"] == "dalle"
    props = manifest["parameters"]["properties"]
    assert set(props) == {"prompt", "style", "quality", "size"}
    assert props["prompt"]["maxLength"] == 4000


class TestInputValidation:
    def test_missing_prompt(self, tool):
        with pytest.raises(ValueError, match="Missing required field: prompt"):
            tool.run({"style": "vivid"})

    def test_empty_prompt(self, tool):
        with pytest.raises(ValueError, match="Missing required field: prompt"):
            tool.run({"prompt": ""})

    def test_prompt_over_4000_chars(self, tool, fake_client):
        with pytest.raises(ValidationError):
            tool.run({"prompt": "x" * 4001})
        fake_client.generate.assert_not_called()

    def test_unknown_style(self, tool):
        with pytest.raises(ValidationError):
            tool.run({"prompt": "a cat", "style": "cartoon"})


class TestGeneration:
    def test_defaults(self, tool, fake_client):
        tool.run({"prompt": "a cat"})
        fake_client.generate.assert_called_once_with(
            prompt="a cat", quality="standard", style="vivid", size="1024x1024", n=1
        )

    def test_size_alias(self, tool, fake_client):
        tool.run({"prompt": "a cat", "size": "tall", "quality": "hd", "style": "natural"})
        kwargs = fake_client.generate.call_args.kwargs
        assert kwargs["size"] == "1024x1792"
        assert kwargs["quality"] == "hd"
        assert kwargs["style"] == "natural"

    def test_prompt_sanitized_before_call(self, tool, fake_client):
        tool.run({"prompt": 'A "neon" city\nat night\r\nin the rain'})
        sent = fake_client.generate.call_args.kwargs["prompt"]
        assert sent == "A neon city at night in the rain"
        assert "\n" not in sent and '"' not in sent

    def test_remote_failure_reported(self, tool, fake_client, fake_storage):
        fake_client.generate.side_effect = DalleAPIError("Billing hard limit has been reached", 400)

        result = tool.run({"prompt": "a cat"})

        assert "Something went wrong" in result
        assert "Billing hard limit has been reached" in result
        assert result.endswith("Error Message: Billing hard limit has been reached")
        fake_storage.assert_not_called()

    def test_network_failure_reported(self, tool, fake_client):
        fake_client.generate.side_effect = ConnectionError("connection refused")
        result = tool.run({"prompt": "a cat"})
        assert result.startswith("Something went wrong when trying to generate the image.")
        assert "connection refused" in result

    def test_empty_response(self, tool, fake_client):
        fake_client.generate.return_value = None
        result = tool.run({"prompt": "a cat"})
        assert result == (
            "Something went wrong when trying to generate the image. The DALL-E API may be unavailable"
        )

    def test_missing_url(self, tool, fake_client, fake_storage):
        fake_client.generate.return_value = _response(url=None)
        result = tool.run({"prompt": "a cat"})
        assert result.startswith("No image URL returned")
        fake_storage.assert_not_called()

    def test_no_results(self, tool, fake_client):
        fake_client.generate.return_value = ImagesResponse(created=1, data=[])
        assert tool.run({"prompt": "a cat"}).startswith("No image URL returned")


class TestPersistence:
    def test_success_is_markdown(self, tool, fake_storage):
        result = tool.run({"prompt": "a cat"})
        assert result == "![generated image](/images/user-1/img-abc123.png)"
        assert tool.result == result

    def test_storage_arguments(self, tool, fake_storage):
        tool.run({"prompt": "a cat"})
        fake_storage.assert_called_once_with(
            file_strategy="local",
            user_id="user-1",
            url=IMAGE_URL,
            file_name="img-abc123.png",
            base_path="images",
        )

    def test_generated_name_when_url_has_none(self, tool, fake_client, fake_storage):
        fake_client.generate.return_value = _response(url="https://cdn.example.com/render?id=42")
        tool.run({"prompt": "a cat"})
        file_name = fake_storage.call_args.kwargs["file_name"]
        assert file_name.startswith("image_")
        assert file_name.endswith(".png")

    def test_storage_failure_reported(self, tool, fake_storage):
        fake_storage.side_effect = OSError("disk full")
        result = tool.run({"prompt": "a cat"})
        assert result == "Failed to save the image locally. disk full"
        assert tool.result == result


def test_sustained_use_beyond_budget_total(fake_storage, monkeypatch):
    """Total spend past MAX_COST_PER_RUN must not block later calls."""
    monkeypatch.setattr(settings, "max_cost_per_run", 10.0)

    mock_response = MagicMock()
    mock_response.status_code = 200
    mock_response.json.return_value = {"created": 1, "data": [{"url": IMAGE_URL}]}

    with patch("httpx.Client") as mock_client_cls:
        mock_client = MagicMock()
        mock_client.post.return_value = mock_response
        mock_client.__enter__.return_value = mock_client
        mock_client.__exit__.return_value = False
        mock_client_cls.return_value = mock_client

        tool = DALLE3(user_id="user-1", api_key="sk-test", storage=fake_storage)
        results = [tool.run({"prompt": "a cat", "quality": "hd", "size": "wide"}) for _ in range(90)]

    assert all(r == "![generated image](/images/user-1/img-abc123.png)" for r in results)
    assert mock_client.post.call_count == 90
    assert cost.get_current_cost() == Decimal("10.80")

"""Unit tests for the selectable model catalog and system prompt."""

from datetime import date

import pytest

from toolchat.domain.exceptions import UnknownModelError
from toolchat.infrastructure.agent.prompts import build_system_prompt
from toolchat.infrastructure.llm import MODEL_CATALOG, get_model, list_models


@pytest.mark.unit
class TestModelCatalog:
    def test_default_model_is_listed(self):
        spec = get_model("claude-3-5-sonnet")

        assert spec.provider == "Anthropic"
        assert spec.litellm_model.startswith("anthropic/")

    def test_unknown_alias_raises(self):
        with pytest.raises(UnknownModelError) as exc_info:
            get_model("gpt-99")

        assert exc_info.value.status_code == 400
        assert exc_info.value.model_id == "gpt-99"

    def test_every_entry_maps_to_a_provider_prefixed_model(self):
        for alias, spec in MODEL_CATALOG.items():
            assert spec.alias == alias
            assert "/" in spec.litellm_model

    def test_to_dict_shape(self):
        data = get_model("gpt-4o").to_dict()

        assert data["id"] == "gpt-4o"
        assert data["apiVersion"] == "gpt-4o"
        assert "Multimodal" in data["capabilities"]

    def test_list_models_covers_catalog(self):
        assert {m.alias for m in list_models()} == set(MODEL_CATALOG)


@pytest.mark.unit
class TestSystemPrompt:
    def test_includes_given_date(self):
        assert "2025-03-14" in build_system_prompt(date(2025, 3, 14))

    def test_defaults_to_today(self):
        assert date.today().isoformat() in build_system_prompt()

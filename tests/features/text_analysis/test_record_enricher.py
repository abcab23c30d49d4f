"""Tests for the record enrichment stage."""

import pytest

from fleet_commons.core.exceptions import EnrichmentDegraded, TextAnalysisError
from fleet_commons.features.text_analysis import RecordEnricher, contains_text_data
from fleet_commons.features.text_analysis.services.record_enricher import field_tokens


class TestFieldHeuristics:
    @pytest.mark.parametrize("name,tokens", [
        ("yacht_id", ["yacht", "id"]),
        ("photoUrl", ["photo", "url"]),
        ("contact-email", ["contact", "email"]),
        ("description", ["description"]),
    ])
    def test_field_tokens(self, name, tokens):
        assert field_tokens(name) == tokens

    def test_identify_text_fields(self, mock_gateway):
        enricher = RecordEnricher(mock_gateway, min_length=10)
        sample = {
            "id": "0d4c1a4e-7a0b-4b3c-9a51-1f0f3d8b2c11",
            "owner_email": "captain@example.com",
            "documentUrl": "https://example.com/docs/manual.pdf",
            "description": "Twin diesel engines",
            "provider": "Provider with a long name",
            "status": "ok",
            "hours": 1200,
        }

        assert enricher.identify_text_fields(sample) == ["description", "provider"]

    def test_contains_text_data(self):
        assert contains_text_data({"notes": ["short", {"deep": "this is long enough"}]}, 10)
        assert not contains_text_data({"notes": "tiny", "count": 12345678901}, 10)
        assert not contains_text_data(None, 10)


class TestRecordEnricher:
    @pytest.mark.asyncio
    async def test_enrich_adds_companion_fields(self, mock_gateway):
        enricher = RecordEnricher(mock_gateway)
        records = [{"id": 1, "description": "  Twin diesel engines  "}]

        enriched = await enricher.enrich(records)

        assert enriched[0]["description_processed"] == "Twin diesel engines"
        assert enriched[0]["description_language"] == "en"
        assert "description_processed" not in records[0]

    @pytest.mark.asyncio
    async def test_no_text_fields_skips_gateway(self, mock_gateway):
        enricher = RecordEnricher(mock_gateway)

        enriched = await enricher.enrich([{"id": 1, "status": "ok"}])

        assert enriched == [{"id": 1, "status": "ok"}]
        mock_gateway.validate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_input(self, mock_gateway):
        assert await RecordEnricher(mock_gateway).enrich([]) == []

    @pytest.mark.asyncio
    async def test_gateway_failure_raises_enrichment_degraded(self, mock_gateway):
        mock_gateway.validate.side_effect = TextAnalysisError("validate", ConnectionError("down"))
        enricher = RecordEnricher(mock_gateway)

        with pytest.raises(EnrichmentDegraded) as exc_info:
            await enricher.enrich([{"description": "Twin diesel engines"}], stage="subscription")

        assert exc_info.value.details["stage"] == "subscription"

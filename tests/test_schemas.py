"""Tests for task payload and output schemas."""

import pytest
from pydantic import ValidationError

from visibility_engine.analysis.aggregator import aggregate_scope
from visibility_engine.analysis.scoring import score_response
from visibility_engine.analysis.types import AggregationScope
from visibility_engine.schemas.engine import (
    AggregatedBrandMetricOut,
    BatchCompletePayload,
    ScoreResponsePayload,
)


class TestPayloads:
    def test_score_payload_to_domain(self):
        payload = ScoreResponsePayload.model_validate(
            {
                "analysis_id": "an-1",
                "response": {
                    "response_id": "r1",
                    "prompt_id": "p1",
                    "provider_id": "perplexity",
                    "text": "Visa leads.",
                    "tested_at": "2026-03-01T12:00:00Z",
                    "native_urls": ["https://www.visa.com"],
                },
                "brands": [{"brand_id": "b-visa", "brand_name": "Visa", "aliases": ["VISA Inc"]}],
            }
        )
        response = payload.response.to_domain()
        assert response.native_urls == ("https://www.visa.com",)
        assert response.tested_at.year == 2026
        brand = payload.brands[0].to_domain()
        assert brand.aliases == ("VISA Inc",)
        assert brand.is_owned_brand is False

    def test_missing_response_id_rejected(self):
        with pytest.raises(ValidationError):
            ScoreResponsePayload.model_validate(
                {"analysis_id": "an-1", "response": {"response_id": "", "prompt_id": "p1", "provider_id": "x"}}
            )

    def test_negative_total_prompts_rejected(self):
        with pytest.raises(ValidationError):
            BatchCompletePayload.model_validate({"analysis_id": "an-1", "total_prompts": -2})


class TestMetricOut:
    def test_from_domain(self, raw_response, brands):
        metrics = aggregate_scope(AggregationScope.overall(), score_response(raw_response, brands), brands)
        out = AggregatedBrandMetricOut.from_domain(metrics.metric_for("b-hdfc"))
        assert out.brand_id == "b-hdfc"
        assert out.is_owned_brand is True
        assert out.visibility_score == 100.0
        assert out.sentiment_breakdown.positive == 1
        assert out.brand_citations_total == 1

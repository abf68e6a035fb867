"""
Unit tests for completion event wire payloads.
"""
from asset_pipeline.domain.models.analysis import AnalysisResult, FieldPrediction
from asset_pipeline.domain.models.events import FailureEvent, SuccessEvent


class TestSuccessEvent:
    def test_full_payload(self):
        event = SuccessEvent(
            asset_id="A1",
            analysis_result=AnalysisResult(
                brand=FieldPrediction("Nike", 0.8),
                model=FieldPrediction("Air Jordan 1", 0.8),
                colorway=FieldPrediction("Chicago", 0.7),
            ),
            processed_image_url="https://x/p.jpg",
            timestamp="2025-01-01T00:00:00.000Z",
        )
        assert event.to_payload() == {
            "event": "asset_processed",
            "assetId": "A1",
            "status": "active",
            "analysisResult": {
                "brand": {"value": "Nike", "confidence": 0.8},
                "model": {"value": "Air Jordan 1", "confidence": 0.8},
                "colorway": {"value": "Chicago", "confidence": 0.7},
            },
            "processedImageUrl": "https://x/p.jpg",
            "timestamp": "2025-01-01T00:00:00.000Z",
        }

    def test_colorway_and_processed_url_omitted_when_absent(self):
        payload = SuccessEvent(
            asset_id="A1",
            analysis_result=AnalysisResult(brand=FieldPrediction("Nike", 0.9)),
            timestamp="t",
        ).to_payload()
        assert "colorway" not in payload["analysisResult"]
        assert "processedImageUrl" not in payload
        assert payload["analysisResult"]["model"] == {"value": "", "confidence": 0}


class TestFailureEvent:
    def test_payload(self):
        payload = FailureEvent(asset_id="A1", error="AI service returned 503", timestamp="t").to_payload()
        assert payload == {
            "event": "asset_processed",
            "assetId": "A1",
            "status": "failed",
            "error": "AI service returned 503",
            "timestamp": "t",
        }

    def test_default_error_message(self):
        assert FailureEvent(asset_id="A1", timestamp="t").to_payload()["error"] == "Processing failed"

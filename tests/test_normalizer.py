"""Unit tests for reply normalization and JSON recovery."""

import json
import math

import pytest

from sentinel.analysis.models import AnalysisResult
from sentinel.analysis.normalizer import extract_json_object, normalize_reply


class TestNormalizeReply:

    def test_full_reply(self):
        reply = {
            "summary": "Robbery detected",
            "bad_event": "Yes",
            "confidence": 0.87,
            "severity_score": 8.5,
            "anomaly_start": 134,
            "anomaly_end": 149,
            "event_type": "Robbery",
        }

        result = normalize_reply(reply, 30.0)

        assert result.summary == "Robbery detected"
        assert result.bad_event is True
        assert result.reason == ""
        assert result.confidence == 0.87
        assert result.anomaly_start == 134
        assert result.anomaly_end == 149
        assert result.event_type == "Robbery"
        assert result.severity_score == 8.5
        assert result.duration_seconds == 30.0

    def test_empty_reply_gets_all_defaults(self):
        result = normalize_reply({}, 12.5)

        assert result == AnalysisResult(
            summary="Unable to analyze.",
            bad_event=False,
            reason="",
            confidence=0.5,
            anomaly_start=None,
            anomaly_end=None,
            event_type="none",
            duration_seconds=12.5,
        )

    @pytest.mark.parametrize("reply", [None, "oops", 42, ["summary"], 3.5])
    def test_non_mapping_reply_is_treated_as_empty(self, reply):
        result = normalize_reply(reply, 5.0)

        assert result.summary == "Unable to analyze."
        assert result.bad_event is False
        assert result.confidence == 0.5
        assert result.event_type == "none"

    @pytest.mark.parametrize("value", [True, "Yes"])
    def test_bad_event_true(self, value):
        assert normalize_reply({"bad_event": value}, 1.0).bad_event is True

    @pytest.mark.parametrize("value", [False, "No", "yes", "true", 1, None, "", [True]])
    def test_bad_event_false(self, value):
        assert normalize_reply({"bad_event": value}, 1.0).bad_event is False

    def test_bad_event_absent_is_false(self):
        assert normalize_reply({"summary": "quiet"}, 1.0).bad_event is False

    @pytest.mark.parametrize("value", ["0.9", None, True, [0.9], float("nan")])
    def test_non_numeric_confidence_falls_back(self, value):
        assert normalize_reply({"confidence": value}, 1.0).confidence == 0.5

    def test_integer_confidence_accepted(self):
        assert normalize_reply({"confidence": 1}, 1.0).confidence == 1.0

    @pytest.mark.parametrize("value, expected", [(1.7, 1.0), (-0.2, 0.0)])
    def test_confidence_clamped_to_unit_interval(self, value, expected):
        assert normalize_reply({"confidence": value}, 1.0).confidence == expected

    @pytest.mark.parametrize("key", ["summary", "reason", "event_type"])
    def test_text_fields_ignore_wrong_types(self, key):
        result = normalize_reply({key: 123}, 1.0)
        defaults = normalize_reply({}, 1.0)
        assert getattr(result, key) == getattr(defaults, key)

    def test_empty_strings_fall_back_to_defaults(self):
        result = normalize_reply({"summary": "", "event_type": ""}, 1.0)

        assert result.summary == "Unable to analyze."
        assert result.event_type == "none"

    def test_anomaly_window_accepts_numeric_strings(self):
        result = normalize_reply({"anomaly_start": "12.5", "anomaly_end": 20}, 30.0)

        assert result.anomaly_start == 12.5
        assert result.anomaly_end == 20.0

    @pytest.mark.parametrize("value", [-1, "-3", "soon", None, {}, float("inf")])
    def test_anomaly_window_never_negative_or_garbage(self, value):
        result = normalize_reply({"anomaly_start": value, "anomaly_end": value}, 30.0)

        assert result.anomaly_start is None
        assert result.anomaly_end is None

    @pytest.mark.parametrize("key", ["confidence", "anomaly_start", "anomaly_end", "severity_score"])
    def test_integers_too_large_for_float_fall_back(self, key):
        reply = json.loads('{"' + key + '": 1' + "0" * 400 + "}")

        result = normalize_reply(reply, 30.0)

        assert result.confidence == 0.5
        assert result.anomaly_start is None
        assert result.anomaly_end is None
        assert result.severity_score is None

    def test_severity_score_optional(self):
        assert normalize_reply({}, 1.0).severity_score is None
        assert normalize_reply({"severity_score": "high"}, 1.0).severity_score is None

    def test_result_is_immutable(self):
        result = normalize_reply({}, 1.0)
        with pytest.raises(AttributeError):
            result.summary = "changed"

    def test_to_dict_uses_consumer_keys(self):
        result = normalize_reply({"bad_event": True, "anomaly_start": 3}, 9.0)

        assert result.to_dict() == {
            "summary": "Unable to analyze.",
            "badEvent": True,
            "reason": "",
            "confidence": 0.5,
            "anomalyStart": 3.0,
            "anomalyEnd": None,
            "eventType": "none",
            "severityScore": None,
            "duration": 9.0,
        }

    def test_confidence_always_a_real_number(self):
        for reply in ({}, {"confidence": "x"}, {"confidence": 0.3}, {"confidence": float("-inf")}):
            confidence = normalize_reply(reply, 1.0).confidence
            assert isinstance(confidence, float)
            assert math.isfinite(confidence)
            assert 0.0 <= confidence <= 1.0


class TestExtractJsonObject:

    def test_plain_json(self):
        assert extract_json_object('{"bad_event": "Yes"}') == {"bad_event": "Yes"}

    def test_fenced_block(self):
        text = 'Here you go:\n```json\n{"summary": "A fight", "confidence": 0.7}\n```\nDone.'
        assert extract_json_object(text) == {"summary": "A fight", "confidence": 0.7}

    def test_object_embedded_in_prose(self):
        text = 'Verdict follows {"event_type": "Assault", "anomaly_start": 4} end'
        assert extract_json_object(text) == {"event_type": "Assault", "anomaly_start": 4}

    def test_nested_object_in_prose(self):
        text = 'Result: {"summary": "ok", "extra": {"k": 1}} thanks'
        assert extract_json_object(text) == {"summary": "ok", "extra": {"k": 1}}

    @pytest.mark.parametrize("text", ["", "no json here", "[1, 2, 3]", "{broken"])
    def test_unrecoverable_text(self, text):
        assert extract_json_object(text) is None

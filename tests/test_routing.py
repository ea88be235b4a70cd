"""Unit tests for query labels and workflow route decisions."""
import pytest

from astrolynx.routing import (
    QueryLabel,
    Route,
    needs_translation,
    parse_label,
    route_after_answer,
    route_after_classify,
    route_after_output_translation,
    route_after_start,
)


class TestParseLabel:
    """Raw model output maps onto the closed label set; anything else is OTHER."""

    @pytest.mark.parametrize("raw,expected", [
        ("greeting", QueryLabel.GREETING),
        ("  Domain\n", QueryLabel.DOMAIN),
        ("OTHER", QueryLabel.OTHER),
    ])
    def test_known_labels_normalized(self, raw, expected):
        assert parse_label(raw) is expected

    @pytest.mark.parametrize("raw", ["weather", "domain.", "greeting please", "", None])
    def test_unexpected_output_is_other(self, raw):
        assert parse_label(raw) is QueryLabel.OTHER


class TestNeedsTranslation:
    def test_english_does_not_need_translation(self):
        assert needs_translation("en") is False
        assert needs_translation(" EN ") is False

    def test_missing_language_does_not_need_translation(self):
        assert needs_translation(None) is False
        assert needs_translation("") is False

    def test_other_languages_need_translation(self):
        assert needs_translation("hi") is True
        assert needs_translation("hi-en") is True


class TestRouteDecisions:
    """Each predicate returns only the transitions legal from its step."""

    def test_start_goes_to_classify_for_english(self):
        assert route_after_start({"target_language": "en"}) is Route.CLASSIFY

    def test_start_translates_other_languages(self):
        assert route_after_start({"target_language": "hi"}) is Route.TRANSLATE_IN

    def test_domain_label_goes_to_transform(self):
        assert route_after_classify({"query_label": QueryLabel.DOMAIN}) is Route.TRANSFORM

    def test_domain_label_value_goes_to_transform(self):
        """Labels are stored in state as their string value."""
        assert route_after_classify({"query_label": "domain"}) is Route.TRANSFORM

    @pytest.mark.parametrize("label", ["greeting", "other", None])
    def test_non_domain_labels_get_simple_response(self, label):
        assert route_after_classify({"query_label": label}) is Route.SIMPLE_RESPONSE

    def test_after_answer_translate_has_priority(self):
        state = {"target_language": "hi", "audio_requested": True}
        assert route_after_answer(state) is Route.TRANSLATE_OUT

    def test_after_answer_audio(self):
        assert route_after_answer({"target_language": "en", "audio_requested": True}) is Route.SYNTHESIZE_AUDIO

    def test_after_answer_end(self):
        assert route_after_answer({"target_language": "en", "audio_requested": False}) is Route.END

    def test_after_output_translation(self):
        assert route_after_output_translation({"audio_requested": True}) is Route.SYNTHESIZE_AUDIO
        assert route_after_output_translation({"audio_requested": False}) is Route.END

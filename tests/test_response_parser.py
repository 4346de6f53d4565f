"""
Tests for AI response normalization.
"""
from services.response_parser import parse_ai_response


def test_json_response_is_used_first():
    result = parse_ai_response('{"valid":true,"title":"X","confidence_score":0.9}', "Fallback")

    assert result.valid is True
    assert result.title == "X"
    assert result.confidence_score == 0.9


def test_json_embedded_in_prose_with_details():
    text = (
        "Here is the article:\n"
        '{"title": "Win a Trip", "excerpt": "Short", "content": "<p>Body</p>", '
        '"deadline": "2026-12-31", "prize_value": "$2,000", "location": "USA"}\n'
        "Let me know if you need changes."
    )
    result = parse_ai_response(text, "Fallback")

    assert result.valid is True
    assert result.title == "Win a Trip"
    assert result.content == "<p>Body</p>"
    assert result.deadline == "2026-12-31"
    assert result.prize_value == "$2,000"
    assert result.location == "USA"
    # confidence_score missing
    assert result.confidence_score == 0.8


def test_json_invalid_gets_reason():
    result = parse_ai_response('{"valid": false}', "Fallback")

    assert result.valid is False
    assert result.title == "Fallback"
    assert result.reason


def test_json_invalid_keeps_model_reason():
    result = parse_ai_response('{"valid": false, "reason": "Expired contest"}', "Fallback")

    assert result.reason == "Expired contest"


def test_delimited_segments():
    result = parse_ai_response("excerpt [gpt] Title Here [gpt] <p>body</p>", "Fallback")

    assert result.valid is True
    assert result.excerpt == "excerpt"
    assert result.title == "Title Here"
    assert result.content == "<p>body</p>"
    assert result.confidence_score == 0.8


def test_delimited_segments_marker_is_case_insensitive_and_excerpt_capped():
    text = "[GPT]\n" + "e" * 300 + "\n[Gpt]\nA Title\n[gpt]\n<article>x</article>"
    result = parse_ai_response(text, "Fallback")

    assert len(result.excerpt) == 160
    assert result.title == "A Title"
    assert result.content == "<article>x</article>"


def test_too_few_segments_fall_through():
    result = parse_ai_response("only [gpt] two", "Fallback")

    assert result.valid is True
    assert result.title == "Fallback"
    assert result.confidence_score == 0.7


def test_rejection_phrase():
    result = parse_ai_response("Sorry, this is not a valid scholarship", "Fallback")

    assert result.valid is False
    assert result.title == "Fallback"
    assert result.reason == "Content not suitable for processing"


def test_invalid_content_marker():
    assert parse_ai_response("INVALID_CONTENT", "Fallback").valid is False


def test_passthrough():
    result = parse_ai_response("Just some prose", "Fallback")

    assert result.valid is True
    assert result.title == "Fallback"
    assert result.content == "Just some prose"
    assert result.confidence_score == 0.7


def test_malformed_json_falls_back_without_raising():
    result = parse_ai_response("{not json at all", "Fallback")

    assert result.valid is True
    assert result.content == "{not json at all"


def test_json_confidence_is_clamped_to_unit_range():
    high = parse_ai_response('{"valid":true,"title":"T","confidence_score":45}', "Fallback")
    low = parse_ai_response('{"valid":true,"title":"T","confidence_score":-0.3}', "Fallback")

    assert high.confidence_score == 1.0
    assert low.confidence_score == 0.0


def test_json_confidence_nan_and_bool_use_default():
    nan = parse_ai_response('{"valid":true,"title":"T","confidence_score":NaN}', "Fallback")
    boolean = parse_ai_response('{"valid":true,"title":"T","confidence_score":true}', "Fallback")
    text = parse_ai_response('{"valid":true,"title":"T","confidence_score":"high"}', "Fallback")

    assert nan.confidence_score == 0.8
    assert boolean.confidence_score == 0.8
    assert text.confidence_score == 0.8


def test_json_inside_delimited_article_does_not_win():
    """An unrelated object quoted in the article body leaves segment parsing in charge."""
    text = 'Excerpt [gpt] Real Title [gpt] <article>Send {"name": "you"} to apply</article>'
    result = parse_ai_response(text, "Fallback")

    assert result.title == "Real Title"
    assert result.excerpt == "Excerpt"
    assert result.content == '<article>Send {"name": "you"} to apply</article>'

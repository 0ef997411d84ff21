"""
Tests for completion wire types.
"""
import pytest

from r_agent.errors import DecodeError
from r_agent.providers import Choice, CompletionResponse


class TestCompletionResponse:
    def test_from_dict(self, completion_body):
        response = CompletionResponse.from_dict(completion_body(" hi"))

        assert response.text == " hi"
        assert response.object == "text_completion"
        assert response.created == 1700000000
        assert response.extra["usage"]["total_tokens"] == 7

    def test_round_trip_is_lossless(self, completion_body):
        body = completion_body(" hi", choices=[{"text": "a", "index": 0}, {"text": "b", "index": 1, "x": [1]}])

        assert CompletionResponse.from_dict(body).to_dict() == body

    @pytest.mark.parametrize("field", ["id", "object", "created", "model"])
    def test_missing_field(self, completion_body, field):
        body = completion_body()
        del body[field]

        with pytest.raises(DecodeError, match=field):
            CompletionResponse.from_dict(body)

    def test_wrong_type(self, completion_body):
        with pytest.raises(DecodeError):
            CompletionResponse.from_dict(completion_body(created="yesterday"))

    def test_boolean_created_rejected(self, completion_body):
        with pytest.raises(DecodeError):
            CompletionResponse.from_dict(completion_body(created=True))

    def test_not_an_object(self):
        with pytest.raises(DecodeError):
            CompletionResponse.from_dict(["choices"])


class TestChoice:
    def test_text_required(self):
        with pytest.raises(DecodeError):
            Choice.from_dict({"index": 0})

    def test_optional_fields(self):
        choice = Choice.from_dict({"text": "x"})

        assert choice.index is None
        assert choice.finish_reason is None
        assert choice.to_dict() == {"text": "x"}

import json
from unittest.mock import MagicMock

import pytest

from conftest import make_question, questions_payload
from config.settings import Settings
from models.question_models import Question
from services.errors import ConfigurationError, ParseError, UpstreamError, ValidationError
from services.relay_service import RelayService
from services.response_normalizer import APOLOGY_MESSAGE


def _question():
    return Question(**make_question(1))


@pytest.mark.parametrize("grade,subject", [(None, "Toán"), (9, None), (0, "Toán"), (9, "")])
def test_missing_grade_or_subject(relay, fake_llm, grade, subject):
    with pytest.raises(ValidationError, match="Missing grade or subject"):
        relay.generate_questions(grade, subject, 5)
    fake_llm.complete.assert_not_called()


@pytest.mark.parametrize("grade", [5, 13, -1])
def test_grade_out_of_range(relay, grade):
    with pytest.raises(ValidationError, match="between 6 and 12"):
        relay.generate_questions(grade, "Toán", 5)


def test_non_positive_count_rejected(relay):
    with pytest.raises(ValidationError):
        relay.generate_questions(9, "Toán", 0)


def test_missing_credential_skips_network_call(fake_llm):
    relay = RelayService(Settings(GROQ_API_KEY=None, _env_file=None), llm=fake_llm)
    with pytest.raises(ConfigurationError):
        relay.generate_questions(9, "Toán", 5)
    with pytest.raises(ConfigurationError):
        relay.explain_answer(_question(), "B")
    fake_llm.complete.assert_not_called()


def test_generate_questions_normalizes_answers(relay, fake_llm):
    fake_llm.complete.return_value = questions_payload(5, answer="b")
    questions = relay.generate_questions(9, "Toán", 5)

    assert len(questions) == 5
    assert questions[0].answer == "B"
    prompt = fake_llm.complete.call_args.args[0]
    assert "grade 9" in prompt and "Mathematics" in prompt
    assert fake_llm.complete.call_args.kwargs == {"json_mode": True}


def test_count_defaults_to_twenty(relay, fake_llm):
    fake_llm.complete.return_value = questions_payload(25)
    assert len(relay.generate_questions(8, "all", None)) == 20
    assert "Create 20 multiple choice" in fake_llm.complete.call_args.args[0]


def test_result_never_exceeds_count(relay, fake_llm):
    fake_llm.complete.return_value = questions_payload(10)
    assert len(relay.generate_questions(10, "Lý", 4)) == 4


def test_short_batch_is_not_padded(relay, fake_llm):
    fake_llm.complete.return_value = questions_payload(2)
    questions = relay.generate_questions(10, "Lý", 6)
    assert len(questions) == 2
    for q in questions:
        assert len(q.options) == 4
        assert q.answer in ("A", "B", "C", "D")


def test_upstream_error_propagates(relay, fake_llm):
    fake_llm.complete.side_effect = UpstreamError("LLM API failed: timeout")
    with pytest.raises(UpstreamError, match="timeout"):
        relay.generate_questions(9, "Toán", 5)
    assert fake_llm.complete.call_count == 1


def test_unparseable_reply_raises_parse_error(relay, fake_llm):
    fake_llm.complete.return_value = "no json here"
    with pytest.raises(ParseError):
        relay.generate_questions(9, "Toán", 5)


def test_explain_answer_requires_question_and_answer(relay):
    with pytest.raises(ValidationError, match="Missing question or answer"):
        relay.explain_answer(None, "B")
    with pytest.raises(ValidationError, match="Missing question or answer"):
        relay.explain_answer(_question(), "")


def test_explain_answer_rejects_bad_letters(relay):
    with pytest.raises(ValidationError):
        relay.explain_answer(_question(), "F")
    with pytest.raises(ValidationError):
        relay.explain_answer(_question(), "B", "Z")


def test_explain_answer_returns_cleaned_text(relay, fake_llm):
    fake_llm.complete.return_value = "  Vì 2 + 2 = 4 nên đáp án là B.  "
    assert relay.explain_answer(_question(), "b", "c") == "Vì 2 + 2 = 4 nên đáp án là B."

    prompt = fake_llm.complete.call_args.args[0]
    assert "CORRECT ANSWER: B" in prompt
    assert "USER'S ANSWER: C (INCORRECT)" in prompt
    assert fake_llm.complete.call_args.kwargs == {}


def test_explain_answer_empty_reply_gets_apology(relay, fake_llm):
    fake_llm.complete.return_value = ""
    assert relay.explain_answer(_question(), "B") == APOLOGY_MESSAGE


def test_llm_client_built_lazily_from_settings(test_settings, monkeypatch):
    built = MagicMock()
    built.complete.return_value = json.dumps([make_question(1)])
    monkeypatch.setattr("services.relay_service.LLMClient.from_settings", lambda s: built)

    relay = RelayService(test_settings)
    assert len(relay.generate_questions(6, "Sinh", 1)) == 1
    built.complete.assert_called_once()

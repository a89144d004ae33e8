# services/response_normalizer.py

import json
import logging
import re
from enum import Enum
from typing import Any, List, Optional, Tuple

from models.question_models import Question
from services.errors import ParseError

logger = logging.getLogger(__name__)

VALID_ANSWERS = ("A", "B", "C", "D")
DEFAULT_ANSWER = "A"
OPTION_COUNT = 4

APOLOGY_MESSAGE = "Xin lỗi, không thể tạo giải thích cho câu hỏi này. Vui lòng thử lại."

JSON_FENCE = "```json"
FENCE = "```"
BRACE_SPAN = re.compile(r"\{[\s\S]*\}")
FENCED_BLOCK = re.compile(r"```[\s\S]*?```")

_NOT_DECODED = object()


class PayloadShape(str, Enum):
    WRAPPER = "wrapper"            # {"questions": [...]}
    LIST = "list"                  # [...]
    SINGLE = "single"              # {"subject": ..., "text": ..., ...}
    UNRECOGNIZED = "unrecognized"


def strip_fences(text: str) -> str:
    """Keep the body of a ```json block, or whatever precedes the first fence."""
    if JSON_FENCE in text:
        text = text.split(JSON_FENCE, 1)[1]
    if FENCE in text:
        text = text.split(FENCE, 1)[0]
    return text.strip()


def _decode(text: Optional[str]) -> Any:
    if not text:
        return _NOT_DECODED
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        return _NOT_DECODED


def _brace_span(text: str) -> Optional[str]:
    match = BRACE_SPAN.search(text)
    return match.group(0) if match else None


def extract_payload(raw_text: str) -> Any:
    """
    Recover a JSON value from a model reply.

    Candidates are tried in order: the fence-processed text, the first
    {...} span of that text, then the first {...} span of the raw text.
    Raises ParseError only once every candidate has failed.
    """
    unfenced = strip_fences(raw_text)
    candidates = (
        ("strict", unfenced),
        ("brace span", _brace_span(unfenced)),
        ("raw brace span", _brace_span(raw_text)),
    )

    for stage, candidate in candidates:
        value = _decode(candidate)
        if value is not _NOT_DECODED:
            if stage != "strict":
                logger.info("Recovered JSON from model reply via %s", stage)
            return value

    logger.error("❌ No JSON found in response. Preview: %s", raw_text[:200])
    raise ParseError("Cannot parse AI response")


def classify_payload(payload: Any) -> Tuple[PayloadShape, List[Any]]:
    if isinstance(payload, dict):
        if isinstance(payload.get("questions"), list):
            return PayloadShape.WRAPPER, payload["questions"]
        if payload.get("subject") and payload.get("text"):
            return PayloadShape.SINGLE, [payload]
    elif isinstance(payload, list):
        return PayloadShape.LIST, payload
    return PayloadShape.UNRECOGNIZED, []


def normalize_answer(value: Any) -> str:
    answer = str(value or DEFAULT_ANSWER).upper()[:1]
    return answer if answer in VALID_ANSWERS else DEFAULT_ANSWER


def normalize_question(candidate: Any) -> Optional[Question]:
    """Return a Question, or None when the candidate cannot satisfy the schema."""
    if not isinstance(candidate, dict):
        return None
    if not candidate.get("subject") or not candidate.get("text"):
        return None
    options = candidate.get("options")
    if not isinstance(options, list) or len(options) != OPTION_COUNT:
        return None

    return Question(
        subject=str(candidate["subject"]),
        text=str(candidate["text"]),
        options=[str(option) for option in options],
        answer=normalize_answer(candidate.get("answer")),
    )


def parse_questions(raw_text: str, max_count: int) -> List[Question]:
    """
    Turn a raw model reply into at most ``max_count`` valid questions.

    Invalid entries are skipped, not fatal; a short or empty list is a
    normal outcome. ParseError is raised only when no JSON can be found.
    """
    logger.info("📝 Parsing AI response (%d chars)", len(raw_text))

    shape, candidates = classify_payload(extract_payload(raw_text))
    if shape is PayloadShape.UNRECOGNIZED:
        logger.warning("⚠️  Unrecognized payload shape, no questions extracted")

    questions: List[Question] = []
    for index, candidate in enumerate(candidates):
        if len(questions) >= max_count:
            break
        question = normalize_question(candidate)
        if question is None:
            logger.warning("⚠️  Skipping invalid question %d", index)
            continue
        questions.append(question)

    return questions


def clean_explanation(raw_text: str) -> str:
    explanation = FENCED_BLOCK.sub("", raw_text or "").strip()
    return explanation or APOLOGY_MESSAGE

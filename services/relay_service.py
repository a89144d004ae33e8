# services/relay_service.py

import logging
from functools import lru_cache
from typing import List, Optional

from config.settings import Settings, settings as app_settings
from models.question_models import Question
from services.errors import ConfigurationError, ValidationError
from services.llm_client import LLMClient
from services.prompt_builder import build_explanation_prompt, build_generation_prompt
from services.response_normalizer import VALID_ANSWERS, clean_explanation, parse_questions

logger = logging.getLogger(__name__)

MIN_GRADE = 6
MAX_GRADE = 12
DEFAULT_QUESTION_COUNT = 20

class RelayService:
    """
    Prompt -> upstream LLM -> normalized result.

    Every method makes at most one upstream call and raises a RelayError
    subclass on failure; nothing is retried.
    """

    def __init__(self, settings: Settings, llm: Optional[LLMClient] = None):
        self.settings = settings
        self._llm = llm

    def _get_llm(self) -> LLMClient:
        if not self.settings.GROQ_API_KEY:
            logger.error("❌ No GROQ_API_KEY configured")
            raise ConfigurationError("Server not configured properly")
        if self._llm is None:
            self._llm = LLMClient.from_settings(self.settings)
        return self._llm

    def generate_questions(
        self,
        grade: Optional[int],
        subject: Optional[str],
        count: Optional[int] = DEFAULT_QUESTION_COUNT,
    ) -> List[Question]:
        if not grade or not subject:
            raise ValidationError("Missing grade or subject")
        if grade < MIN_GRADE or grade > MAX_GRADE:
            raise ValidationError(f"Grade must be between {MIN_GRADE} and {MAX_GRADE}")
        if count is None:
            count = DEFAULT_QUESTION_COUNT
        if count <= 0:
            raise ValidationError("Number of questions must be a positive integer")

        llm = self._get_llm()
        logger.info("📚 Generating: Grade %s, Subject: %s, Count: %s", grade, subject, count)

        prompt = build_generation_prompt(grade, subject, count)
        raw = llm.complete(prompt, json_mode=True)
        questions = parse_questions(raw, count)[:count]

        logger.info("✅ Generated %d questions", len(questions))
        return questions

    def explain_answer(
        self,
        question: Optional[Question],
        correct_answer: Optional[str],
        user_answer: Optional[str] = None,
    ) -> str:
        if question is None or not correct_answer:
            raise ValidationError("Missing question or answer")

        correct_answer = correct_answer.strip().upper()
        if correct_answer not in VALID_ANSWERS:
            raise ValidationError("Answer must be one of A, B, C, D")
        if user_answer:
            user_answer = user_answer.strip().upper()
            if user_answer not in VALID_ANSWERS:
                raise ValidationError("User answer must be one of A, B, C, D")

        llm = self._get_llm()
        logger.info("📝 Explaining answer...")

        prompt = build_explanation_prompt(question, correct_answer, user_answer or None)
        explanation = clean_explanation(llm.complete(prompt))

        logger.info("✅ Generated explanation")
        return explanation

@lru_cache
def get_relay_service() -> RelayService:
    return RelayService(app_settings)

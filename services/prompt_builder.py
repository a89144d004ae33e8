# services/prompt_builder.py

from typing import Optional
from models.question_models import Question

SUBJECT_MAP = {
    "Toán": "Mathematics",
    "Lý": "Physics",
    "Hóa": "Chemistry",
    "Sinh": "Biology",
    "Văn": "Literature",
    "Anh": "English",
    "Sử": "History",
    "Địa": "Geography",
}

ALL_SUBJECTS = "all"

GENERATION_TEMPLATE = """You are a Vietnamese teacher. Create {count} multiple choice questions for grade {grade} in Vietnam, {subject_text}.

IMPORTANT REQUIREMENTS:
1. Return ONLY JSON, no other text
2. JSON format:
{{
  "questions": [
    {{
      "subject": "Subject Name",
      "text": "Clear question text",
      "options": ["A. Option A", "B. Option B", "C. Option C", "D. Option D"],
      "answer": "A"
    }}
  ]
}}

RULES:
- Questions must follow Vietnamese curriculum for grade {grade}
- Correct answers should be evenly distributed among A,B,C,D
- Each question must have 4 options
- Answer must be "A", "B", "C", or "D"
- Questions should be clear and unambiguous"""

EXPLANATION_TEMPLATE = """You are a Vietnamese teacher. Please explain the following question and answer.

QUESTION: {text}
SUBJECT: {subject}
CORRECT ANSWER: {correct_answer}
{user_line}

Please provide a clear, educational explanation in Vietnamese that:
1. Explains why the correct answer is right
2. Explains why other options are wrong (if applicable)
3. Provides additional context or examples to help understand the concept
4. Keep the explanation concise but informative (about 2-3 sentences)

Return ONLY the explanation text, no additional formatting or JSON."""


def resolve_subject_text(subject: str) -> str:
    if subject == ALL_SUBJECTS:
        return "random subjects: " + ", ".join(SUBJECT_MAP.values())
    return f"{SUBJECT_MAP.get(subject, subject)} subject"


def build_generation_prompt(grade: int, subject: str, count: int) -> str:
    """
    Render the question-generation instruction.

    Vietnamese subject names are translated to English; unknown names are
    passed through as-is and "all" expands to the eight core subjects.
    """
    return GENERATION_TEMPLATE.format(
        count=count,
        grade=grade,
        subject_text=resolve_subject_text(subject),
    )


def build_explanation_prompt(
    question: Question,
    correct_answer: str,
    user_answer: Optional[str] = None,
) -> str:
    user_line = ""
    if user_answer:
        verdict = "CORRECT" if user_answer == correct_answer else "INCORRECT"
        user_line = f"USER'S ANSWER: {user_answer} ({verdict})"

    return EXPLANATION_TEMPLATE.format(
        text=question.text,
        subject=question.subject,
        correct_answer=correct_answer,
        user_line=user_line,
    )

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional

AnswerLetter = Literal["A", "B", "C", "D"]

class Question(BaseModel):
    subject: str
    text: str
    options: List[str] = Field(min_length=4, max_length=4)
    answer: AnswerLetter

    model_config = {
        "json_schema_extra": {
            "example": {
                "subject": "Toán",
                "text": "2 + 2 = ?",
                "options": ["A. 3", "B. 4", "C. 5", "D. 6"],
                "answer": "B"
            }
        }
    }

class GenerateQuestionsBody(BaseModel):
    # Presence and range are checked by the relay so that failures map to 400, not 422
    grade: Optional[int] = None
    subject: Optional[str] = None
    num: Optional[int] = 20

class ExplainAnswerBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: Optional[Question] = None
    answer: Optional[str] = None
    user_answer: Optional[str] = Field(default=None, alias="userAnswer")

from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
from datetime import date, datetime

class SubjectStats(BaseModel):
    answered: int = 0
    correct: int = 0
    total: int = 0

class SkillAssessment(BaseModel):
    overall: int = 0
    subjects: Dict[str, int] = Field(default_factory=dict)
    tier: Optional[str] = None
    last_updated: Optional[datetime] = None

class Stats(BaseModel):
    games_played: int = 0
    best_score: int = 0
    total_score: int = 0
    questions_answered: int = 0
    correct_answers: int = 0
    total_questions: int = 0
    # Insertion ordered; the skill assessment folds subjects in first-seen order
    subject_stats: Dict[str, SubjectStats] = Field(default_factory=dict)
    skill_assessment: SkillAssessment = Field(default_factory=SkillAssessment)

class UserSettings(BaseModel):
    volume: float = 0.8
    sound_enabled: bool = True
    game_speed: float = 1.0
    difficulty: str = "easy"
    language: str = "vi"
    bird_color: int = 0
    bg_color: int = 0
    show_explanations: bool = True
    auto_continue: bool = False

class UserAccount(BaseModel):
    id: str
    username: str
    password_digest: str
    birth_date: date
    gender: str
    created_at: datetime
    stats: Stats = Field(default_factory=Stats)
    settings: UserSettings = Field(default_factory=UserSettings)

    def public_view(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude={"password_digest"})

# --- Request bodies for the account routes ---

class UserCreate(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Optional[str] = None

class UserLogin(BaseModel):
    username: str
    password: str

class AnswerEvent(BaseModel):
    subject: str
    is_correct: bool

class GameEvent(BaseModel):
    score: int = Field(ge=0)

class SettingsUpdate(BaseModel):
    volume: Optional[float] = None
    sound_enabled: Optional[bool] = None
    game_speed: Optional[float] = None
    difficulty: Optional[str] = None
    language: Optional[str] = None
    bird_color: Optional[int] = None
    bg_color: Optional[int] = None
    show_explanations: Optional[bool] = None
    auto_continue: Optional[bool] = None

class AccountDelete(BaseModel):
    password: str

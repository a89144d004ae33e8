# services/auth_service.py

import json
import logging
import threading
import uuid
from datetime import date, datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict, List, Optional, Union

from passlib.context import CryptContext

from config.settings import settings
from models.user_model import SkillAssessment, Stats, UserAccount, UserSettings
from services import score_model
from services.storage import JsonFileStorage

logger = logging.getLogger(__name__)

USERS_KEY = "flappyBrainUsers"
CURRENT_USER_KEY = "flappyBrainCurrentUser"

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
PASSWORD_MIN_LENGTH = 6
MIN_AGE = 6
MAX_AGE = 100

# Shown verbatim by the Vietnamese game client
MSG_MISSING_FIELDS = "Vui lòng điền đầy đủ thông tin"
MSG_USERNAME_LENGTH = f"Tên đăng nhập phải từ {USERNAME_MIN_LENGTH}-{USERNAME_MAX_LENGTH} ký tự"
MSG_USERNAME_TAKEN = "Tên đăng nhập đã tồn tại"
MSG_PASSWORD_LENGTH = f"Mật khẩu phải có ít nhất {PASSWORD_MIN_LENGTH} ký tự"
MSG_UNDERAGE = f"Bạn phải từ {MIN_AGE} tuổi trở lên"
MSG_INVALID_BIRTH_DATE = "Ngày sinh không hợp lệ"
MSG_REGISTERED = "Đăng ký thành công!"
MSG_NO_ACCOUNT = "Tài khoản không tồn tại"
MSG_WRONG_PASSWORD = "Mật khẩu không đúng"
MSG_LOGGED_IN = "Đăng nhập thành công!"
MSG_LOGGED_OUT = "Đã đăng xuất"
MSG_NOT_LOGGED_IN = "Chưa đăng nhập"
MSG_DELETED = "Đã xóa tài khoản thành công"

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def _failure(message: str) -> Dict[str, Any]:
    return {"success": False, "message": message}


def _synchronized(method):
    """Run the method under the service lock; endpoints call in from a threadpool."""
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


class AccountService:
    """
    Local accounts and per-user statistics over a key/value storage.

    The account list is the source of truth. The current-user entry only
    remembers which account is signed in and is re-materialized by id;
    every mutation rewrites both keys in full.
    """

    def __init__(self, storage, clock: Optional[Callable[[], datetime]] = None):
        self.storage = storage
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.current_user: Optional[UserAccount] = None
        self.is_logged_in = False
        # Reentrant: delete_account calls logout while holding it
        self._lock = threading.RLock()
        self.users: List[UserAccount] = self._load_users()

    # --- persistence ---

    def _load_users(self) -> List[UserAccount]:
        raw = self.storage.get_item(USERS_KEY)
        if not raw:
            return []
        return [UserAccount.model_validate(u) for u in json.loads(raw)]

    def _save_users(self) -> None:
        payload = [u.model_dump(mode="json") for u in self.users]
        self.storage.set_item(USERS_KEY, json.dumps(payload, ensure_ascii=False))

    def _save_current_user(self) -> None:
        if self.current_user is not None:
            self.storage.set_item(CURRENT_USER_KEY, self.current_user.model_dump_json())

    def _save_user_data(self) -> None:
        if self.current_user is None:
            return
        for index, user in enumerate(self.users):
            if user.id == self.current_user.id:
                self.users[index] = self.current_user
                self._save_users()
                self._save_current_user()
                return
        logger.warning("Current user %s is missing from the account list", self.current_user.id)

    def _find_user(self, username: str) -> Optional[UserAccount]:
        wanted = username.strip().lower()
        return next((u for u in self.users if u.username.lower() == wanted), None)

    def username_exists(self, username: str) -> bool:
        return self._find_user(username) is not None

    def _age_on_today(self, birth_date: date) -> int:
        # Calendar-year difference, birthdays within the year are not considered
        return self.clock().date().year - birth_date.year

    # --- account lifecycle ---

    @_synchronized
    def register(
        self,
        username: Optional[str],
        password: Optional[str],
        birth_date: Optional[Union[date, str]],
        gender: Optional[str],
    ) -> Dict[str, Any]:
        if not username or not password or not birth_date or not gender:
            return _failure(MSG_MISSING_FIELDS)

        username = username.strip()
        if len(username) < USERNAME_MIN_LENGTH or len(username) > USERNAME_MAX_LENGTH:
            return _failure(MSG_USERNAME_LENGTH)
        if self.username_exists(username):
            return _failure(MSG_USERNAME_TAKEN)
        if len(password) < PASSWORD_MIN_LENGTH:
            return _failure(MSG_PASSWORD_LENGTH)

        if isinstance(birth_date, str):
            try:
                birth_date = date.fromisoformat(birth_date)
            except ValueError:
                return _failure(MSG_INVALID_BIRTH_DATE)

        age = self._age_on_today(birth_date)
        if age < MIN_AGE:
            return _failure(MSG_UNDERAGE)
        if age > MAX_AGE:
            return _failure(MSG_INVALID_BIRTH_DATE)

        user = UserAccount(
            id=uuid.uuid4().hex,
            username=username,
            password_digest=pwd_context.hash(password),
            birth_date=birth_date,
            gender=gender,
            created_at=self.clock(),
        )
        self.users.append(user)
        self._save_users()

        self.current_user = user
        self.is_logged_in = True
        self._save_current_user()

        logger.info("👤 Registered account %s", username)
        return {"success": True, "message": MSG_REGISTERED, "user": user}

    @_synchronized
    def login(self, username: str, password: str) -> Dict[str, Any]:
        user = self._find_user(username or "")
        if user is None:
            return _failure(MSG_NO_ACCOUNT)
        if not pwd_context.verify(password or "", user.password_digest):
            return _failure(MSG_WRONG_PASSWORD)

        self.current_user = user
        self.is_logged_in = True
        self._save_current_user()
        return {"success": True, "message": MSG_LOGGED_IN, "user": user}

    @_synchronized
    def logout(self) -> Dict[str, Any]:
        self.current_user = None
        self.is_logged_in = False
        self.storage.remove_item(CURRENT_USER_KEY)
        return {"success": True, "message": MSG_LOGGED_OUT}

    @_synchronized
    def load_current_user(self) -> Optional[UserAccount]:
        raw = self.storage.get_item(CURRENT_USER_KEY)
        if not raw:
            return None

        user_id = json.loads(raw).get("id")
        user = next((u for u in self.users if u.id == user_id), None)
        if user is None:
            # The snapshot outlived its account; drop it rather than resurrect it
            self.storage.remove_item(CURRENT_USER_KEY)
            return None

        self.current_user = user
        self.is_logged_in = True
        return user

    @_synchronized
    def delete_account(self, password: str) -> Dict[str, Any]:
        if self.current_user is None:
            return _failure(MSG_NOT_LOGGED_IN)
        if not pwd_context.verify(password or "", self.current_user.password_digest):
            return _failure(MSG_WRONG_PASSWORD)

        deleted_id = self.current_user.id
        self.users = [u for u in self.users if u.id != deleted_id]
        self._save_users()
        self.logout()

        logger.info("🗑️ Deleted account %s", deleted_id)
        return {"success": True, "message": MSG_DELETED}

    # --- gameplay statistics ---

    @_synchronized
    def update_question_stats(self, subject: str, is_correct: bool) -> Optional[Stats]:
        if self.current_user is None:
            return None
        stats = score_model.record_answer(self.current_user.stats, subject, is_correct, self.clock())
        self._save_user_data()
        return stats

    @_synchronized
    def update_best_score(self, score: int) -> Optional[Stats]:
        if self.current_user is None:
            return None
        if score_model.record_best_score(self.current_user.stats, score):
            self._save_user_data()
        return self.current_user.stats

    @_synchronized
    def update_game_stats(self, score: int) -> Optional[Stats]:
        if self.current_user is None:
            return None
        score_model.record_game(self.current_user.stats, score)
        self._save_user_data()
        return self.current_user.stats

    # --- settings ---

    @_synchronized
    def update_settings(self, changes: Dict[str, Any]) -> Optional[UserSettings]:
        if self.current_user is None:
            return None
        merged = {**self.current_user.settings.model_dump(), **changes}
        self.current_user.settings = UserSettings.model_validate(merged)
        self._save_user_data()
        return self.current_user.settings

    def get_user_settings(self) -> Optional[UserSettings]:
        return self.current_user.settings if self.current_user else None

    # --- read models ---

    @_synchronized
    def get_user_info(self) -> Optional[Dict[str, Any]]:
        if self.current_user is None:
            return None
        user = self.current_user
        return {
            "username": user.username,
            "birth_date": user.birth_date.isoformat(),
            "age": self._age_on_today(user.birth_date),
            "gender": user.gender,
            "join_date": user.created_at.strftime("%d/%m/%Y"),
            "stats": user.stats.model_dump(mode="json"),
        }

    def get_skill_assessment(self) -> Optional[SkillAssessment]:
        return self.current_user.stats.skill_assessment if self.current_user else None

    @_synchronized
    def get_detailed_stats(self) -> Optional[Dict[str, Any]]:
        if self.current_user is None:
            return None
        stats = self.current_user.stats
        accuracy = 0
        if stats.questions_answered > 0:
            accuracy = score_model.round_half_up(stats.correct_answers / stats.questions_answered * 100)

        return {
            "basic": {
                "games_played": stats.games_played,
                "best_score": stats.best_score,
                "total_score": stats.total_score,
                "questions_answered": stats.questions_answered,
                "correct_answers": stats.correct_answers,
                "accuracy": accuracy,
            },
            "subjects": {name: s.model_dump() for name, s in stats.subject_stats.items()},
            "assessment": stats.skill_assessment.model_dump(mode="json"),
        }


_account_service: Optional[AccountService] = None
_account_service_lock = threading.Lock()

def get_account_service() -> AccountService:
    # One service per process, built once even under concurrent first requests
    global _account_service
    with _account_service_lock:
        if _account_service is None:
            _account_service = AccountService(JsonFileStorage(settings.ACCOUNTS_FILE))
            _account_service.load_current_user()
        return _account_service

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from typing import Any, Dict

from models.user_model import (
    AccountDelete, AnswerEvent, GameEvent, SettingsUpdate, UserCreate, UserLogin,
)
from services.auth_service import AccountService, MSG_NOT_LOGGED_IN, get_account_service

router = APIRouter(prefix="/auth", tags=["Accounts"])

def _respond(result: Dict[str, Any]):
    """Account failures are values; surface them as 400 without raising."""
    body = dict(result)
    if "user" in body:
        body["user"] = body["user"].public_view()
    if not body.get("success"):
        return JSONResponse(status_code=400, content=body)
    return body

def _not_logged_in():
    return JSONResponse(status_code=400, content={"success": False, "message": MSG_NOT_LOGGED_IN})

# --- REGISTER ---
@router.post("/register")
def register(user: UserCreate, accounts: AccountService = Depends(get_account_service)):
    return _respond(accounts.register(user.username, user.password, user.birth_date, user.gender))

# --- LOGIN / LOGOUT ---
@router.post("/login")
def login(user: UserLogin, accounts: AccountService = Depends(get_account_service)):
    return _respond(accounts.login(user.username, user.password))

@router.post("/logout")
def logout(accounts: AccountService = Depends(get_account_service)):
    return _respond(accounts.logout())

# --- PROFILE ---
@router.get("/me")
def get_profile(accounts: AccountService = Depends(get_account_service)):
    info = accounts.get_user_info()
    if info is None:
        return _not_logged_in()
    return {"success": True, "user": info}

@router.delete("/account")
def delete_account(body: AccountDelete, accounts: AccountService = Depends(get_account_service)):
    return _respond(accounts.delete_account(body.password))

# --- STATS ---
@router.post("/stats/answer")
def record_answer(event: AnswerEvent, accounts: AccountService = Depends(get_account_service)):
    stats = accounts.update_question_stats(event.subject, event.is_correct)
    if stats is None:
        return _not_logged_in()
    return {"success": True, "assessment": stats.skill_assessment.model_dump(mode="json")}

@router.post("/stats/game")
def record_game(event: GameEvent, accounts: AccountService = Depends(get_account_service)):
    if accounts.update_game_stats(event.score) is None:
        return _not_logged_in()
    stats = accounts.update_best_score(event.score)
    return {
        "success": True,
        "games_played": stats.games_played,
        "best_score": stats.best_score,
        "total_score": stats.total_score,
    }

@router.get("/stats")
def detailed_stats(accounts: AccountService = Depends(get_account_service)):
    stats = accounts.get_detailed_stats()
    if stats is None:
        return _not_logged_in()
    return {"success": True, **stats}

@router.get("/assessment")
def skill_assessment(accounts: AccountService = Depends(get_account_service)):
    assessment = accounts.get_skill_assessment()
    if assessment is None:
        return _not_logged_in()
    return {"success": True, "assessment": assessment.model_dump(mode="json")}

# --- SETTINGS ---
@router.get("/settings")
def get_settings(accounts: AccountService = Depends(get_account_service)):
    user_settings = accounts.get_user_settings()
    if user_settings is None:
        return _not_logged_in()
    return {"success": True, "settings": user_settings.model_dump()}

@router.put("/settings")
def update_settings(update_data: SettingsUpdate, accounts: AccountService = Depends(get_account_service)):
    changes = {k: v for k, v in update_data.model_dump().items() if v is not None}
    user_settings = accounts.update_settings(changes)
    if user_settings is None:
        return _not_logged_in()
    return {"success": True, "settings": user_settings.model_dump()}

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.logging_config import setup_logging
from config.settings import settings
from routes.auth_routes import router as auth_router
from routes.question_routes import router as question_router

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger("flappy_brain")

SERVICE_NAME = "Flappy Brain Backend"
SERVICE_VERSION = "1.1.0"
AVAILABLE_ENDPOINTS = [
    "GET /health",
    "POST /generate-questions",
    "POST /explain-answer",
    "POST /auth/register",
    "POST /auth/login",
    "POST /auth/logout",
    "GET /auth/me",
    "DELETE /auth/account",
    "POST /auth/stats/answer",
    "POST /auth/stats/game",
    "GET /auth/stats",
    "GET /auth/assessment",
    "GET /auth/settings",
    "PUT /auth/settings",
]

def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Backend server running on port %s", settings.PORT)
    logger.info("🔐 API Key status: %s", "✅ Loaded" if settings.GROQ_API_KEY else "❌ Missing")
    yield

# -----------------------------
app = FastAPI(
    title=SERVICE_NAME,
    description="AI question relay and local accounts for the Flappy Brain quiz game",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)

# --- REGISTER ROUTERS ---
app.include_router(question_router)
app.include_router(auth_router)

# --- CORS MIDDLEWARE ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -----------------------------
# ROOT ENDPOINTS
@app.get("/health")
def health_check():
    return {
        "status": "OK",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "timestamp": _timestamp(),
        "endpoints": AVAILABLE_ENDPOINTS,
    }

# -----------------------------
# ERROR HANDLING
@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "Invalid request body",
            "details": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
                for err in exc.errors()
            ],
        },
    )

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Wrong method on a known path is reported like an unknown route
    if exc.status_code in (404, 405):
        return JSONResponse(
            status_code=404,
            content={
                "error": "Route not found",
                "path": request.url.path,
                "method": request.method,
                "available": AVAILABLE_ENDPOINTS,
                "timestamp": _timestamp(),
            },
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("🔥 Server Error on %s %s", request.method, request.url.path)
    content = {"error": "Internal server error", "timestamp": _timestamp()}
    if settings.is_development:
        content["message"] = str(exc)
    return JSONResponse(status_code=500, content=content)

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=settings.PORT)

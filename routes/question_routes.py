# routes/question_routes.py

import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from models.question_models import ExplainAnswerBody, GenerateQuestionsBody
from services.errors import ConfigurationError, ParseError, UpstreamError, ValidationError
from services.relay_service import RelayService, get_relay_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Questions"])

NOT_CONFIGURED = {"success": False, "error": "Server not configured properly"}

def _bad_request(error: Exception) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "error": str(error)})

@router.post("/generate-questions")
def generate_questions(body: GenerateQuestionsBody, relay: RelayService = Depends(get_relay_service)):
    """
    Generate multiple-choice questions through the upstream LLM.

    A batch shorter than requested is still a success; only a reply with
    no usable JSON or a failed upstream call is reported as an error.
    """
    logger.info("📥 Received question generation request...")

    try:
        questions = relay.generate_questions(body.grade, body.subject, body.num)
    except ValidationError as e:
        return _bad_request(e)
    except ConfigurationError:
        return JSONResponse(status_code=500, content=NOT_CONFIGURED)
    except (UpstreamError, ParseError) as e:
        logger.error("❌ Backend error: %s", e)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Failed to generate questions",
                "message": str(e),
                "fallback": True,
            },
        )

    return {
        "success": True,
        "count": len(questions),
        "questions": [q.model_dump() for q in questions],
    }

@router.post("/explain-answer")
def explain_answer(body: ExplainAnswerBody, relay: RelayService = Depends(get_relay_service)):
    logger.info("📥 Received explanation request...")

    try:
        explanation = relay.explain_answer(body.question, body.answer, body.user_answer)
    except ValidationError as e:
        return _bad_request(e)
    except ConfigurationError:
        return JSONResponse(status_code=500, content=NOT_CONFIGURED)
    except (UpstreamError, ParseError) as e:
        logger.error("❌ Explanation error: %s", e)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Failed to generate explanation",
                "message": str(e),
            },
        )

    return {"success": True, "explanation": explanation}

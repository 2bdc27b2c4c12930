"""KB update-answer handler: upsert one answer keyed by its question."""

import json

from utils.error_handling import AppError, json_response, to_response
from utils.logging_config import get_logger

logger = get_logger(__name__)


def _build_service():
    from config.settings import Settings
    from repositories.knowledge_store import build_store
    from services.bedrock_service import EmbeddingService
    from services.knowledge_service import KnowledgeService

    settings = Settings.from_environment()
    embedder = EmbeddingService(
        model_id=settings.embedding_model_id,
        dimensions=settings.embedding_dimensions,
        region=settings.aws_region,
    )
    return KnowledgeService(build_store(settings), embedder)


def lambda_handler(event, context):
    """Validate the payload and update or insert the answer."""
    try:
        body = event.get("body")
        payload = json.loads(body) if body else event
        record = _build_service().upsert_answer(
            payload.get("question"),
            payload.get("answer"),
            source=payload.get("source"),
        )
        return json_response(
            200,
            {
                "ok": True,
                "item": {
                    "question": record.question,
                    "answer": record.answer,
                    "source": record.provenance.label(),
                },
            },
        )
    except AppError as exc:
        return to_response(exc)
    except Exception as exc:
        logger.exception("KB update-answer failed")
        return json_response(500, {"ok": False, "message": "KB update failed", "error": str(exc)})

"""
KB sanitize handler, triggered by an operator or on a schedule.

Loads the corpus, applies hygiene and exact dedupe, and saves it back
(a no-op in read-only mode).
"""

from utils.error_handling import AppError, json_response, to_response
from utils.logging_config import get_logger

logger = get_logger(__name__)


def _build_service(settings):
    from repositories.knowledge_store import build_store
    from services.classification_service import ClassifierService
    from services.maintenance_service import MaintenanceService

    classifier = (
        ClassifierService(model_id=settings.classifier_model_id)
        if settings.use_classifier
        else None
    )
    return MaintenanceService(
        build_store(settings),
        classifier=classifier,
        organization_name=settings.organization_name,
        chunk_size=settings.classifier_chunk_size,
    )


def lambda_handler(event, context):
    """Run one maintenance pass and report row counts."""
    from config.settings import Settings

    event = event or {}
    settings = Settings.from_environment()
    try:
        report = _build_service(settings).run(
            min_answer_len=int(event.get("min_answer_len", settings.min_answer_len)),
            use_classifier=settings.use_classifier,
            drop_entity_specific=bool(event.get("drop_entity_specific", False)),
        )
        return json_response(200, {"ok": True, **report.model_dump()})
    except AppError as exc:
        logger.warning("KB sanitize refused", extra={"error": str(exc)})
        return to_response(exc)
    except Exception as exc:
        logger.exception("KB sanitize failed")
        return json_response(500, {"ok": False, "message": "KB sanitize failed", "error": str(exc)})

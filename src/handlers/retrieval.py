"""
Knowledge retrieval handler invoked by the chat and report callers.

Accepts {"query", "embedding"?, "qa_limit"?, "context_limit"?}. When no
embedding is supplied the query is embedded here; an embedding failure just
means lexical-only ranking. Messages starting with "update:" pin an answer
instead of retrieving.
"""

from __future__ import annotations

import json
import uuid
from typing import Dict, Optional

from config.settings import Settings
from utils.error_handling import AppError, json_response, to_response
from utils.logging_config import get_logger

logger = get_logger(__name__)

UPDATE_PREFIX = "update:"

# Lazy-loaded services to avoid import-time AWS clients
_services: Optional[Dict[str, object]] = None


def _get_services() -> Dict[str, object]:
    """Lazy-load retrieval, write and override services from settings."""
    global _services
    if _services is None:
        from repositories.knowledge_store import build_store
        from services.bedrock_service import EmbeddingService
        from services.knowledge_service import KnowledgeService
        from services.override_store import AnswerOverrideStore
        from services.retrieval_service import RetrievalService
        from services.scoring import HybridScorer
        from utils.cache_service import LRUCache

        settings = Settings.from_environment()
        store = build_store(settings)
        embedder = EmbeddingService(
            model_id=settings.embedding_model_id,
            dimensions=settings.embedding_dimensions,
            region=settings.aws_region,
        )
        _services = {
            "settings": settings,
            "embedder": embedder,
            "retriever": RetrievalService(
                store,
                HybridScorer(settings.semantic_weight, settings.lexical_weight),
                settings.organization_name,
            ),
            "knowledge": KnowledgeService(store, embedder),
            "overrides": AnswerOverrideStore(
                LRUCache(settings.override_max_size, settings.override_ttl_seconds)
            ),
        }
    return _services


def _parse_payload(event) -> dict:
    body = event.get("body")
    return json.loads(body) if body else event


def _handle_update(command: str, services: Dict[str, object]) -> Dict:
    from services.override_store import parse_update_command

    parsed = parse_update_command(command)
    if parsed is None:
        return json_response(
            200,
            {
                "ok": True,
                "message": "Could not parse update. Try: update: change the answer for "
                '"how many psychiatrists" to 2527',
            },
        )

    question, answer = parsed
    services["overrides"].set(question, answer)
    try:
        services["knowledge"].upsert_answer(question, answer, source="chat-update")
    except Exception as exc:
        logger.exception("KB update from command failed")
        return json_response(
            200,
            {
                "ok": True,
                "question": question,
                "message": f"Override stored, but the KB update failed: {exc}",
            },
        )
    return json_response(
        200,
        {"ok": True, "question": question, "message": f'KB updated: "{question}" -> {answer}'},
    )


def lambda_handler(event, context) -> Dict:
    """Return ranked QA and context matches for a question."""
    correlation_id = str(uuid.uuid4())
    try:
        payload = _parse_payload(event)
        query = str(payload.get("query") or payload.get("question") or "").strip()
        if not query:
            raise AppError("Empty query", status_code=400)

        services = _get_services()
        if query.lower().startswith(UPDATE_PREFIX):
            return _handle_update(query[len(UPDATE_PREFIX) :], services)

        override = services["overrides"].get(query)
        if override:
            return json_response(
                200,
                {"ok": True, "question": query, "override": override, "candidates": []},
            )

        settings: Settings = services["settings"]
        embedding = payload.get("embedding")
        if embedding is None:
            embedding = services["embedder"].embed(query)

        result = services["retriever"].retrieve(
            embedding,
            query,
            qa_limit=int(payload.get("qa_limit", settings.qa_limit)),
            context_limit=int(payload.get("context_limit", settings.context_limit)),
        )

        from services.retrieval_service import select_candidates

        candidates = select_candidates(result.qa_matches, settings.min_score)
        logger.info(
            "Retrieval served",
            extra={
                "correlation_id": correlation_id,
                "qa_matches": len(result.qa_matches),
                "context_matches": len(result.context_matches),
            },
        )
        return json_response(
            200,
            {
                "ok": True,
                "question": query,
                "override": None,
                "candidates": [m.summary() for m in candidates],
                "qa_matches": [m.summary() for m in result.qa_matches],
                "context_matches": [m.summary() for m in result.context_matches],
                "correlation_id": correlation_id,
            },
        )
    except AppError as exc:
        return to_response(exc)
    except Exception as exc:
        logger.exception("Retrieval failed", extra={"cid": correlation_id})
        return json_response(
            400,
            {
                "ok": False,
                "message": "Retrieval failed",
                "error": str(exc),
                "correlation_id": correlation_id,
            },
        )

"""
Amazon Bedrock embedding service.

Turns text into a fixed-length vector with a Titan embedding model. Failures
never cross this boundary: callers get an empty vector, which the scorer
treats as "no semantic score available".
"""

from __future__ import annotations

import hashlib
import json
import os
from typing import List, Optional

import boto3

from utils.cache_service import LRUCache
from utils.logging_config import get_logger

logger = get_logger(__name__)

MAX_INPUT_CHARS = 8000


class EmbeddingService:
    """Service for Bedrock text embeddings."""

    def __init__(
        self,
        model_id: Optional[str] = None,
        dimensions: Optional[int] = None,
        region: Optional[str] = None,
        client=None,
    ):
        self.model_id = model_id or os.environ.get(
            "EMBEDDING_MODEL_ID", "amazon.titan-embed-text-v2:0"
        )
        self.dimensions = dimensions or int(os.environ.get("EMBEDDING_DIMENSIONS", "1024"))
        resolved_region = (
            region
            or os.environ.get("BEDROCK_REGION")
            or os.environ.get("AWS_REGION")
            or "eu-west-2"
        )
        self.client = client or boto3.client("bedrock-runtime", region_name=resolved_region)
        self._cache = LRUCache(max_size=512, ttl_seconds=3600)

    def embed(self, text: str) -> List[float]:
        """Embed text; [] for blank input or on any provider failure."""
        cleaned = " ".join((text or "").split())[:MAX_INPUT_CHARS]
        if not cleaned:
            return []

        cache_key = self._get_cache_key(cleaned)
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            response = self.client.invoke_model(
                modelId=self.model_id,
                contentType="application/json",
                accept="application/json",
                body=json.dumps(
                    {
                        "inputText": cleaned,
                        "dimensions": self.dimensions,
                        "normalize": True,
                    }
                ),
            )
            payload = json.loads(response["body"].read())
            vector = [float(v) for v in payload.get("embedding") or []]
        except Exception as exc:
            logger.error("Embedding failed", extra={"error": str(exc)})
            return []

        if vector:
            self._cache.set(cache_key, vector)
        logger.info(
            "Embedding complete",
            extra={"input_length": len(cleaned), "dimensions": len(vector)},
        )
        return vector

    def _get_cache_key(self, text: str) -> str:
        """Generate cache key from model and input text."""
        content = f"{self.model_id}:{text}"
        return hashlib.md5(content.encode()).hexdigest()

    def clear_cache(self) -> None:
        """Clear the in-memory cache."""
        self._cache.clear()
        logger.info("Embedding cache cleared")

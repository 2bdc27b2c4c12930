"""
Advisory Q/A quality classifier.

Asks a Bedrock model (Haiku by default) whether each question/answer pair is
a specific, reusable knowledge-base fact. The verdict is advisory: any failure
or unparseable reply keeps every pair.
"""

from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass
from typing import List, Sequence

import boto3

from models.knowledge import QAPair
from utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class ClassifierService:
    """Encapsulates the Bedrock keep/drop call with a fail-open default."""

    model_id: str = os.environ.get("MODEL_ID", "anthropic.claude-3-haiku-20240307-v1:0")
    max_tokens: int = 1000

    def __post_init__(self) -> None:
        region = (
            os.environ.get("BEDROCK_REGION")
            or os.environ.get("AWS_REGION")
            or "eu-west-2"
        )
        self.client = boto3.client("bedrock-runtime", region_name=region)

    def classify(self, pairs: Sequence[QAPair]) -> List[bool]:
        """Return one keep flag per pair, same order; all True on failure."""
        if not pairs:
            return []

        start = time.perf_counter()
        try:
            response = self.client.invoke_model(
                modelId=self.model_id,
                contentType="application/json",
                accept="application/json",
                body=json.dumps(
                    {
                        "anthropic_version": "bedrock-2023-05-31",
                        "messages": [
                            {
                                "role": "user",
                                "content": [{"type": "text", "text": self._build_prompt(pairs)}],
                            }
                        ],
                        "max_tokens": self.max_tokens,
                        "temperature": 0,
                    }
                ),
            )
            payload = json.loads(response["body"].read())
            text = payload["content"][0]["text"]
            return self._parse_response(text, len(pairs))
        except Exception as exc:
            logger.warning(
                "Classifier call failed; keeping all pairs",
                extra={"error": str(exc), "pairs": len(pairs)},
            )
            return [True] * len(pairs)
        finally:
            logger.info(
                "Classifier latency captured",
                extra={"duration_ms": int((time.perf_counter() - start) * 1000)},
            )

    def _build_prompt(self, pairs: Sequence[QAPair]) -> str:
        items = [{"question": p.question, "answer": p.answer} for p in pairs]
        return (
            "Judge if each Q/A is a valid, specific knowledge-base fact for enterprise RFP answering.\n\n"
            "Rules:\n"
            "- KEEP if the answer contains concrete information useful to answer future RFPs.\n"
            "- DROP if the answer is a single word/letter, generic marketing fluff with no facts, "
            "placeholders (e.g., N/A, TBD), lorem/test, or off-topic.\n"
            "- Return JSON array of \"keep\" booleans, same length/order as input.\n\n"
            "Only output JSON.\n\n"
            f"INPUT:\n{json.dumps(items)}"
        )

    def _parse_response(self, text: str, expected: int) -> List[bool]:
        """Extract the JSON array; anything malformed or mis-sized keeps everything."""
        first, last = text.find("["), text.rfind("]")
        if first == -1 or last < first:
            logger.warning("Classifier reply had no JSON array; keeping all pairs")
            return [True] * expected
        try:
            decisions = json.loads(text[first : last + 1])
        except ValueError:
            logger.warning("Classifier reply was not valid JSON; keeping all pairs")
            return [True] * expected

        if not isinstance(decisions, list) or len(decisions) != expected:
            logger.warning(
                "Classifier reply length mismatch; keeping all pairs",
                extra={"expected": expected},
            )
            return [True] * expected
        return [decision is not False for decision in decisions]

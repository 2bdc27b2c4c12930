"""
Pytest configuration to ensure paths are set up correctly for tests.

This allows imports like `from services import retrieval_service` to work
when running tests, simulating the Lambda environment where code
is deployed from the src/ directory.
"""

import json
import os
import sys
from pathlib import Path

import boto3
import pytest


def _ensure_paths_on_sys_path() -> None:
    """Add src/ to sys.path if missing.

    The src/ directory is added to simulate Lambda's import behavior,
    where the asset root is src/ itself.
    """
    src_root = Path(__file__).resolve().parents[1] / "src"
    src_str = str(src_root)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)


_ensure_paths_on_sys_path()

# Ensure boto3 has offline-friendly defaults so tests do not require AWS access.
os.environ.setdefault("AWS_REGION", "eu-west-2")
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-2")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "test")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "test")
os.environ.setdefault("AWS_SESSION_TOKEN", "test")
os.environ.setdefault("ENVIRONMENT", "dev")
os.environ.setdefault("BEDROCK_REGION", "eu-west-2")
os.environ.setdefault("MODEL_ID", "anthropic.claude-3-haiku-20240307-v1:0")

# Create a default boto3 session so clients do not error during import.
boto3.setup_default_session(region_name="eu-west-2")


class InMemoryStore:
    """Store double holding the corpus as a JSON string, like the real backends."""

    def __init__(self, rows=None, writable=True):
        self.body = json.dumps(rows if rows is not None else [])
        self.writable = writable
        self.load_calls = 0
        self.saved = []

    def load(self, strict=False):
        self.load_calls += 1
        return json.loads(self.body)

    def save(self, records):
        from repositories.knowledge_store import encode_corpus

        records = list(records)
        if not self.writable:
            return False
        self.body = encode_corpus(records)
        self.saved.append(json.loads(self.body))
        return True

    @property
    def rows(self):
        return json.loads(self.body)


@pytest.fixture
def make_store():
    """Factory for in-memory stores seeded with raw corpus rows."""
    return InMemoryStore


def qa_row(question, answer, embedding=None, **extra):
    row = {"question": question, "answer": answer, "embedding": embedding or []}
    row.update(extra)
    return row


def context_row(content, embedding=None, **extra):
    row = {"kind": "context", "content": content, "embedding": embedding or []}
    row.update(extra)
    return row

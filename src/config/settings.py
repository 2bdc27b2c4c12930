"""
Environment-specific configuration settings.

Read-only, lexical-safe defaults for development/testing.
"""

from dataclasses import dataclass
import os


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() == "true"


@dataclass
class Settings:
    """Knowledge base settings with safe defaults."""

    # Environment
    environment: str = "dev"
    aws_region: str = "eu-west-2"

    # Knowledge store. An empty bucket means the local file store is used.
    kb_bucket: str = ""
    kb_key: str = "kb.json"
    kb_path: str = "/tmp/kb.json"
    # Writes are a no-op unless explicitly enabled (read-only deployment mode)
    kb_write_enabled: bool = False
    load_timeout_seconds: float = 10.0

    # Bedrock Configuration
    embedding_model_id: str = "amazon.titan-embed-text-v2:0"
    embedding_dimensions: int = 1024
    classifier_model_id: str = "anthropic.claude-3-haiku-20240307-v1:0"

    # Maintenance
    use_classifier: bool = False
    classifier_chunk_size: int = 50
    min_answer_len: int = 8

    # Retrieval
    qa_limit: int = 5
    context_limit: int = 5
    min_score: float = 0.32
    semantic_weight: float = 0.7
    lexical_weight: float = 0.3

    # Canonical name legacy vendor aliases are rewritten to
    organization_name: str = "Uprise Health"

    # Sticky answer overrides
    override_ttl_seconds: int = 3600
    override_max_size: int = 256

    @property
    def uses_blob_store(self) -> bool:
        return bool(self.kb_bucket)

    @classmethod
    def from_environment(cls) -> "Settings":
        """Load settings from environment variables."""
        region = (
            os.environ.get("BEDROCK_REGION")
            or os.environ.get("AWS_REGION")
            or "eu-west-2"
        )
        return cls(
            environment=os.environ.get("ENVIRONMENT", "dev"),
            aws_region=region,
            kb_bucket=os.environ.get("KB_BUCKET", ""),
            kb_key=os.environ.get("KB_KEY", "kb.json"),
            kb_path=os.environ.get("KB_PATH", "/tmp/kb.json"),
            kb_write_enabled=_env_bool("KB_WRITE_ENABLED"),
            load_timeout_seconds=float(os.environ.get("KB_LOAD_TIMEOUT_SECONDS", "10")),
            embedding_model_id=os.environ.get(
                "EMBEDDING_MODEL_ID", "amazon.titan-embed-text-v2:0"
            ),
            embedding_dimensions=int(os.environ.get("EMBEDDING_DIMENSIONS", "1024")),
            classifier_model_id=os.environ.get(
                "MODEL_ID", "anthropic.claude-3-haiku-20240307-v1:0"
            ),
            use_classifier=_env_bool("CLEAN_USE_CLASSIFIER"),
            classifier_chunk_size=int(os.environ.get("CLASSIFIER_CHUNK_SIZE", "50")),
            min_answer_len=int(os.environ.get("MIN_ANSWER_LEN", "8")),
            qa_limit=int(os.environ.get("QA_LIMIT", "5")),
            context_limit=int(os.environ.get("CONTEXT_LIMIT", "5")),
            min_score=float(os.environ.get("MIN_SCORE", "0.32")),
            organization_name=os.environ.get("ORGANIZATION_NAME", "Uprise Health"),
            override_ttl_seconds=int(os.environ.get("OVERRIDE_TTL_SECONDS", "3600")),
            override_max_size=int(os.environ.get("OVERRIDE_MAX_SIZE", "256")),
        )

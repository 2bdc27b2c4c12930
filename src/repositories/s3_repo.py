"""S3 repository for the knowledge base document."""

from typing import Optional

import boto3
from botocore.config import Config


class S3Repository:
    """
    Minimal helper around S3 for whole-object reads and writes.

    ``timeout_seconds`` becomes botocore's connect and read timeouts, so it
    bounds each socket wait, not the whole GET.
    """

    def __init__(
        self,
        bucket_name: str,
        timeout_seconds: float = 10.0,
        region: Optional[str] = None,
        client=None,
    ):
        self.bucket_name = bucket_name
        self.client = client or boto3.client(
            "s3",
            region_name=region,
            config=Config(
                connect_timeout=timeout_seconds,
                read_timeout=timeout_seconds,
                retries={"max_attempts": 1},
            ),
        )

    def get_text(self, key: str) -> str:
        """Read an object as UTF-8 text, bypassing any intermediate caches."""
        response = self.client.get_object(
            Bucket=self.bucket_name,
            Key=key,
            ResponseCacheControl="no-cache",
        )
        return response["Body"].read().decode("utf-8")

    def put_text(self, key: str, content: str, content_type: str = "application/json") -> None:
        """Replace an object with text content."""
        self.client.put_object(
            Bucket=self.bucket_name,
            Key=key,
            Body=content.encode("utf-8"),
            ContentType=content_type,
            CacheControl="no-cache",
        )

from __future__ import annotations

import json
import os

import boto3

from .Publisher import Publisher


class S3Publisher(Publisher):
    """Publishes aggregation output to an S3 bucket."""

    def __init__(self, bucket: str | None = None, prefix: str = ""):
        self._bucket = bucket or os.environ["S3_BUCKET_NAME"]
        self._prefix = prefix
        self._s3 = boto3.client(
            "s3",
            region_name=os.environ.get("AWS_REGION", "us-east-1"),
        )

    def _full_key(self, key: str) -> str:
        if self._prefix:
            return f"{self._prefix}/{key}"
        return key

    def publish(self, key: str, data: bytes) -> None:
        self._s3.put_object(
            Bucket=self._bucket,
            Key=self._full_key(key),
            Body=data,
            ContentType="application/json",
        )

    def publish_json(self, key: str, obj) -> None:
        self.publish(key, json.dumps(obj).encode("utf-8"))

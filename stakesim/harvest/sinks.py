"""
Chunk sinks: persist each pagination window as it completes.

FileChunkSink writes one JSON file per window; S3ChunkSink writes one object
per window with the sha256 of its canonical body in the object metadata.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.canonical import canonical_json_bytes, digest
from ..core.errors import ChunkSinkError
from ..core.events import StakeEvent

logger = logging.getLogger(__name__)


def write_events(path: str, events: Iterable[StakeEvent]) -> None:
    """
    Write a result set as a JSON array.

    Args:
        path: Output file (parent directories are created)
        events: Events to write
    """
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w") as f:
        json.dump([ev.to_dict() for ev in events], f, indent=2)
    logger.info(f"Wrote to {path}")


def read_events(path: str) -> List[StakeEvent]:
    """Load a result set written by write_events()."""
    with open(path, "r") as f:
        data = json.load(f)
    return [StakeEvent.from_dict(d) for d in data]


class ChunkSink(ABC):
    """
    Abstract per-window persistence.

    Instances are callable as sink(events, start_block, end_block), the
    signature paginate() expects.
    """

    @abstractmethod
    def write(self, events: List[StakeEvent], start_block: int, end_block: int) -> str:
        """
        Persist one window.

        Returns:
            Location written (path or object key)

        Raises:
            ChunkSinkError: If the window cannot be persisted
        """
        ...

    def __call__(self, events: List[StakeEvent], start_block: int, end_block: int) -> None:
        self.write(events, start_block, end_block)


class FileChunkSink(ChunkSink):
    """
    One JSON file per window.

    Naming: {prefix}-{start_block}-{end_block}.json
    """

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix
        self.written: List[str] = []

    def path_for(self, start_block: int, end_block: int) -> str:
        return f"{self.prefix}-{start_block}-{end_block}.json"

    def write(self, events: List[StakeEvent], start_block: int, end_block: int) -> str:
        path = self.path_for(start_block, end_block)
        try:
            write_events(path, events)
        except OSError as ex:
            raise ChunkSinkError(str(ex)) from ex
        self.written.append(path)
        return path


class S3ChunkSink(ChunkSink):
    """
    One S3 object per window.

    Object key: {prefix}/{start_block:010d}-{end_block:010d}.json
    Body: canonical JSON array of events
    Metadata: sha256 of the body, event count

    Zero-padded block numbers keep lexicographic key order equal to block
    order.
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "chunks",
        endpoint_url: Optional[str] = None,
        region: str = "us-east-1",
    ) -> None:
        """
        Initialize S3 chunk sink.

        Args:
            bucket: S3 bucket name
            prefix: Key prefix for chunks (default: "chunks")
            endpoint_url: S3 endpoint URL (for MinIO, localstack, etc.)
            region: AWS region (default: us-east-1)

        Raises:
            ChunkSinkError: If the bucket is not accessible
        """
        self.bucket = bucket
        self.prefix = prefix.rstrip("/")
        self.s3_client = boto3.client("s3", endpoint_url=endpoint_url, region_name=region)
        self.written: List[str] = []

        try:
            self.s3_client.head_bucket(Bucket=bucket)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            raise ChunkSinkError(f"Bucket '{bucket}' not accessible (code: {error_code})") from e

    def key_for(self, start_block: int, end_block: int) -> str:
        return f"{self.prefix}/{start_block:010d}-{end_block:010d}.json"

    def write(self, events: List[StakeEvent], start_block: int, end_block: int) -> str:
        key = self.key_for(start_block, end_block)
        body = [ev.to_dict() for ev in events]
        try:
            self.s3_client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=canonical_json_bytes(body),
                ContentType="application/json",
                Metadata={"sha256": digest(body), "count": str(len(events))},
            )
        except (BotoCoreError, ClientError) as e:
            raise ChunkSinkError(f"Failed to write {key}: {e}") from e
        logger.info(f"Wrote s3://{self.bucket}/{key}")
        self.written.append(key)
        return key

    def read(self, key: str) -> List[StakeEvent]:
        """
        Read a chunk back, verifying its digest.

        Raises:
            ChunkSinkError: If the object is missing or its digest does not match
        """
        try:
            response = self.s3_client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            raise ChunkSinkError(f"Failed to read {key}: {e}") from e
        data = json.loads(response["Body"].read().decode("utf-8"))
        expected = response.get("Metadata", {}).get("sha256")
        if expected and digest(data) != expected:
            raise ChunkSinkError(f"Hash mismatch for {key}")
        return [StakeEvent.from_dict(d) for d in data]

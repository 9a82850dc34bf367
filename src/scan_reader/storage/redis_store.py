"""
Redis-backed store.

Layout (``prefix`` defaults to ``settings.redis_key_prefix``):
  {prefix}:pages:{document_id}   hash, field = page number, value = JSON
                                 {"raw_text", "normalized_text"}
  {prefix}:job:{document_id}     hash: processed_count, status, updated_at

HSET on a page field is the upsert; one field per page keeps rows unique per
(document, page) no matter how many sessions write concurrently.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from scan_reader.logging import log
from scan_reader.schemas.jobs import JobProgress, JobStatus
from scan_reader.schemas.pages import PageTextRecord, TextOrigin
from scan_reader.storage.base import StorageError


class RedisStore:
    def __init__(self, client: aioredis.Redis, prefix: str = "scan_reader") -> None:
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "scan_reader") -> "RedisStore":
        return cls(aioredis.from_url(url, decode_responses=True), prefix=prefix)

    def _pages_key(self, document_id: str) -> str:
        return f"{self._prefix}:pages:{document_id}"

    def _job_key(self, document_id: str) -> str:
        return f"{self._prefix}:job:{document_id}"

    async def upsert_page_text(
        self,
        document_id: str,
        page_number: int,
        raw_text: str,
        normalized_text: str,
    ) -> None:
        payload = json.dumps(
            {"raw_text": raw_text, "normalized_text": normalized_text},
            ensure_ascii=False,
        )
        try:
            await self._client.hset(self._pages_key(document_id), str(page_number), payload)
        except RedisError as exc:
            raise StorageError(f"Cannot save page {page_number} of {document_id}: {exc}") from exc

    async def list_page_text(self, document_id: str) -> list[PageTextRecord]:
        try:
            rows = await self._client.hgetall(self._pages_key(document_id))
        except RedisError as exc:
            raise StorageError(f"Cannot load pages of {document_id}: {exc}") from exc

        records: list[PageTextRecord] = []
        for field, value in rows.items():
            try:
                data = json.loads(value)
                records.append(PageTextRecord(
                    page_number=int(field),
                    raw_text=data.get("raw_text", ""),
                    normalized_text=data.get("normalized_text", ""),
                    origin=TextOrigin.FROM_STORE,
                ))
            except (ValueError, TypeError) as exc:
                log.warning("redis_store.bad_page_row", document_id=document_id, field=field, error=str(exc))
        records.sort(key=lambda r: r.page_number)
        return records

    async def update_job_progress(
        self,
        document_id: str,
        processed_count: int,
        status: JobStatus,
    ) -> None:
        mapping = {
            "processed_count": processed_count,
            "status": status.value,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            await self._client.hset(self._job_key(document_id), mapping=mapping)
        except RedisError as exc:
            raise StorageError(f"Cannot checkpoint job for {document_id}: {exc}") from exc

    async def get_job_progress(self, document_id: str) -> JobProgress | None:
        try:
            row = await self._client.hgetall(self._job_key(document_id))
        except RedisError as exc:
            raise StorageError(f"Cannot read job for {document_id}: {exc}") from exc
        if not row:
            return None
        return JobProgress(
            document_id=document_id,
            processed_count=int(row.get("processed_count", 0)),
            status=JobStatus(row["status"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    async def close(self) -> None:
        await self._client.aclose()

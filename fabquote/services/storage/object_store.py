"""
Object store adapters for uploaded design / BOM files.

Keys are namespaced by the owning identity: ``<user_id>/<epoch-millis>-<name>``.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote

import httpx

from fabquote.core import config
from fabquote.core.security import create_download_token

logger = logging.getLogger(__name__)


class ObjectStoreError(Exception):
    """Raised when the object store cannot complete a call."""


@dataclass
class StoredObject:
    path: str
    size: int
    updated_at: Optional[datetime] = None


class ObjectStore(ABC):
    @abstractmethod
    async def put(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> None:
        ...

    @abstractmethod
    async def exists(self, path: str) -> bool:
        ...

    @abstractmethod
    async def signed_url(self, path: str, ttl_seconds: int) -> str:
        ...

    @abstractmethod
    async def delete(self, path: str) -> None:
        ...

    @abstractmethod
    async def list(self, prefix: str = "") -> List[StoredObject]:
        ...


# =====================================================
# LOCAL FILESYSTEM
# =====================================================
class LocalObjectStore(ObjectStore):
    """
    Stores objects under a directory. Signed URLs point back at this API
    (``/files/download?token=...``) with a short-lived JWT naming the path.
    """

    def __init__(self, root: str, base_url: str):
        self.root = Path(root).resolve()
        self.base_url = base_url.rstrip("/")

    def resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root not in target.parents:
            raise ObjectStoreError(f"Path escapes storage root: {path}")
        return target

    async def put(self, path, data, content_type="application/octet-stream"):
        target = self.resolve(path)

        def _write():
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise ObjectStoreError(f"Could not store {path}: {e}") from e

    async def exists(self, path):
        try:
            target = self.resolve(path)
        except ObjectStoreError:
            return False
        return await asyncio.to_thread(target.is_file)

    async def signed_url(self, path, ttl_seconds):
        if not await self.exists(path):
            raise ObjectStoreError(f"Object not found: {path}")
        token = create_download_token(path, ttl_seconds)
        return f"{self.base_url}/files/download?token={token}"

    async def delete(self, path):
        target = self.resolve(path)
        try:
            await asyncio.to_thread(target.unlink, True)
        except OSError as e:
            raise ObjectStoreError(f"Could not delete {path}: {e}") from e

    async def list(self, prefix=""):
        def _walk():
            if not self.root.exists():
                return []
            found = []
            for p in self.root.rglob("*"):
                if not p.is_file():
                    continue
                rel = p.relative_to(self.root).as_posix()
                if not rel.startswith(prefix):
                    continue
                stat = p.stat()
                found.append(
                    StoredObject(
                        path=rel,
                        size=stat.st_size,
                        updated_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                    )
                )
            return found

        try:
            return await asyncio.to_thread(_walk)
        except OSError as e:
            raise ObjectStoreError(f"Could not list objects: {e}") from e


# =====================================================
# SUPABASE STORAGE
# =====================================================
class SupabaseObjectStore(ObjectStore):
    """Supabase Storage REST API client."""

    PAGE_SIZE = 100

    def __init__(self, url: str, service_key: str, bucket: str, timeout: float = 10.0):
        self.api = f"{url.rstrip('/')}/storage/v1"
        self.bucket = bucket
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {service_key}",
            "apikey": service_key,
        }

    def _object_url(self, path: str) -> str:
        return f"{self.api}/object/{self.bucket}/{quote(path)}"

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        headers = {**self.headers, **kwargs.pop("headers", {})}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise ObjectStoreError(f"Storage request failed: {e}") from e

        if response.status_code >= 400:
            raise ObjectStoreError(
                f"Storage returned {response.status_code}: {response.text[:200]}"
            )
        return response

    async def put(self, path, data, content_type="application/octet-stream"):
        await self._request(
            "POST",
            self._object_url(path),
            content=data,
            headers={"Content-Type": content_type, "x-upsert": "false"},
        )

    async def _list_folder(self, folder: str, search: str = "") -> list:
        entries = []
        offset = 0
        while True:
            response = await self._request(
                "POST",
                f"{self.api}/object/list/{self.bucket}",
                json={
                    "prefix": folder,
                    "search": search,
                    "limit": self.PAGE_SIZE,
                    "offset": offset,
                },
            )
            page = response.json()
            entries.extend(page)
            if len(page) < self.PAGE_SIZE:
                return entries
            offset += self.PAGE_SIZE

    async def exists(self, path):
        folder, _, name = path.rpartition("/")
        entries = await self._list_folder(folder, search=name)
        return any(e.get("name") == name and e.get("id") for e in entries)

    async def signed_url(self, path, ttl_seconds):
        response = await self._request(
            "POST",
            f"{self.api}/object/sign/{self.bucket}/{quote(path)}",
            json={"expiresIn": ttl_seconds},
        )
        signed = response.json().get("signedURL")
        if not signed:
            raise ObjectStoreError(f"No signed URL returned for {path}")
        return f"{self.api}{signed}"

    async def delete(self, path):
        await self._request(
            "DELETE",
            f"{self.api}/object/{self.bucket}",
            json={"prefixes": [path]},
        )

    async def list(self, prefix=""):
        found: List[StoredObject] = []
        pending = [prefix.rstrip("/")]
        while pending:
            folder = pending.pop()
            for entry in await self._list_folder(folder):
                child = f"{folder}/{entry['name']}" if folder else entry["name"]
                # folders come back without an id
                if not entry.get("id"):
                    pending.append(child)
                    continue
                updated = entry.get("updated_at")
                found.append(
                    StoredObject(
                        path=child,
                        size=(entry.get("metadata") or {}).get("size", 0),
                        updated_at=datetime.fromisoformat(updated.replace("Z", "+00:00")) if updated else None,
                    )
                )
        return found


# =====================================================
# DEPENDENCY
# =====================================================
_store: Optional[ObjectStore] = None


def get_object_store() -> ObjectStore:
    global _store
    if _store is None:
        if config.OBJECT_STORE_BACKEND == "supabase":
            _store = SupabaseObjectStore(
                config.SUPABASE_URL,
                config.SUPABASE_SERVICE_KEY,
                config.STORAGE_BUCKET,
                timeout=config.EXTERNAL_HTTP_TIMEOUT_SECONDS,
            )
        else:
            _store = LocalObjectStore(config.LOCAL_STORAGE_ROOT, config.PUBLIC_BASE_URL)
        logger.info("Object store ready", extra={"backend": config.OBJECT_STORE_BACKEND})
    return _store

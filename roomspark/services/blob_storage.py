"""
Blob storage for image bytes with signed retrieval URLs.

Signed URLs carry a JWT scoped to a single path, so files are served without
public bucket ACLs. A 100-year TTL is used for images that must stay fetchable.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import parse_qs, quote, unquote, urlparse

from jose import JWTError, jwt

from roomspark.core.config import settings
from roomspark.core.exceptions import StorageError, UnauthorizedError

logger = logging.getLogger(__name__)

FILES_ROUTE = "/files"


class BlobStorage(ABC):
    """Storage contract consumed by the image store"""

    @abstractmethod
    async def put(self, path: str, data: bytes, content_type: str) -> None:
        ...

    @abstractmethod
    async def get(self, path: str) -> bytes:
        ...

    @abstractmethod
    async def get_signed_url(self, path: str, ttl_seconds: int) -> str:
        ...

    def resolve_signed_url(self, url: str) -> Optional[str]:
        """Return the blob path if url is one of this store's signed URLs"""
        return None


class LocalBlobStorage(BlobStorage):
    """Filesystem-backed storage served by the /files route"""

    def __init__(
        self,
        root: str = None,
        public_base_url: str = None,
        secret_key: str = None,
        algorithm: str = None,
    ):
        self.root = Path(root or settings.storage_path).resolve()
        self.public_base_url = (public_base_url or settings.public_base_url).rstrip("/")
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.algorithm
        logger.info(f"Local blob storage initialized at {self.root}")

    def _full_path(self, path: str) -> Path:
        parts = PurePosixPath(path).parts
        if not parts or path.startswith("/") or ".." in parts:
            raise StorageError(f"Invalid storage path: {path}")
        return self.root.joinpath(*parts)

    async def put(self, path: str, data: bytes, content_type: str) -> None:
        target = self._full_path(path)

        def _write():
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            logger.error(f"Failed to write blob {path}: {e}")
            raise StorageError(f"Failed to upload image: {e}")

        logger.info(f"Stored blob {path} ({content_type}, {len(data)} bytes)")

    async def get(self, path: str) -> bytes:
        target = self._full_path(path)
        try:
            return await asyncio.to_thread(target.read_bytes)
        except FileNotFoundError:
            raise StorageError(f"Blob not found: {path}", status_code=404)
        except OSError as e:
            raise StorageError(f"Failed to read blob {path}: {e}")

    def create_token(self, path: str, ttl_seconds: int) -> str:
        expire = datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)
        return jwt.encode({"path": path, "exp": expire}, self.secret_key, algorithm=self.algorithm)

    def verify_signed_token(self, path: str, token: str) -> None:
        """Raise UnauthorizedError unless token is a valid, unexpired signature for path"""
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.warning(f"Signed URL token rejected for {path}: {e}")
            raise UnauthorizedError("Invalid or expired file token")

        if payload.get("path") != path:
            raise UnauthorizedError("Invalid or expired file token")

    async def get_signed_url(self, path: str, ttl_seconds: int) -> str:
        self._full_path(path)
        try:
            token = self.create_token(path, ttl_seconds)
        except JWTError as e:
            raise StorageError(f"Failed to create signed URL: {e}")
        return f"{self.public_base_url}{FILES_ROUTE}/{quote(path)}?token={token}"

    def resolve_signed_url(self, url: str) -> Optional[str]:
        if not url.startswith(f"{self.public_base_url}{FILES_ROUTE}/"):
            return None

        parsed = urlparse(url)
        path = unquote(parsed.path[len(urlparse(self.public_base_url).path) + len(FILES_ROUTE) + 1:])
        token = parse_qs(parsed.query).get("token", [""])[0]
        self.verify_signed_token(path, token)
        return path

import hashlib
import hmac
import time
from pathlib import Path
from urllib.parse import quote, urlencode

from tracker.storage.base import BaseObjectStorage
from tracker.storage.exceptions import StorageError, StorageObjectNotFoundError


class LocalStorageAdapter(BaseObjectStorage):
    """Stores objects under {files_root}/{bucket}/{path} on the local disk.

    Signed URLs carry an expiry and an HMAC over path and expiry that
    verify_signature() checks.
    """

    def __init__(
        self,
        *,
        files_root: Path,
        bucket: str,
        base_url: str,
        signing_secret: str,
    ) -> None:
        self._bucket_root = files_root / bucket
        self._bucket = bucket
        self._base_url = base_url.rstrip("/")
        self._secret = signing_secret.encode("utf-8")

    def put(self, path: str, content: bytes, content_type: str) -> None:
        target = self._resolve_path(path)
        if target.exists():
            raise StorageError(f"Object already exists: {path}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as exc:
            raise StorageError(f"Failed to write {path}: {exc}") from exc

    def get(self, path: str) -> bytes:
        target = self._resolve_path(path)
        if not target.is_file():
            raise StorageObjectNotFoundError(f"Object not found: {path}")
        return target.read_bytes()

    def remove(self, paths: list[str]) -> None:
        for path in paths:
            try:
                self._resolve_path(path).unlink(missing_ok=True)
            except OSError as exc:
                raise StorageError(f"Failed to remove {path}: {exc}") from exc

    def create_signed_url(self, path: str, expires_in: int) -> str:
        self._resolve_path(path)
        expires = int(time.time()) + expires_in
        query = urlencode({"expires": expires, "token": self._sign(path, expires)})
        return f"{self._base_url}/object/sign/{self._bucket}/{quote(path)}?{query}"

    def verify_signature(
        self,
        path: str,
        expires: int,
        token: str,
        now: float | None = None,
    ) -> bool:
        current = time.time() if now is None else now
        if current > expires:
            return False
        return hmac.compare_digest(self._sign(path, expires), token)

    def _sign(self, path: str, expires: int) -> str:
        message = f"{self._bucket}/{path}:{expires}".encode("utf-8")
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def _resolve_path(self, path: str) -> Path:
        target = (self._bucket_root / path).resolve()
        if not target.is_relative_to(self._bucket_root.resolve()):
            raise StorageError(f"Path escapes the bucket: {path}")
        return target

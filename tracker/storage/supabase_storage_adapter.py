from typing import Any

import httpx

from tracker.storage.base import BaseObjectStorage
from tracker.storage.exceptions import (
    StorageError,
    StorageNetworkError,
    StorageObjectNotFoundError,
)


class SupabaseStorageAdapter(BaseObjectStorage):
    """Object storage over the Supabase Storage HTTP API."""

    CACHE_CONTROL = "max-age=3600"

    def __init__(
        self,
        *,
        base_url: str,
        service_key: str,
        bucket: str,
        timeout_seconds: int,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._bucket = bucket
        self._client = client or httpx.Client(
            base_url=self._base_url,
            headers={
                "Authorization": f"Bearer {service_key}",
                "apikey": service_key,
            },
            timeout=timeout_seconds,
        )

    def put(self, path: str, content: bytes, content_type: str) -> None:
        self._send(
            "POST",
            f"/object/{self._bucket}/{path}",
            path,
            content=content,
            headers={
                "Content-Type": content_type,
                "Cache-Control": self.CACHE_CONTROL,
                "x-upsert": "false",
            },
        )

    def get(self, path: str) -> bytes:
        response = self._send("GET", f"/object/{self._bucket}/{path}", path)
        return response.content

    def remove(self, paths: list[str]) -> None:
        if not paths:
            return
        self._send(
            "DELETE",
            f"/object/{self._bucket}",
            ", ".join(paths),
            json={"prefixes": paths},
        )

    def create_signed_url(self, path: str, expires_in: int) -> str:
        response = self._send(
            "POST",
            f"/object/sign/{self._bucket}/{path}",
            path,
            json={"expiresIn": expires_in},
        )
        signed = response.json().get("signedURL")
        if not signed:
            raise StorageError(f"Storage returned no signed URL for {path}")
        return f"{self._base_url}{signed}"

    def _send(self, method: str, url: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
        except (httpx.ConnectError, httpx.TimeoutException) as exc:
            raise StorageNetworkError(f"Storage network error: {exc}") from exc
        except httpx.HTTPError as exc:
            raise StorageError(f"Storage request failed: {exc}") from exc

        if response.status_code == 404:
            raise StorageObjectNotFoundError(f"Object not found: {path}")
        if response.is_error:
            raise StorageError(
                f"Storage {method} {path} failed with HTTP {response.status_code}: "
                f"{response.text[:200]}"
            )
        return response

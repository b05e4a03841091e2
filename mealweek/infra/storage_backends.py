"""Key-value backends the meal collection is persisted through.

Every backend stores plain strings under string keys:

    await backend.get(key) -> Optional[str]
    await backend.set(key, value) -> None

RemoteKVBackend  - Upstash / Vercel KV compatible REST store (primary)
LocalFileBackend - JSON files in the local data directory (on-device copy)
InMemoryBackend  - process-local dict
FallbackBackend  - tries a primary backend and falls back to a secondary one

build_backend() picks the chain once, from StorageSettings.
"""
import os
import shutil
import tempfile
import logging
from pathlib import Path
from typing import Dict, Optional
from urllib.parse import quote

import httpx
from starlette.concurrency import run_in_threadpool

from mealweek.utilities.config import StorageSettings
from mealweek.utilities.exceptions import PersistenceError, RemoteStoreError

logger = logging.getLogger(__name__)


class KeyValueBackend:
    name = "abstract"

    async def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    async def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.name}>"


class InMemoryBackend(KeyValueBackend):
    name = "memory"

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str) -> None:
        self.data[key] = value


class LocalFileBackend(KeyValueBackend):
    """One file per key under `directory`, replaced atomically on write.

    Disk access runs in the threadpool so it never blocks the event loop.
    """

    name = "local"

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    async def get(self, key: str) -> Optional[str]:
        return await run_in_threadpool(self._read, key)

    async def set(self, key: str, value: str) -> None:
        await run_in_threadpool(self._write, key, value)

    def _read(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error("Error reading local copy %s: %s", path, e)
            return None

    def _write(self, key: str, value: str) -> None:
        path = self.path_for(key)
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.directory), prefix=f".{key}_", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(value)
            shutil.move(tmp_path, path)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)


class RemoteKVBackend(KeyValueBackend):
    """REST key-value store speaking the Upstash protocol.

    GET  {url}/get/{key}  -> {"result": "<value>" | null}
    POST {url}/set/{key}  (body = value) -> {"result": "OK"}

    A client is opened per call; there are no long-lived connections.
    """

    name = "remote"

    def __init__(self, url: str, token: str, timeout: float = 5.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.url,
            headers={"Authorization": f"Bearer {self.token}"},
            timeout=self.timeout,
            transport=self._transport,
        )

    @staticmethod
    def _result(response: httpx.Response):
        response.raise_for_status()
        body = response.json()
        if not isinstance(body, dict):
            raise RemoteStoreError("Unexpected response from key-value store")
        if body.get("error"):
            raise RemoteStoreError(str(body["error"]))
        return body.get("result")

    async def get(self, key: str) -> Optional[str]:
        async with self._client() as client:
            response = await client.get(f"/get/{quote(key, safe='')}")
        result = self._result(response)
        if result is None:
            return None
        return result if isinstance(result, str) else str(result)

    async def set(self, key: str, value: str) -> None:
        async with self._client() as client:
            response = await client.post(f"/set/{quote(key, safe='')}", content=value.encode("utf-8"))
        self._result(response)


class FallbackBackend(KeyValueBackend):
    """Primary store with a secondary on-device copy.

    Reads come from the primary; if it raises, the secondary answers.
    Writes go to the secondary first, then the primary. One failing write is
    logged; both failing raises PersistenceError chained to the primary's error.
    """

    def __init__(self, primary: KeyValueBackend, secondary: KeyValueBackend):
        self.primary = primary
        self.secondary = secondary

    @property
    def name(self) -> str:
        return f"{self.primary.name}+{self.secondary.name}"

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.primary.get(key)
        except Exception as e:
            logger.warning("Error reading %r from %s, falling back to %s: %s",
                           key, self.primary.name, self.secondary.name, e)
        return await self.secondary.get(key)

    async def set(self, key: str, value: str) -> None:
        secondary_error = None
        try:
            await self.secondary.set(key, value)
        except Exception as e:
            secondary_error = e
            logger.error("Error saving %r to %s: %s", key, self.secondary.name, e)

        try:
            await self.primary.set(key, value)
        except Exception as e:
            if secondary_error is not None:
                raise PersistenceError(
                    "Could not save to any store",
                    details={"key": key, "secondary_error": str(secondary_error)},
                ) from e
            logger.warning("Error saving %r to %s, kept %s copy: %s",
                           key, self.primary.name, self.secondary.name, e)


def build_backend(settings: StorageSettings) -> KeyValueBackend:
    """Select the storage chain for the given settings (done once at startup)."""
    local = LocalFileBackend(settings.data_dir)
    if not settings.has_remote:
        logger.info("No key-value credentials; storing meals in %s", settings.data_dir)
        return local
    logger.info("Storing meals in remote key-value store with local copy in %s", settings.data_dir)
    remote = RemoteKVBackend(settings.kv_url, settings.kv_token, timeout=settings.kv_timeout)
    return FallbackBackend(remote, local)

import asyncio
import logging
from pathlib import Path

from promoscreen import config
from promoscreen.errors import StorageError

logger = logging.getLogger(__name__)

AUDIO_CONTENT_TYPE = "audio/webm"


class GCSAudioStorage:
    """Answer recordings in a Google Cloud Storage bucket, one folder per candidate."""

    def __init__(self, bucket_name: str):
        from google.cloud import storage

        self.bucket_name = bucket_name
        self._bucket = storage.Client().bucket(bucket_name)

    async def upload(self, name: str, data: bytes, content_type: str = AUDIO_CONTENT_TYPE) -> str:
        blob = self._bucket.blob(name)
        try:
            await asyncio.to_thread(blob.upload_from_string, data, content_type=content_type)
        except Exception as e:
            raise StorageError(f"Failed to upload {name}: {e}") from e
        return name

    async def download(self, name: str) -> bytes:
        blob = self._bucket.blob(name)
        try:
            return await asyncio.to_thread(blob.download_as_bytes)
        except Exception as e:
            raise StorageError(f"Failed to download {name}: {e}") from e

    async def list_names(self, prefix: str) -> list[str]:
        def do_list() -> list[str]:
            return [blob.name for blob in self._bucket.list_blobs(prefix=prefix)]

        try:
            return await asyncio.to_thread(do_list)
        except Exception as e:
            raise StorageError(f"Failed to list {prefix}: {e}") from e

    async def delete(self, names: list[str]) -> None:
        def delete_one(name: str) -> None:
            self._bucket.blob(name).delete()

        failed = []
        for name in names:
            try:
                await asyncio.to_thread(delete_one, name)
            except Exception as e:
                logger.warning("[STORAGE] Could not delete %s: %s", name, e)
                failed.append(name)
        if failed:
            raise StorageError(f"Failed to delete {len(failed)} audio files", detail=failed)

    def public_url(self, name: str) -> str:
        return self._bucket.blob(name).public_url


class LocalAudioStorage:
    """Directory-backed store used when no bucket is configured."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _path(self, name: str) -> Path:
        path = (self.root / name).resolve()
        if self.root.resolve() not in path.parents:
            raise StorageError(f"Invalid object name: {name}")
        return path

    async def upload(self, name: str, data: bytes, content_type: str = AUDIO_CONTENT_TYPE) -> str:
        path = self._path(name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as e:
            raise StorageError(f"Failed to upload {name}: {e}") from e
        return name

    async def download(self, name: str) -> bytes:
        try:
            return await asyncio.to_thread(self._path(name).read_bytes)
        except OSError as e:
            raise StorageError(f"Failed to download {name}: {e}") from e

    async def list_names(self, prefix: str) -> list[str]:
        folder = self._path(prefix.rstrip("/"))
        try:
            if not folder.is_dir():
                return []
            return sorted(
                path.relative_to(self.root.resolve()).as_posix()
                for path in folder.iterdir()
                if path.is_file()
            )
        except OSError as e:
            raise StorageError(f"Failed to list {prefix}: {e}") from e

    async def delete(self, names: list[str]) -> None:
        failed = []
        for name in names:
            try:
                self._path(name).unlink()
            except (OSError, StorageError) as e:
                logger.warning("[STORAGE] Could not delete %s: %s", name, e)
                failed.append(name)
        if failed:
            raise StorageError(f"Failed to delete {len(failed)} audio files", detail=failed)

    def public_url(self, name: str) -> str:
        return self._path(name).as_uri()


_storage = None


def get_storage():
    global _storage
    if _storage is None:
        if config.AUDIO_BUCKET:
            _storage = GCSAudioStorage(config.AUDIO_BUCKET)
        else:
            logger.warning("[STORAGE] AUDIO_BUCKET not set, storing audio under %s", config.AUDIO_LOCAL_DIR)
            _storage = LocalAudioStorage(config.AUDIO_LOCAL_DIR)
    return _storage

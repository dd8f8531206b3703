"""
Blob storage backends for recorded video bytes.

The database stores only the opaque reference returned by ``upload``.
"""
import hashlib
import hmac
import shutil
import threading
import time
from abc import ABC, abstractmethod
from datetime import timedelta
from pathlib import Path
from typing import BinaryIO, Dict, Optional
from urllib.parse import quote, urlencode


class BlobStorage(ABC):
    """
    Abstract storage interface for video blobs.

    Implementations must treat references as opaque strings and must not
    require the caller to know where bytes physically live.
    """

    @abstractmethod
    def upload(
        self, stream: BinaryIO, path: str, content_type: Optional[str] = None
    ) -> str:
        """
        Store the stream under ``path``.

        Returns:
            Opaque reference used for later delete/read-URL calls
        """
        pass

    @abstractmethod
    def delete(self, reference: str) -> None:
        """Delete a blob. Deleting a missing blob is not an error."""
        pass

    @abstractmethod
    def generate_temporary_read_url(self, reference: str, ttl: timedelta) -> str:
        """URL that allows reading the blob until ``ttl`` has elapsed."""
        pass


def _sign(key: bytes, reference: str, expires: int) -> str:
    message = f"{reference}:{expires}".encode("utf-8")
    return hmac.new(key, message, hashlib.sha256).hexdigest()


class LocalBlobStorage(BlobStorage):
    """
    Filesystem storage with HMAC-signed, expiring read URLs.

    Suitable for single-host deployments and development. The file server in
    front of ``public_base_url`` validates URLs with ``verify_signature``.
    """

    def __init__(self, root: str, public_base_url: str, signing_key: str):
        if not signing_key:
            raise ValueError("signing_key must not be empty")
        self.root = Path(root).resolve()
        self.public_base_url = public_base_url.rstrip("/")
        self._key = signing_key.encode("utf-8")

    def _resolve(self, reference: str) -> Path:
        target = (self.root / reference).resolve()
        if self.root not in target.parents:
            raise ValueError(f"Blob reference escapes storage root: {reference}")
        return target

    def upload(
        self, stream: BinaryIO, path: str, content_type: Optional[str] = None
    ) -> str:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "wb") as out:
            shutil.copyfileobj(stream, out)
        return path

    def delete(self, reference: str) -> None:
        self._resolve(reference).unlink(missing_ok=True)

    def generate_temporary_read_url(self, reference: str, ttl: timedelta) -> str:
        self._resolve(reference)
        expires = int(time.time() + ttl.total_seconds())
        query = urlencode({"expires": expires, "signature": _sign(self._key, reference, expires)})
        return f"{self.public_base_url}/{quote(reference)}?{query}"

    def verify_signature(
        self, reference: str, expires: int, signature: str, now: Optional[float] = None
    ) -> bool:
        """Check a read URL produced by ``generate_temporary_read_url``."""
        if (now if now is not None else time.time()) > expires:
            return False
        return hmac.compare_digest(_sign(self._key, reference, expires), signature)


class InMemoryBlobStorage(BlobStorage):
    """
    In-memory storage backend.

    Thread-safe with a lock for concurrent access. Data is lost on process
    restart; intended for tests and local experiments.
    """

    def __init__(self, base_url: str = "memory://blobs"):
        self.base_url = base_url.rstrip("/")
        self._blobs: Dict[str, bytes] = {}
        self._content_types: Dict[str, Optional[str]] = {}
        self._lock = threading.Lock()

    def upload(
        self, stream: BinaryIO, path: str, content_type: Optional[str] = None
    ) -> str:
        data = stream.read()
        with self._lock:
            self._blobs[path] = data
            self._content_types[path] = content_type
        return path

    def delete(self, reference: str) -> None:
        with self._lock:
            self._blobs.pop(reference, None)
            self._content_types.pop(reference, None)

    def generate_temporary_read_url(self, reference: str, ttl: timedelta) -> str:
        expires = int(time.time() + ttl.total_seconds())
        return f"{self.base_url}/{quote(reference)}?expires={expires}"

    def get(self, reference: str) -> Optional[bytes]:
        with self._lock:
            return self._blobs.get(reference)

    def __contains__(self, reference: str) -> bool:
        with self._lock:
            return reference in self._blobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._blobs)

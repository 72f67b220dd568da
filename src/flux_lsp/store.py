from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
import logging
import threading
from typing import Iterator, List

from flux_lsp.exceptions import StoreLockError

logger = logging.getLogger(__name__)

PLACEHOLDER_VERSION = 1


@dataclass(frozen=True)
class Document:
    uri: str
    version: int
    contents: str


def parent_uri(uri: str) -> str:
    head, sep, _ = uri.rpartition("/")
    return head if sep else ""


class DocumentStore:
    """Versioned map of the documents the client has open.

    Every operation runs under one exclusive lock. Nothing inside the
    critical sections performs I/O, so waits are short; a wait longer than
    ``lock_timeout`` seconds raises :class:`StoreLockError`.
    """

    def __init__(self, lock_timeout: float = 1.0) -> None:
        self._documents: dict[str, Document] = {}
        self._lock = threading.Lock()
        self.lock_timeout = lock_timeout

    @contextmanager
    def _locked(self) -> Iterator[dict[str, Document]]:
        if not self._lock.acquire(timeout=self.lock_timeout):
            raise StoreLockError(
                f"document store lock not acquired within {self.lock_timeout}s"
            )
        try:
            yield self._documents
        finally:
            self._lock.release()

    def get(self, uri: str) -> Document:
        with self._locked() as documents:
            document = documents.get(uri)
        if document is None:
            return Document(uri=uri, version=PLACEHOLDER_VERSION, contents="")
        return document

    def set(self, uri: str, version: int, contents: str) -> bool:
        """Store ``contents`` unless a newer version is already held.

        An equal version re-applies. Returns whether the update was applied.
        """
        with self._locked() as documents:
            current = documents.get(uri)
            if current is not None and current.version > version:
                applied = False
            else:
                documents[uri] = Document(uri=uri, version=version, contents=contents)
                applied = True
        if not applied:
            logger.debug("ignoring stale update for %s at version %s", uri, version)
        return applied

    def force(self, uri: str, version: int, contents: str) -> None:
        with self._locked() as documents:
            documents[uri] = Document(uri=uri, version=version, contents=contents)

    def remove(self, uri: str) -> None:
        with self._locked() as documents:
            documents.pop(uri, None)

    def keys(self) -> List[str]:
        with self._locked() as documents:
            return list(documents)

    def clear(self) -> None:
        with self._locked() as documents:
            documents.clear()

    def get_package(self, uri: str, multi_file: bool) -> List[Document]:
        """Documents analyzed together with ``uri``, with ``uri`` itself last.

        Without multi-file support this is just ``[get(uri)]``. Otherwise it
        is exactly the stored documents sharing the parent of ``uri``; an
        unopened ``uri`` contributes nothing.
        """
        if not multi_file:
            return [self.get(uri)]
        directory = parent_uri(uri)
        with self._locked() as documents:
            siblings = [
                document
                for key, document in documents.items()
                if key != uri and parent_uri(key) == directory
            ]
            target = documents.get(uri)
        siblings.sort(key=lambda document: document.uri)
        if target is not None:
            siblings.append(target)
        return siblings

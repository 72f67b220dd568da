from __future__ import annotations

import logging
from typing import List, Optional

from flux_lsp.analysis.nodes import File, Package, package_of
from flux_lsp.exceptions import AnalysisError
from flux_lsp.frontend import Environment, FrontEnd
from flux_lsp.schema import ServerSettings
from flux_lsp.store import Document, DocumentStore, parent_uri

logger = logging.getLogger(__name__)


class Session:
    """Per-server state threaded through every handler.

    Owns the document store. Everything else a handler computes (trees,
    environments, results) is built per request and dropped afterwards.
    """

    def __init__(
        self,
        frontend: FrontEnd,
        settings: Optional[ServerSettings] = None,
        store: Optional[DocumentStore] = None,
    ) -> None:
        self.frontend = frontend
        self.settings = settings or ServerSettings()
        self.store = store or DocumentStore(lock_timeout=self.settings.store_lock_timeout)
        self.multi_file = self.settings.multi_file

    def documents(self, uri: str) -> List[Document]:
        """The package of ``uri`` with ``uri`` last, even when it is not open."""
        documents = self.store.get_package(uri, self.multi_file)
        if not documents or documents[-1].uri != uri:
            documents.append(self.store.get(uri))
        return documents

    def parse(self, document: Document) -> File:
        return self.frontend.parse(document.contents, document.uri)

    def parse_package(self, uri: str) -> Package:
        """Fresh parse of the package ``uri`` belongs to; ``uri``'s file is last."""
        files = [self.parse(document) for document in self.documents(uri)]
        return package_of(files, parent_uri(uri))

    def parse_single(self, uri: str) -> Package:
        document = self.store.get(uri)
        return package_of([self.parse(document)], parent_uri(uri))

    def analyze(self, package: Package) -> Package:
        try:
            return self.frontend.analyze(package)
        except AnalysisError as exc:
            logger.warning("analysis failed for %s, using the parse tree: %s", package.path, exc)
            return package

    def environment(self) -> Environment:
        return self.frontend.environment()

    def reset(self) -> None:
        self.store.clear()
        self.multi_file = self.settings.multi_file

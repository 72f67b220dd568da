from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import pytest

from flux_lsp.router import Router
from flux_lsp.schema import ServerSettings
from flux_lsp.server import create_router
from tests.frontend_stub import StubFrontEnd, sample_environment


@pytest.fixture
def frontend() -> StubFrontEnd:
    return StubFrontEnd(environment=sample_environment())


@pytest.fixture
def router(frontend: StubFrontEnd) -> Router:
    return create_router(frontend, ServerSettings())

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

import pytest

# Settings are read once when jetrent.main is imported; point them at a scratch
# database and the offline extractor before any test module imports the app.
os.environ["SQLITE_PATH"] = str(Path(tempfile.mkdtemp(prefix="jetrent-tests-")) / "jetrent.db")
os.environ["OPENAI_API_KEY"] = ""
os.environ["SEARCH_BACKEND"] = "static"


@pytest.fixture(scope="session")
def fixtures_dir() -> Path:
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def scraper_payload(fixtures_dir: Path) -> dict:
    return json.loads((fixtures_dir / "scraper_response.json").read_text(encoding="utf-8"))


@pytest.fixture
def search_conversation(fixtures_dir: Path) -> list[dict]:
    return json.loads((fixtures_dir / "search_conversation.json").read_text(encoding="utf-8"))

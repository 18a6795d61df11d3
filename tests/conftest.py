"""Pytest configuration and shared fixtures for the test suite."""

import sys
from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add the project root to the Python path for imports
ROOT_DIR = Path(__file__).parent.parent

if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from dal.coffee_dal import CoffeeDAL  # noqa: E402
from services.storage_bucket import StorageBucket  # noqa: E402
from utils.config import Settings  # noqa: E402
from utils.database_init import AsyncDatabaseInitializer  # noqa: E402

FIXED_NOW = datetime(2025, 8, 28, 12, 0, 0, tzinfo=timezone.utc)
FORTUNE_TEXT = "Fincanında bir kuş görüyorum; yakında güzel bir haber alacaksın."


def make_response(text=FORTUNE_TEXT):
    """Build a minimal object shaped like a Responses API result."""
    return SimpleNamespace(
        output_text=text,
        output=[],
        usage=SimpleNamespace(input_tokens=120, output_tokens=80),
    )


def make_openai_client(text=FORTUNE_TEXT):
    """Return a fake AsyncOpenAI client with files and responses endpoints."""
    client = MagicMock()
    counter = {"n": 0}

    async def _create_file(file, purpose):
        counter["n"] += 1
        assert Path(file).exists()
        return SimpleNamespace(id=f"file-{counter['n']}", purpose=purpose)

    client.files.create = AsyncMock(side_effect=_create_file)
    client.files.delete = AsyncMock(return_value=SimpleNamespace(deleted=True))
    client.responses.create = AsyncMock(return_value=make_response(text))
    return client


@pytest.fixture
def openai_client():
    return make_openai_client()


@pytest.fixture
def temp_dir(tmp_path):
    path = tmp_path / "staging"
    path.mkdir()
    return path


@pytest.fixture
def bucket_dir(tmp_path):
    path = tmp_path / "bucket"
    (path / "coffee").mkdir(parents=True)
    (path / "coffee" / "cup1.jpg").write_bytes(b"\xff\xd8\xff\xe0cup-one")
    (path / "coffee" / "cup2.jpg").write_bytes(b"\xff\xd8\xff\xe0cup-two")
    return path


@pytest.fixture
def bucket(bucket_dir):
    return StorageBucket(bucket_dir)


@pytest.fixture
def settings(tmp_path, bucket_dir, temp_dir):
    return Settings(
        api_key="test-key",
        ai_base_url=None,
        ai_model="gpt-5",
        database_dir=tmp_path / "db",
        storage_bucket_dir=bucket_dir,
        temp_dir=temp_dir,
        max_instances=2,
    )


@pytest.fixture
def db_initializer(settings):
    return AsyncDatabaseInitializer(settings.database_dir)


@pytest.fixture
def dal(db_initializer):
    return CoffeeDAL(db_initializer)

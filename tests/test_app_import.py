import os
import subprocess
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent


def _import_in_fresh_interpreter(statement: str, tmp_path) -> subprocess.CompletedProcess:
    env = dict(os.environ)
    env.update(
        DATABASE_URL="sqlite://",
        UPLOAD_DIRECTORY=str(tmp_path / "uploads"),
        RATE_LIMIT_ENABLED="false",
    )
    return subprocess.run(
        [sys.executable, "-c", statement],
        cwd=str(ROOT),
        env=env,
        capture_output=True,
        text=True,
        timeout=120,
    )


@pytest.mark.parametrize(
    "statement",
    [
        "import app.main",
        "import app.modules.home_feed.services.feed",
        "import app.modules.messages.repositories.message",
        "import app.modules.payments.repositories.payment",
    ],
)
def test_modules_import_without_preloaded_models(statement, tmp_path):
    result = _import_in_fresh_interpreter(statement, tmp_path)
    assert result.returncode == 0, result.stderr


def test_app_builds_and_configures_mappers(tmp_path):
    statement = (
        "from sqlalchemy.orm import configure_mappers\n"
        "from app.main import create_app\n"
        "create_app()\n"
        "configure_mappers()\n"
    )
    result = _import_in_fresh_interpreter(statement, tmp_path)
    assert result.returncode == 0, result.stderr

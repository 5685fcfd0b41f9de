import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from pathlib import Path

import pytest

from traktdash.auth import passwords


@pytest.fixture(autouse=True)
def cheap_kdf(request, monkeypatch):
    # minimum argon2 cost; records only need to round-trip inside one test
    if request.node.get_closest_marker("real_kdf"):
        return
    monkeypatch.setattr(passwords, "TIME_COST", 1)
    monkeypatch.setattr(passwords, "MEMORY_COST_KIB", 1024)
    monkeypatch.setattr(passwords, "PARALLELISM", 1)


@pytest.fixture(autouse=True)
def tdash_env(tmp_path: Path, monkeypatch) -> Path:
    """Point every config path at a fresh temporary tree."""
    data_dir = tmp_path / "data"
    config_dir = tmp_path / "config"
    data_dir.mkdir()
    monkeypatch.setenv("TDASH_DATA_DIR", str(data_dir))
    monkeypatch.setenv("TDASH_CONFIG_DIR", str(config_dir))
    monkeypatch.setenv("TDASH_SECRET_KEY", "test-secret")
    for name in (
        "TDASH_AUTH_PATH",
        "TDASH_TRAKT_PATH",
        "TDASH_TOKEN_FILE",
        "TRAKT_CLIENT_ID",
        "TRAKT_CLIENT_SECRET",
        "OAUTH_REDIRECT_URI",
        "TDASH_LANGUAGE",
    ):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


@pytest.fixture()
def trakt_configured(monkeypatch):
    monkeypatch.setenv("TRAKT_CLIENT_ID", "client-id")
    monkeypatch.setenv("TRAKT_CLIENT_SECRET", "client-secret")

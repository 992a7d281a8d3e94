import pytest

from factories import MODEL_DIR, baseline_answers
from epsa_engine.config_store import ModelConfigStore, load_model_config


@pytest.fixture(scope="session")
def config():
    """Bundled default configuration, parsed once (configs are immutable)."""
    return load_model_config(MODEL_DIR / "default.yaml")


@pytest.fixture
def store():
    """Fresh loaded store per test, since publish/rollback mutate it."""
    s = ModelConfigStore(MODEL_DIR)
    s.load()
    return s


@pytest.fixture
def answers():
    return baseline_answers()

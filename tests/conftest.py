import pytest

from scanlog.app import create_app
from scanlog.store import ScanStore


class RecordingNotifier:
    def __init__(self):
        self.calls = []

    def notify(self, created_at, ip, user_agent):
        self.calls.append((created_at, ip, user_agent))


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "scanlogs.db")


@pytest.fixture
def store(db_path):
    store = ScanStore(db_path)
    store.initialize()
    return store


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def app(db_path, store, notifier):
    app = create_app({"TESTING": True, "SCANLOG_DB": db_path}, store=store, notifier=notifier)
    return app


@pytest.fixture
def client(app):
    return app.test_client()

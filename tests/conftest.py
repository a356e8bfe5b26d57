import pytest

from fakes import FakeTaskManager, make_payload, make_salah_times


@pytest.fixture
def salah_times_factory():
    return make_salah_times


@pytest.fixture
def payload_factory():
    return make_payload


@pytest.fixture
def task_manager():
    return FakeTaskManager()


@pytest.fixture
def notifications():
    sent = []

    def notify(title, body):
        sent.append((title, body))

    notify.sent = sent
    return notify


@pytest.fixture
def source_config(tmp_path):
    return {"cache_dir": str(tmp_path / "cache"), "use_cache": False}

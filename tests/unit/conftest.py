import pytest

from fakes import FakeTable


@pytest.fixture
def table():
    return FakeTable()

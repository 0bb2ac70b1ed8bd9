import pytest

from fakes import RecordingSleep


@pytest.fixture
def no_sleep():
    return RecordingSleep()

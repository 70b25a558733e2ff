import pytest

from rbridge import MemoryRuntime


@pytest.fixture
def rt():
    return MemoryRuntime()

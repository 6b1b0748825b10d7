import pytest

from pom_fixer.core.buffer import LineBuffer
from pom_fixer.core.parser.pom_loader import PomLoader


@pytest.fixture
def loader():
    return PomLoader()


@pytest.fixture
def load(loader):
    """Return ``(buffer, model)`` for pom text."""
    def _load(text):
        buffer = LineBuffer.from_text(text)
        return buffer, loader.load(buffer)
    return _load

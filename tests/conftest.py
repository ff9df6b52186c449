import pytest
from PyQt6.QtCore import QCoreApplication

from stacktrack.symbols import SymbolTable
from stacktrack.tracker import StackTracker

MAIN = 0x00400000
FACT = 0x00400040


@pytest.fixture(scope="session", autouse=True)
def _qt_app():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def symbols() -> SymbolTable:
    return SymbolTable({"main": MAIN, "fact": FACT})


@pytest.fixture
def tracker(symbols: SymbolTable) -> StackTracker:
    return StackTracker(resolver=symbols)

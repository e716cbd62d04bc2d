import logging
import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from delve.characters import CharacterClass  # noqa: E402
from delve.config import SessionConfig  # noqa: E402
from delve.session.state import SessionState  # noqa: E402


@pytest.fixture
def session() -> SessionState:
    return SessionState("ROOM01", "Epic Adventure", config=SessionConfig())


@pytest.fixture
def party(session):
    """A warrior host, a mage and a rogue, all on the entrance."""
    warrior = session.add_player("Aria", CharacterClass.WARRIOR, is_host=True)
    mage = session.add_player("Gandalf", CharacterClass.MAGE)
    rogue = session.add_player("Shade", CharacterClass.ROGUE)
    return warrior, mage, rogue


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo handlers and levels that configure_logging() puts on ``delve``."""
    logger = logging.getLogger("delve")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
if SRC.exists():
    sys.path.insert(0, str(SRC))

# Register shared Hypothesis profiles for deterministic CI runs and fast local loops.
from tests.util import hypothesis_profiles  # noqa: E402,F401  pylint: disable=unused-import


@pytest.fixture
def table_logs(caplog: pytest.LogCaptureFixture) -> Iterator[pytest.LogCaptureFixture]:
    """Capture records from the ``inthash`` logger even when the CLI disabled propagation."""

    logger = logging.getLogger("inthash")
    previous = logger.propagate
    logger.propagate = True
    try:
        with caplog.at_level(logging.DEBUG, logger="inthash"):
            yield caplog
    finally:
        logger.propagate = previous

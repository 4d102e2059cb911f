from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for path in (ROOT / "src", ROOT / "tests"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))


import pytest
from loguru import logger

from nullcheck import CollectingReporter, NullTester


@pytest.fixture(autouse=True)
def _quiet_logging():
    logger.remove()
    yield
    logger.remove()


@pytest.fixture
def tester() -> NullTester:
    return NullTester().set_default(str, "x")


@pytest.fixture
def collecting() -> tuple[NullTester, CollectingReporter]:
    reporter = CollectingReporter()
    return NullTester(reporter=reporter).set_default(str, "x"), reporter

from __future__ import annotations

from collections.abc import Iterator

import pytest

from implindex.registrar import reset_session


@pytest.fixture(autouse=True)
def fresh_session() -> Iterator[None]:
    reset_session()
    yield
    reset_session()

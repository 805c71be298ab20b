from contextlib import AbstractContextManager, contextmanager
from pathlib import Path
from typing import Generator, Protocol

import pytest
from tsquery import config

RESOURCES = Path(__file__).parent / "resources"


class ConfigFixtureProtocol(Protocol):
    def __call__(
        self,
        *,
        logging: bool = config.TRACE_LOGGING,
        max_depth: int = config.MAX_NESTING_DEPTH,
    ) -> AbstractContextManager[None]:
        ...


@pytest.fixture
def tsquery_config() -> ConfigFixtureProtocol:
    @contextmanager
    def _with_config(
        *,
        logging: bool = config.TRACE_LOGGING,
        max_depth: int = config.MAX_NESTING_DEPTH,
    ) -> Generator[None, None, None]:
        old_logging = config.TRACE_LOGGING
        old_max_depth = config.MAX_NESTING_DEPTH
        config.TRACE_LOGGING = logging
        config.MAX_NESTING_DEPTH = max_depth
        try:
            yield
        finally:
            config.TRACE_LOGGING = old_logging
            config.MAX_NESTING_DEPTH = old_max_depth

    return _with_config


@pytest.fixture
def resources() -> Path:
    return RESOURCES

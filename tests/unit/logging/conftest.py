import pytest

from hyperping.logging import LoggingConfig


@pytest.fixture(autouse=True)
def configure_log_level():
    config = LoggingConfig()
    config.update(log_level="debug", log_output="stderr", disabled_loggers=[])
    yield
    config.update(log_level="info", log_output="stderr", disabled_loggers=[])

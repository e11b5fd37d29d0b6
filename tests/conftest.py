import pytest

from screcord import timezone_utils
from screcord.debug import set_debug


@pytest.fixture(autouse=True)
def _utc_and_quiet():
    timezone_utils.set_timezone("UTC")
    set_debug(False)
    yield
    timezone_utils.set_timezone("UTC")
    set_debug(False)

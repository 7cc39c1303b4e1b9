"""BDD tests for end-to-end log triage.

Step definitions are in conftest.py.
"""

import pytest
from pytest_bdd import scenarios

scenarios("triage.feature")
scenarios("color_cache.feature")

pytestmark = [
    pytest.mark.tier(2),
    pytest.mark.tra("Pipeline.EndToEnd"),
]

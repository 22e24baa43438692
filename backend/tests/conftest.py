import sys
from pathlib import Path

import pytest

# backend/ is the import root for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from services.content_catalog import ContentCatalog  # noqa: E402
from services.share_card_targets import FilterOptions, resolve_filter_options  # noqa: E402


@pytest.fixture
def empty_catalog():
    """Catalog without blog posts, countries or example trips: only the fixed static routes."""
    return ContentCatalog()


@pytest.fixture
def priority_filters():
    return resolve_filter_options(FilterOptions(target_scope="priority"))

"""Check the committed share card manifest against the current static targets.

Exits non-zero when the manifest needs a rebuild.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from dotenv import load_dotenv  # noqa: E402

from services.manifest_validator import ManifestValidationError, validate_manifest  # noqa: E402

logger = logging.getLogger("share_cards.validate")


def main() -> int:
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    try:
        validate_manifest()
    except ManifestValidationError as exc:
        logger.error("[share-cards:validate] %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

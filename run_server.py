import os

import uvicorn

from app.check_credentials import check_credentials
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="server")


def maybe_check_credentials() -> None:
    """
    Run the credential preflight. Controlled by:
    - DASHBOARD_SKIP_CREDENTIAL_CHECK=true to skip entirely (useful in dev/tests)
    - DASHBOARD_STRICT_CREDENTIALS=true to refuse to start when any key is missing.
    """
    if os.getenv("DASHBOARD_SKIP_CREDENTIAL_CHECK", "false").lower() in ("1", "true", "yes"):
        logger.info("Skipping credential preflight (DASHBOARD_SKIP_CREDENTIAL_CHECK=true)")
        return

    try:
        check_credentials()
    except SystemExit:
        logger.error("Credential preflight failed; unset DASHBOARD_STRICT_CREDENTIALS to serve fallback values instead.")
        raise


if __name__ == "__main__":
    maybe_check_credentials()

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=False,
    )

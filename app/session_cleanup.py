"""
CLI entrypoint for the expired-session sweep. Run from cron, e.g.:

  python -m app.session_cleanup

Or hourly: 0 * * * * cd /path/to/portal && .venv/bin/python -m app.session_cleanup

The API process runs the same sweep on a timer unless
SESSION_CLEANUP_SCHEDULER_ENABLED=false; set that when cron runs this instead.
SESSION_CLEANUP_ENABLED=false turns the sweep off here too.
"""

import logging
import sys

from app.core.config import get_settings
from app.core.database import build_engine, build_session_factory, session_scope
from app.services.session_cleanup import run_session_cleanup

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Run one sweep: delete sessions whose expires_at has passed."""
    settings = get_settings()
    engine = build_engine(settings)
    try:
        with session_scope(build_session_factory(engine)) as db:
            sessions_deleted = run_session_cleanup(db, settings)
        logger.info("Session cleanup completed: sessions_deleted=%s", sessions_deleted)
        return 0
    except Exception as e:
        logger.exception("Session cleanup job failed: %s", e)
        return 1
    finally:
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())

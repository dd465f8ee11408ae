import logging
from sqlalchemy.exc import SQLAlchemyError
from contract_tracker.exceptions import PersistenceError
from contract_tracker.extensions import db

logger = logging.getLogger(__name__)


def commit_and_publish(feed, collection):
    """Commits the session, then tells subscribers of ``collection``.

    Nothing is published when the commit fails; the session is rolled back
    and the failure surfaces as PersistenceError.
    """
    try:
        db.session.commit()
    except PersistenceError:
        db.session.rollback()
        raise
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Commit to %s failed: %s", collection, e)
        raise PersistenceError() from e
    if feed is not None:
        feed.publish(collection)

"""Admin utilities: full data reset."""

from __future__ import annotations

import logging

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageFailure
from ..infra.database import SessionFactory
from ..models import BookEntry, Settlement, User, UserPreference

logger = logging.getLogger("ledgerbook.admin")

# Children before parents so foreign keys never dangle mid-reset.
RESET_ORDER = (Settlement, BookEntry, UserPreference, User)


def reset_all_data(session_factory: SessionFactory) -> dict[str, int]:
    """Hard-delete every ledger row in one transaction.

    This is the only path that physically removes book entries. Returns the
    number of rows removed per table.
    """

    removed: dict[str, int] = {}
    try:
        with session_factory() as session:
            for model in RESET_ORDER:
                result = session.connection().execute(delete(model))
                removed[model.__tablename__] = result.rowcount or 0
            session.commit()
    except SQLAlchemyError as exc:
        logger.error("Data reset failed", exc_info=True)
        raise StorageFailure("Could not reset ledger data") from exc

    logger.warning("All ledger data reset", extra={"removed": removed})
    return removed

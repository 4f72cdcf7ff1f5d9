"""Service for deleting a logical sale (every unit row of one checkout)."""
import logging
from datetime import datetime
from typing import Optional, Sequence

from salonpos.exceptions import BusinessLogicError, NotFoundError
from salonpos.models import Sale
from salonpos.services.authorization_service import AuthorizationPolicy
from salonpos.services.sale_store import SaleStore, SqlAlchemySaleStore

logger = logging.getLogger(__name__)


def delete_sale_group(
    session,
    row_ids: Sequence[int],
    policy: AuthorizationPolicy,
    passphrase: Optional[str] = None,
    now: Optional[datetime] = None,
    store: Optional[SaleStore] = None
) -> dict:
    """
    Delete all unit rows of one logical sale.

    Steps:
    1. Authorize (cooldown or passphrase)
    2. Check every row exists and the ids are exactly one (date, customer) group
    3. Delete the rows in one store call, then restart the cooldown
    4. Invalidate cached reports

    Args:
        session: SQLAlchemy session
        row_ids: Ids of the unit rows of the group
        policy: Authorization policy for destructive operations
        passphrase: Admin passphrase, not needed inside the cooldown
        now: Current time (injected in tests)
        store: Sale store, SqlAlchemySaleStore(session) by default

    Returns:
        dict with success message and details

    Raises:
        DeletionAuthError: Authorization failed, nothing deleted
        BusinessLogicError: No ids, ids span several sales, or ids leave
            part of the sale out
        NotFoundError: Some rows do not exist
        WriteError: The store failed, nothing deleted
    """
    ids = sorted({int(row_id) for row_id in row_ids or []})
    if not ids:
        raise BusinessLogicError('No sale rows selected.')

    now = now or datetime.now()
    policy.authorize(passphrase, now)

    rows = session.query(Sale).filter(Sale.id.in_(ids)).all()
    if len(rows) != len(ids):
        missing = set(ids) - {row.id for row in rows}
        raise NotFoundError(f'Sale rows not found: {sorted(missing)}')

    groups = {(row.date, row.customer_id) for row in rows}
    if len(groups) > 1:
        raise BusinessLogicError('The selected rows belong to more than one sale.')

    date, customer_id = groups.pop()
    group_ids = {
        row_id for (row_id,) in session.query(Sale.id).filter(
            Sale.date == date, Sale.customer_id == customer_id
        )
    }
    left_out = group_ids - set(ids)
    if left_out:
        raise BusinessLogicError(
            f'Select every row of the sale: {len(left_out)} of {len(group_ids)} rows were left out.',
            payload={'missing_ids': sorted(left_out)}
        )

    store = store or SqlAlchemySaleStore(session)
    deleted = store.delete_rows(ids)
    policy.record_authorization(now)

    logger.info(f"Sale deleted: customer {customer_id}, date {date.isoformat()}, {deleted} rows")

    try:
        from salonpos.services.cache_service import get_cache
        get_cache().invalidate_module('reports')
    except RuntimeError as e:
        logger.warning(f"Reports cache not invalidated: {e}")

    return {
        'success': True,
        'message': f'Sale deleted ({deleted} rows).',
        'deleted_ids': ids,
        'customer_id': customer_id,
        'date': date.isoformat(),
    }

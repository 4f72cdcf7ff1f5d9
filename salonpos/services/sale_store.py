"""
Sale store: the only place unit rows are written or deleted.

Store contract:
    write(unit) -> row id                 (raises WriteError)
    write_many(units) -> [row ids]        (atomic, only when supports_batch)
    delete_rows(ids) -> deleted count     (atomic, raises WriteError)
"""
import logging
from typing import List, Sequence

from sqlalchemy.exc import SQLAlchemyError

from salonpos.domain import SaleUnit
from salonpos.exceptions import NotFoundError, WriteError
from salonpos.models import Sale

logger = logging.getLogger(__name__)


class SaleStore:
    """Base class for unit-row stores."""

    supports_batch = False

    def write(self, unit: SaleUnit) -> int:
        raise NotImplementedError

    def write_many(self, units: Sequence[SaleUnit]) -> List[int]:
        raise NotImplementedError

    def delete_rows(self, ids: Sequence[int]) -> int:
        raise NotImplementedError


class SqlAlchemySaleStore(SaleStore):
    """Store backed by the application's SQLAlchemy session."""

    supports_batch = True

    def __init__(self, session):
        self.session = session

    @staticmethod
    def _to_row(unit: SaleUnit) -> Sale:
        return Sale(
            customer_id=unit.customer_id,
            staff_id=unit.staff_id,
            service_id=unit.service_id,
            date=unit.date,
            total=unit.unit_final_price,
            discount_amount=unit.discount_amount,
            payment_mode=unit.payment_mode,
        )

    def write(self, unit: SaleUnit) -> int:
        try:
            row = self._to_row(unit)
            self.session.add(row)
            self.session.commit()
            return row.id
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Sale row write failed: {e}")
            raise WriteError(f'Could not save sale row: {str(e)}')

    def write_many(self, units: Sequence[SaleUnit]) -> List[int]:
        """Write all rows in one transaction, nothing is kept on failure."""
        try:
            rows = [self._to_row(unit) for unit in units]
            self.session.add_all(rows)
            self.session.flush()
            ids = [row.id for row in rows]
            self.session.commit()
            return ids
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Sale batch write failed ({len(units)} rows): {e}")
            raise WriteError(f'Could not save sale: {str(e)}', total_rows=len(units))

    def delete_rows(self, ids: Sequence[int]) -> int:
        """Delete every row in ids or none of them."""
        ids = list(ids)
        try:
            rows = self.session.query(Sale).filter(Sale.id.in_(ids)).all()
            if len(rows) != len(set(ids)):
                missing = set(ids) - {row.id for row in rows}
                raise NotFoundError(f'Sale rows not found: {sorted(missing)}')

            for row in rows:
                self.session.delete(row)
            self.session.commit()
            return len(rows)
        except NotFoundError:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Sale rows delete failed: {e}")
            raise WriteError(f'Could not delete sale: {str(e)}')

"""
Sales history: unit rows grouped back into logical sales.

A logical sale is every `sale` row sharing (date, customer_id).
"""
import csv
import io
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import joinedload

from salonpos.exceptions import BusinessLogicError
from salonpos.models import Sale
from salonpos.utils.formatters import datetime_fmt, payment_mode_label
from salonpos.utils.money import ZERO, to_money

SORT_FIELDS = ('date', 'total', 'customer')
CSV_HEADERS = ['Date', 'Customer', 'Services', 'Staff', 'Payment Mode', 'Total']


@dataclass
class SaleGroup:
    date: datetime
    customer_id: int
    customer_name: str
    payment_mode: str
    row_ids: List[int] = field(default_factory=list)
    services: List[str] = field(default_factory=list)
    staff: List[str] = field(default_factory=list)
    total: Decimal = ZERO
    discount: Decimal = ZERO

    @property
    def unit_count(self) -> int:
        return len(self.row_ids)

    def matches(self, term: str) -> bool:
        term = term.lower()
        names = [self.customer_name] + self.services + self.staff
        return any(term in (name or '').lower() for name in names)

    def to_dict(self) -> dict:
        return {
            'date': self.date.isoformat(),
            'customer_id': self.customer_id,
            'customer_name': self.customer_name,
            'services': self.services,
            'staff': self.staff,
            'unit_count': self.unit_count,
            'total': str(self.total),
            'discount': str(self.discount),
            'payment_mode': self.payment_mode,
            'row_ids': self.row_ids,
        }


def _unique(values: List[str], value: str) -> None:
    if value not in values:
        values.append(value)


def group_sale_rows(rows: List[Sale]) -> List[SaleGroup]:
    """Group unit rows by (date, customer_id), keeping first-seen order."""
    groups: Dict[Tuple[datetime, int], SaleGroup] = {}
    for row in rows:
        key = (row.date, row.customer_id)
        group = groups.get(key)
        if group is None:
            group = SaleGroup(
                date=row.date,
                customer_id=row.customer_id,
                customer_name=row.customer.name if row.customer else 'Unknown Customer',
                payment_mode=row.payment_mode,
            )
            groups[key] = group

        group.row_ids.append(row.id)
        _unique(group.services, row.service.name if row.service else 'Unknown Service')
        _unique(group.staff, row.staff.name if row.staff else 'Unknown Staff')
        group.total += to_money(row.total)
        group.discount += to_money(row.discount_amount)

    return list(groups.values())


def list_sale_groups(
    session,
    search: Optional[str] = None,
    on_date: Optional[date] = None,
    sort: str = 'date',
    descending: bool = True
) -> List[SaleGroup]:
    """
    Logical sales, filtered and sorted.

    Args:
        session: SQLAlchemy session
        search: Case-insensitive match on customer, service or staff name
        on_date: Only sales completed on this calendar day
        sort: 'date', 'total' or 'customer'
        descending: Sort direction (newest first by default)
    """
    if sort not in SORT_FIELDS:
        raise BusinessLogicError(f'Invalid sort field: {sort}')

    query = session.query(Sale).options(
        joinedload(Sale.customer),
        joinedload(Sale.staff),
        joinedload(Sale.service)
    )

    if on_date:
        start = datetime.combine(on_date, datetime.min.time())
        query = query.filter(Sale.date >= start, Sale.date < start + timedelta(days=1))

    rows = query.order_by(Sale.date.desc(), Sale.id.asc()).all()
    groups = group_sale_rows(rows)

    if search and search.strip():
        groups = [g for g in groups if g.matches(search.strip())]

    if sort == 'total':
        groups.sort(key=lambda g: g.total, reverse=descending)
    elif sort == 'customer':
        groups.sort(key=lambda g: g.customer_name.lower(), reverse=descending)
    else:
        groups.sort(key=lambda g: g.date, reverse=descending)

    return groups


def summarize(groups: List[SaleGroup]) -> dict:
    """Count and revenue of a filtered list."""
    return {
        'sales_count': len(groups),
        'units_count': sum(g.unit_count for g in groups),
        'revenue': sum((g.total for g in groups), ZERO),
    }


def export_csv(groups: List[SaleGroup]) -> str:
    """CSV text of the list, one line per logical sale."""
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL)
    writer.writerow(CSV_HEADERS)
    for g in groups:
        writer.writerow([
            datetime_fmt(g.date),
            g.customer_name,
            ', '.join(g.services),
            ', '.join(g.staff),
            payment_mode_label(g.payment_mode),
            f"{g.total:.2f}",
        ])
    return output.getvalue()

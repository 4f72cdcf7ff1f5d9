"""
Reports service: revenue, staff performance, best-selling services and
payment methods over a date range.

Every figure is computed from unit rows (one row = one unit sold).
Results are cached per range in the 'reports' cache module; completing or
deleting a sale invalidates the module.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy import func, desc

from salonpos.exceptions import BusinessLogicError
from salonpos.models import Sale, Staff, Service, PaymentMode
from salonpos.utils.money import ZERO, HUNDRED, to_money

logger = logging.getLogger(__name__)

RANGES = ('day', 'week', 'month', 'quarter', 'custom')
RANGE_LABELS = {
    'day': 'Today',
    'week': 'Last 7 Days',
    'month': 'This Month',
    'quarter': 'Last 3 Months',
    'custom': 'Custom Range',
}


def _month_start(year: int, month: int) -> datetime:
    while month < 1:
        month += 12
        year -= 1
    return datetime(year, month, 1)


def resolve_date_range(
    range_name: str = 'week',
    now: Optional[datetime] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None
) -> Tuple[datetime, datetime]:
    """
    Start and end datetimes of a named range (both inclusive).

    Open ranges end at the end of today and start on a whole minute, so
    every request inside the same minute resolves to the same bounds (and
    the same cache key). A custom range without both dates falls back to
    the current month.
    """
    if range_name not in RANGES:
        raise BusinessLogicError(f'Invalid date range: {range_name}')

    now = (now or datetime.now()).replace(second=0, microsecond=0)
    today = datetime(now.year, now.month, now.day)
    end = today + timedelta(days=1) - timedelta(microseconds=1)

    if range_name == 'day':
        start = today
    elif range_name == 'week':
        start = now - timedelta(days=7)
    elif range_name == 'quarter':
        start = _month_start(now.year, now.month - 3)
    elif range_name == 'custom' and start_date and end_date:
        if end_date < start_date:
            raise BusinessLogicError('The end date must not be before the start date.')
        start = datetime.combine(start_date, datetime.min.time())
        end = datetime.combine(end_date, datetime.max.time())
    else:
        start = _month_start(now.year, now.month)

    return start, end


def _range_query(query, start: datetime, end: datetime):
    return query.filter(Sale.date >= start, Sale.date <= end)


def _cached(key: str, loader_fn: Callable[[], dict]) -> dict:
    try:
        from flask import current_app
        from salonpos.services.cache_service import get_cache
        ttl = current_app.config.get('CACHE_REPORTS_TTL', 120)
        return get_cache().memoize('reports', key, loader_fn, ttl=ttl)
    except RuntimeError as e:
        # No app context or cache not initialized
        logger.debug(f"[CACHE] Reports cache skipped: {e}")
        return loader_fn()


def _range_key(kind: str, start: datetime, end: datetime, *extra) -> str:
    parts = [kind, start.isoformat(), end.isoformat()] + [str(x) for x in extra]
    return ':'.join(parts)


# =====================================================
# REVENUE
# =====================================================

def get_revenue_report(session, start: datetime, end: datetime) -> Dict:
    """
    Daily revenue series for the range.

    Returns:
        {
            'days': [{'date': 'YYYY-MM-DD', 'units_count': int, 'revenue': Decimal}],
            'total_revenue': Decimal,
            'total_units': int,
            'average_daily': Decimal   # over days with sales
        }
    """
    def load():
        rows = _range_query(session.query(Sale.date, Sale.total), start, end).order_by(Sale.date).all()

        daily: Dict[str, Dict] = {}
        for sale_date, total in rows:
            key = sale_date.date().isoformat()
            day = daily.setdefault(key, {'date': key, 'units_count': 0, 'revenue': ZERO})
            day['units_count'] += 1
            day['revenue'] += to_money(total)

        days = [daily[key] for key in sorted(daily)]
        total_revenue = sum((d['revenue'] for d in days), ZERO)
        total_units = sum(d['units_count'] for d in days)
        average = to_money(total_revenue / len(days)) if days else ZERO

        return {
            'days': days,
            'total_revenue': total_revenue,
            'total_units': total_units,
            'average_daily': average,
        }

    return _cached(_range_key('revenue', start, end), load)


# =====================================================
# STAFF PERFORMANCE
# =====================================================

def get_staff_performance(session, start: datetime, end: datetime, sort_by: str = 'revenue') -> List[Dict]:
    """
    Per staff member: units sold, revenue and average unit value.

    sort_by: 'revenue' or 'sales' (units count), descending.
    """
    if sort_by not in ('revenue', 'sales'):
        raise BusinessLogicError(f'Invalid sort field: {sort_by}')

    def load():
        query = (
            session.query(
                Staff.id.label('staff_id'),
                Staff.name.label('name'),
                func.count(Sale.id).label('units_count'),
                func.sum(Sale.total).label('revenue')
            )
            .join(Sale, Sale.staff_id == Staff.id)
            .group_by(Staff.id, Staff.name)
        )
        results = []
        for row in _range_query(query, start, end).all():
            revenue = to_money(row.revenue)
            results.append({
                'staff_id': row.staff_id,
                'name': row.name,
                'units_count': row.units_count,
                'revenue': revenue,
                'average_sale': to_money(revenue / row.units_count) if row.units_count else ZERO,
            })

        field = 'revenue' if sort_by == 'revenue' else 'units_count'
        results.sort(key=lambda r: (-r[field], r['name'].lower()))
        return {'staff': results}

    return _cached(_range_key('staff', start, end, sort_by), load)['staff']


# =====================================================
# BEST-SELLING SERVICES
# =====================================================

def get_best_selling_services(session, start: datetime, end: datetime, sort_by: str = 'sales', limit: int = 10) -> List[Dict]:
    """Services ranked by units sold (sort_by='sales') or revenue."""
    if sort_by not in ('revenue', 'sales'):
        raise BusinessLogicError(f'Invalid sort field: {sort_by}')

    def load():
        order = desc('units_count') if sort_by == 'sales' else desc('revenue')
        query = (
            session.query(
                Service.id.label('service_id'),
                Service.name.label('name'),
                func.count(Sale.id).label('units_count'),
                func.sum(Sale.total).label('revenue')
            )
            .join(Sale, Sale.service_id == Service.id)
            .group_by(Service.id, Service.name)
        )
        rows = _range_query(query, start, end).order_by(order, Service.name).limit(limit).all()
        return {'services': [
            {
                'service_id': row.service_id,
                'name': row.name,
                'units_count': row.units_count,
                'revenue': to_money(row.revenue),
            }
            for row in rows
        ]}

    return _cached(_range_key('services', start, end, sort_by, limit), load)['services']


# =====================================================
# PAYMENT METHODS
# =====================================================

def get_payment_method_breakdown(session, start: datetime, end: datetime) -> List[Dict]:
    """Per payment mode: units, revenue and share of total revenue (percent)."""
    def load():
        query = session.query(
            Sale.payment_mode.label('payment_mode'),
            func.count(Sale.id).label('units_count'),
            func.sum(Sale.total).label('revenue')
        ).group_by(Sale.payment_mode)
        rows = _range_query(query, start, end).all()

        total_revenue = sum((to_money(row.revenue) for row in rows), ZERO)
        results = []
        for row in rows:
            revenue = to_money(row.revenue)
            percentage = to_money(revenue * HUNDRED / total_revenue) if total_revenue > 0 else ZERO
            results.append({
                'payment_mode': row.payment_mode or PaymentMode.CASH.value,
                'units_count': row.units_count,
                'revenue': revenue,
                'percentage': percentage,
            })

        results.sort(key=lambda r: r['revenue'], reverse=True)
        return {'payment_methods': results, 'total_revenue': total_revenue}

    return _cached(_range_key('payments', start, end), load)['payment_methods']

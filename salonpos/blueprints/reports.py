"""Reports blueprint - revenue, staff, services and payment methods (JSON)."""
from typing import Any, Dict

from flask import Blueprint, request, jsonify, Response

from salonpos.database import get_session
from salonpos.exceptions import BusinessLogicError
from salonpos.services import reports_service
from salonpos.utils.formatters import parse_date

reports_bp = Blueprint('reports', __name__, url_prefix='/reports')


def _range():
    """?range=day|week|month|quarter|custom with ?start= and ?end= for custom."""
    range_name = request.args.get('range', 'week')
    try:
        start_date = parse_date(request.args.get('start'))
        end_date = parse_date(request.args.get('end'))
    except ValueError:
        raise BusinessLogicError('Invalid date, expected YYYY-MM-DD')

    start, end = reports_service.resolve_date_range(range_name, start_date=start_date, end_date=end_date)
    return range_name, start, end


def _envelope(range_name: str, start, end, **data) -> Dict[str, Any]:
    result = {
        'range': range_name,
        'label': reports_service.RANGE_LABELS[range_name],
        'start': start.isoformat(),
        'end': end.isoformat(),
    }
    result.update(data)
    return result


def _stringify(rows, *fields):
    for row in rows:
        for field in fields:
            row[field] = str(row[field])
    return rows


@reports_bp.route('/revenue', methods=['GET'])
def revenue() -> Response:
    range_name, start, end = _range()
    report = reports_service.get_revenue_report(get_session(), start, end)
    return jsonify(_envelope(
        range_name, start, end,
        days=_stringify([dict(d) for d in report['days']], 'revenue'),
        total_revenue=str(report['total_revenue']),
        total_units=report['total_units'],
        average_daily=str(report['average_daily'])
    ))


@reports_bp.route('/staff', methods=['GET'])
def staff_performance() -> Response:
    range_name, start, end = _range()
    rows = reports_service.get_staff_performance(
        get_session(), start, end, sort_by=request.args.get('sort', 'revenue')
    )
    return jsonify(_envelope(
        range_name, start, end,
        staff=_stringify([dict(r) for r in rows], 'revenue', 'average_sale')
    ))


@reports_bp.route('/services', methods=['GET'])
def best_selling_services() -> Response:
    range_name, start, end = _range()
    try:
        limit = int(request.args.get('limit', 10))
    except ValueError:
        raise BusinessLogicError('Invalid limit')

    rows = reports_service.get_best_selling_services(
        get_session(), start, end, sort_by=request.args.get('sort', 'sales'), limit=limit
    )
    return jsonify(_envelope(
        range_name, start, end,
        services=_stringify([dict(r) for r in rows], 'revenue')
    ))


@reports_bp.route('/payment-methods', methods=['GET'])
def payment_methods() -> Response:
    range_name, start, end = _range()
    rows = reports_service.get_payment_method_breakdown(get_session(), start, end)
    return jsonify(_envelope(
        range_name, start, end,
        payment_methods=_stringify([dict(r) for r in rows], 'revenue', 'percentage')
    ))

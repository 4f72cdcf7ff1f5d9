"""Sales blueprint - history, CSV export and deletion of logical sales."""
from datetime import datetime
from typing import Any, Dict

from flask import Blueprint, request, session, jsonify, current_app, Response

from salonpos.database import get_session
from salonpos.exceptions import BusinessLogicError
from salonpos.services.authorization_service import AuthorizationPolicy
from salonpos.services.sale_delete_service import delete_sale_group
from salonpos.services.sales_history_service import list_sale_groups, summarize, export_csv
from salonpos.utils.formatters import parse_date

sales_bp = Blueprint('sales', __name__, url_prefix='/sales')


def _filtered_groups():
    """History filtered by ?q=, ?date=YYYY-MM-DD, ?sort=date|total|customer, ?order=asc|desc."""
    try:
        on_date = parse_date(request.args.get('date'))
    except ValueError:
        raise BusinessLogicError('Invalid date, expected YYYY-MM-DD')

    return list_sale_groups(
        get_session(),
        search=request.args.get('q', '').strip() or None,
        on_date=on_date,
        sort=request.args.get('sort', 'date'),
        descending=request.args.get('order', 'desc') != 'asc'
    )


def get_authorization_policy() -> AuthorizationPolicy:
    """Deletion policy backed by the browser session."""
    return AuthorizationPolicy(
        session,
        current_app.config.get('ADMIN_PASSPHRASE_HASH'),
        current_app.config.get('DELETE_AUTH_COOLDOWN_SECONDS', 300)
    )


@sales_bp.route('/', methods=['GET'])
def list_sales() -> Response:
    groups = _filtered_groups()
    summary = summarize(groups)
    return jsonify({
        'sales': [g.to_dict() for g in groups],
        'sales_count': summary['sales_count'],
        'units_count': summary['units_count'],
        'revenue': str(summary['revenue']),
    })


@sales_bp.route('/export.csv', methods=['GET'])
def export_sales() -> Response:
    csv_text = export_csv(_filtered_groups())
    filename = f"sales-history-{datetime.now().strftime('%Y-%m-%d')}.csv"
    return Response(
        csv_text,
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename={filename}'}
    )


@sales_bp.route('/delete/status', methods=['GET'])
def delete_status() -> Response:
    """Whether a deletion needs the passphrase, and the cooldown left."""
    policy = get_authorization_policy()
    now = datetime.now()
    return jsonify({
        'authorized': policy.is_authorized(now),
        'remaining_seconds': policy.remaining(now),
        'cooldown_seconds': int(policy.cooldown.total_seconds()),
    })


@sales_bp.route('/delete', methods=['POST'])
def delete_sale() -> Response:
    """Delete one logical sale: {row_ids: [...], passphrase}."""
    payload: Dict[str, Any] = request.get_json(silent=True) or {}
    row_ids = payload.get('row_ids')
    if not isinstance(row_ids, list):
        raise BusinessLogicError('row_ids must be a list of sale row ids')

    try:
        row_ids = [int(row_id) for row_id in row_ids]
    except (ValueError, TypeError):
        raise BusinessLogicError('row_ids must be a list of sale row ids')

    result = delete_sale_group(
        get_session(),
        row_ids,
        get_authorization_policy(),
        passphrase=payload.get('passphrase')
    )
    session.modified = True
    current_app.logger.info(f"Sale rows deleted: {result['deleted_ids']}")
    return jsonify(result)

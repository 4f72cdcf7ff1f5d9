"""
Integration tests for the JSON endpoints.
"""

import pytest
from datetime import datetime

from werkzeug.security import generate_password_hash

from config import TestConfig
from salonpos import create_app
from salonpos.domain import Cart
from salonpos.models import Sale
from salonpos.services import cart_service
from salonpos.services.sales_service import complete_sale


def fill_cart(client, services, staff):
    """Haircut x2, Facial with 10% off, overall 20 off."""
    haircut, facial = services['haircut'], services['facial']
    client.post('/pos/cart/add', json={'service_id': haircut.id})
    client.post('/pos/cart/add', json={'service_id': haircut.id})
    client.post('/pos/cart/add', json={'service_id': facial.id})
    for service in (haircut, facial):
        client.post('/pos/cart/staff', json={'service_id': service.id, 'staff_id': staff.id})
    client.post('/pos/cart/discount', json={'service_id': facial.id, 'type': 'percentage', 'value': '10'})
    return client.post('/pos/cart/overall-discount', json={'type': 'amount', 'value': '20'})


class TestCatalogEndpoints:

    def test_create_service(self, client, session):
        response = client.post('/services/', json={'name': 'Hair Spa', 'price': '450'})
        assert response.status_code == 201
        assert response.get_json()['price'] == '450.00'

    def test_duplicate_service(self, client, services):
        response = client.post('/services/', json={'name': 'haircut', 'price': '120'})
        assert response.status_code == 400
        assert response.get_json()['status'] == 'error'

    def test_service_price_must_be_positive(self, client, session):
        response = client.post('/services/', json={'name': 'Threading', 'price': '0'})
        assert response.status_code == 400

    def test_customer_name_required(self, client, session):
        response = client.post('/customers/', json={'name': '', 'contact': '9840000002'})
        assert response.status_code == 400

    def test_unknown_customer(self, client, session):
        assert client.get('/customers/9999').status_code == 404

    def test_unknown_staff_delete(self, client, session):
        assert client.post('/staff/9999/delete').status_code == 404


class TestPosFlow:

    def test_cart_totals(self, client, staff, services):
        data = fill_cart(client, services, staff).get_json()

        assert data['unit_count'] == 3
        assert data['subtotal'] == '250.00'
        assert data['line_discount_total'] == '5.00'
        assert data['overall_discount_amount'] == '20.00'
        assert data['grand_total'] == '225.00'

    def test_checkout_and_receipt(self, client, session, customer, staff, services):
        fill_cart(client, services, staff)

        response = client.post('/pos/checkout', json={'customer_id': customer.id, 'payment_mode': 'upi'})
        assert response.status_code == 201
        data = response.get_json()
        assert data['grand_total'] == '225.00'
        assert len(data['unit_ids']) == 3
        assert session.query(Sale).count() == 3

        receipt = client.get('/pos/receipt')
        assert receipt.status_code == 200
        assert receipt.get_json()['customer']['name'] == 'Priya Raman'

        pdf = client.get('/pos/receipt.pdf')
        assert pdf.status_code == 200
        assert pdf.mimetype == 'application/pdf'
        assert pdf.data.startswith(b'%PDF')

        cart = client.get('/pos/cart').get_json()
        assert cart['unit_count'] == 0
        assert cart['grand_total'] == '0.00'

    def test_empty_cart_checkout(self, client, customer):
        response = client.post('/pos/checkout', json={'customer_id': customer.id})
        assert response.status_code == 422
        assert response.get_json()['reason'] == 'empty_cart'

    def test_missing_staff_keeps_cart(self, client, session, customer, services):
        client.post('/pos/cart/add', json={'service_id': services['haircut'].id})

        response = client.post('/pos/checkout', json={'customer_id': customer.id})
        assert response.status_code == 422
        assert response.get_json()['reason'] == 'missing_staff'
        assert client.get('/pos/cart').get_json()['unit_count'] == 1
        assert session.query(Sale).count() == 0

    def test_receipt_without_sale(self, client):
        assert client.get('/pos/receipt').status_code == 404

    def test_invalid_discount_type(self, client, services):
        client.post('/pos/cart/add', json={'service_id': services['haircut'].id})
        response = client.post('/pos/cart/overall-discount', json={'type': 'coupon', 'value': '5'})
        assert response.status_code == 400

    @pytest.mark.parametrize('value', ['NaN', 'sNaN', 'Infinity'])
    def test_non_finite_discount_value(self, client, services, value):
        haircut = services['haircut']
        client.post('/pos/cart/add', json={'service_id': haircut.id})

        response = client.post('/pos/cart/discount', json={'service_id': haircut.id, 'type': 'percentage', 'value': value})
        assert response.status_code == 400
        assert client.get('/pos/cart').get_json()['grand_total'] == '100.00'


@pytest.fixture
def recorded_sale(session, customer, staff, services):
    cart = Cart()
    haircut = services['haircut']
    cart_service.add_service(cart, haircut.id, haircut.name, haircut.price)
    cart_service.add_service(cart, haircut.id, haircut.name, haircut.price)
    cart_service.assign_staff(cart, haircut.id, staff.id, staff.name)
    return complete_sale(session, cart, customer.id, 'cash', now=datetime(2026, 3, 10, 10, 0))


class TestSalesEndpoints:

    def test_list(self, client, recorded_sale):
        data = client.get('/sales/?q=priya').get_json()
        assert data['sales_count'] == 1
        assert data['units_count'] == 2
        assert data['revenue'] == '200.00'
        assert data['sales'][0]['row_ids'] == recorded_sale.unit_ids

    def test_invalid_date_filter(self, client, session):
        assert client.get('/sales/?date=10-03-2026').status_code == 400

    def test_export_csv(self, client, recorded_sale):
        response = client.get('/sales/export.csv')
        assert response.status_code == 200
        assert response.mimetype == 'text/csv'
        assert 'attachment' in response.headers['Content-Disposition']
        assert '"200.00"' in response.get_data(as_text=True)

    def test_delete_requires_passphrase(self, app, client, session, recorded_sale):
        app.config['ADMIN_PASSPHRASE_HASH'] = generate_password_hash('secret')

        denied = client.post('/sales/delete', json={'row_ids': recorded_sale.unit_ids, 'passphrase': 'nope'})
        assert denied.status_code == 403
        assert session.query(Sale).count() == 2

        response = client.post('/sales/delete', json={'row_ids': recorded_sale.unit_ids, 'passphrase': 'secret'})
        assert response.status_code == 200
        assert response.get_json()['deleted_ids'] == sorted(recorded_sale.unit_ids)
        assert session.query(Sale).count() == 0

    def test_delete_part_of_a_sale_is_refused(self, app, client, session, recorded_sale):
        app.config['ADMIN_PASSPHRASE_HASH'] = generate_password_hash('secret')

        response = client.post('/sales/delete', json={'row_ids': recorded_sale.unit_ids[:1], 'passphrase': 'secret'})
        assert response.status_code == 400
        assert response.get_json()['missing_ids'] == recorded_sale.unit_ids[1:]
        assert session.query(Sale).count() == 2

    def test_delete_status_reports_cooldown(self, app, client, session, recorded_sale):
        app.config['ADMIN_PASSPHRASE_HASH'] = generate_password_hash('secret')

        before = client.get('/sales/delete/status').get_json()
        assert before == {'authorized': False, 'remaining_seconds': 0, 'cooldown_seconds': 300}

        client.post('/sales/delete', json={'row_ids': recorded_sale.unit_ids, 'passphrase': 'secret'})

        after = client.get('/sales/delete/status').get_json()
        assert after['authorized'] is True
        assert 0 < after['remaining_seconds'] <= 300

    def test_delete_rejects_malformed_ids(self, client, session):
        response = client.post('/sales/delete', json={'row_ids': 'all', 'passphrase': 'secret'})
        assert response.status_code == 400


class TestReportEndpoints:

    def test_custom_revenue_range(self, client, recorded_sale):
        response = client.get('/reports/revenue?range=custom&start=2026-03-01&end=2026-03-31')
        assert response.status_code == 200
        data = response.get_json()
        assert data['label'] == 'Custom Range'
        assert data['total_revenue'] == '200.00'
        assert data['days'] == [{'date': '2026-03-10', 'units_count': 2, 'revenue': '200.00'}]

    def test_staff_report(self, client, recorded_sale):
        data = client.get('/reports/staff?range=custom&start=2026-03-10&end=2026-03-10').get_json()
        assert data['staff'][0]['name'] == 'Anita'
        assert data['staff'][0]['average_sale'] == '100.00'

    def test_invalid_range(self, client, session):
        assert client.get('/reports/revenue?range=decade').status_code == 400


class TestMetricsEndpoint:

    def test_exposes_checkout_counters(self, client):
        response = client.get('/metrics')
        assert response.status_code == 200
        assert b'salon_sales_completed_total' in response.data


class TestCliCommands:

    def test_hash_passphrase(self, app):
        result = app.test_cli_runner().invoke(args=['hash-passphrase', '--passphrase', 'secret'])
        assert result.exit_code == 0
        assert result.output.startswith('scrypt:')

    def test_short_passphrase_is_refused(self, app):
        result = app.test_cli_runner().invoke(args=['hash-passphrase', '--passphrase', 'abc'])
        assert 'at least 4 characters' in result.output

    def test_init_db(self, app):
        result = app.test_cli_runner().invoke(args=['init-db'])
        assert result.exit_code == 0
        assert 'Tables created.' in result.output


class CsrfConfig(TestConfig):
    WTF_CSRF_ENABLED = True


class TestCsrfProtection:
    """JSON clients fetch a token and send it in the X-CSRFToken header."""

    @pytest.fixture
    def csrf_client(self):
        return create_app(CsrfConfig).test_client()

    def test_post_without_token_is_refused(self, csrf_client):
        response = csrf_client.post('/pos/cart/clear', json={})
        assert response.status_code == 400

    def test_post_with_token_header(self, csrf_client):
        token = csrf_client.get('/csrf-token').get_json()['csrf_token']

        response = csrf_client.post('/pos/cart/clear', json={}, headers={'X-CSRFToken': token})
        assert response.status_code == 200
        assert response.get_json()['unit_count'] == 0

    def test_get_needs_no_token(self, csrf_client):
        assert csrf_client.get('/pos/cart').status_code == 200

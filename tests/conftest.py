import pytest
from decimal import Decimal

from salonpos import create_app
from salonpos.database import get_session
from salonpos.models import Customer, Staff, Service


@pytest.fixture(scope='function')
def app():
    """Create application instance for testing (fresh in-memory database)."""
    app = create_app('config.TestConfig')
    return app


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Create database session for testing."""
    session = get_session()
    yield session
    session.rollback()
    session.remove()


@pytest.fixture(scope='function')
def customer(session):
    """Create test customer."""
    customer = Customer(name='Priya Raman', contact='9840000001')
    session.add(customer)
    session.commit()
    return customer


@pytest.fixture(scope='function')
def other_customer(session):
    customer = Customer(name='Rahul Menon', contact='rahul@example.com')
    session.add(customer)
    session.commit()
    return customer


@pytest.fixture(scope='function')
def staff(session):
    """Create test staff member."""
    staff = Staff(name='Anita')
    session.add(staff)
    session.commit()
    return staff


@pytest.fixture(scope='function')
def other_staff(session):
    staff = Staff(name='Ravi')
    session.add(staff)
    session.commit()
    return staff


@pytest.fixture(scope='function')
def services(session):
    """Create test services: haircut 100.00, facial 50.00, manicure 30.00."""
    catalog = {
        'haircut': Service(name='Haircut', price=Decimal('100.00')),
        'facial': Service(name='Facial', price=Decimal('50.00')),
        'manicure': Service(name='Manicure', price=Decimal('30.00')),
    }
    session.add_all(catalog.values())
    session.commit()
    return catalog

"""
Catalog forms: customers, staff and services.

Flask-WTF reads form posts and JSON bodies alike.
"""
from flask_wtf import FlaskForm
from wtforms import DecimalField, StringField
from wtforms.validators import DataRequired, NumberRange, Length, Optional


class CustomerForm(FlaskForm):
    """Create or edit a customer."""

    name = StringField(
        'Name',
        validators=[
            DataRequired(message='Customer name is required'),
            Length(max=200)
        ],
        render_kw={'placeholder': 'Customer name'}
    )

    contact = StringField(
        'Contact',
        validators=[Optional(), Length(max=255)],
        render_kw={'placeholder': 'Phone or email (optional)'}
    )


class StaffForm(FlaskForm):
    """Create or edit a staff member."""

    name = StringField(
        'Name',
        validators=[
            DataRequired(message='Staff name is required'),
            Length(max=200)
        ]
    )


class ServiceForm(FlaskForm):
    """Create or edit a service."""

    name = StringField(
        'Name',
        validators=[
            DataRequired(message='Service name is required'),
            Length(max=200)
        ],
        render_kw={'placeholder': 'e.g. Haircut'}
    )

    price = DecimalField(
        'Price',
        validators=[
            DataRequired(message='Price is required'),
            NumberRange(min=0.01, message='Price must be greater than 0')
        ],
        places=2,
        render_kw={'placeholder': '0.00', 'step': '0.01', 'min': '0.01'}
    )


def first_error(form: FlaskForm) -> str:
    """First validation message of a form, for JSON error responses."""
    for field_name, errors in form.errors.items():
        if errors:
            return f"{getattr(form, field_name).label.text}: {errors[0]}"
    return 'Invalid data'

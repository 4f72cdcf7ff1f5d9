"""Receipt service: structured receipt from a completed sale, and its PDF rendering."""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from io import BytesIO
from typing import Any, Dict, List, Optional, Tuple
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import A4
from reportlab.lib import colors
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER

from salonpos.domain import CompletedSaleSummary
from salonpos.utils.formatters import money_fmt, date_fmt, payment_mode_label


@dataclass(frozen=True)
class ReceiptLine:
    service_name: str
    unit_price: Decimal
    quantity: int
    discount_shown: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class Receipt:
    """Everything a printable surface needs, already computed."""
    business_name: str
    business_address: str
    business_phone: str
    customer_name: str
    customer_contact: str
    payment_mode: str
    date: datetime
    lines: List[ReceiptLine]
    subtotal: Decimal
    # (label, amount), only discounts above zero
    discount_lines: List[Tuple[str, Decimal]] = field(default_factory=list)
    grand_total: Decimal = Decimal('0.00')
    currency_symbol: str = ''

    def to_dict(self) -> Dict[str, Any]:
        symbol = self.currency_symbol
        return {
            'business': {
                'name': self.business_name,
                'address': self.business_address,
                'phone': self.business_phone,
            },
            'customer': {'name': self.customer_name, 'contact': self.customer_contact},
            'payment_mode': self.payment_mode,
            'date': self.date.isoformat(),
            'lines': [
                {
                    'service_name': line.service_name,
                    'unit_price': money_fmt(line.unit_price, symbol),
                    'quantity': line.quantity,
                    'discount': money_fmt(line.discount_shown, symbol),
                    'total': money_fmt(line.line_total, symbol),
                }
                for line in self.lines
            ],
            'subtotal': money_fmt(self.subtotal, symbol),
            'discounts': [
                {'label': label, 'amount': money_fmt(amount, symbol)}
                for label, amount in self.discount_lines
            ],
            'grand_total': money_fmt(self.grand_total, symbol),
        }

    def to_state(self) -> Dict[str, Any]:
        """Raw values (amounts as strings) for keeping the receipt in the session."""
        return {
            'business': [self.business_name, self.business_address, self.business_phone],
            'customer': [self.customer_name, self.customer_contact],
            'payment_mode': self.payment_mode,
            'date': self.date.isoformat(),
            'lines': [
                [line.service_name, str(line.unit_price), line.quantity,
                 str(line.discount_shown), str(line.line_total)]
                for line in self.lines
            ],
            'subtotal': str(self.subtotal),
            'discounts': [[label, str(amount)] for label, amount in self.discount_lines],
            'grand_total': str(self.grand_total),
            'currency_symbol': self.currency_symbol,
        }

    @classmethod
    def from_state(cls, state: Dict[str, Any]) -> 'Receipt':
        name, address, phone = state['business']
        customer_name, customer_contact = state['customer']
        return cls(
            business_name=name,
            business_address=address,
            business_phone=phone,
            customer_name=customer_name,
            customer_contact=customer_contact,
            payment_mode=state['payment_mode'],
            date=datetime.fromisoformat(state['date']),
            lines=[
                ReceiptLine(service_name, Decimal(price), int(qty), Decimal(disc), Decimal(total))
                for service_name, price, qty, disc, total in state['lines']
            ],
            subtotal=Decimal(state['subtotal']),
            discount_lines=[(label, Decimal(amount)) for label, amount in state['discounts']],
            grand_total=Decimal(state['grand_total']),
            currency_symbol=state.get('currency_symbol', ''),
        )


def format_receipt(summary: CompletedSaleSummary, business_info: Optional[Dict[str, Any]] = None) -> Receipt:
    """
    Build the receipt from the totals computed at checkout.

    Nothing is recomputed: every amount comes from the PricedCart the unit
    rows were written from. Line totals are after line discounts, the
    overall discount shows up only in the totals block.
    """
    info = business_info or {}
    priced = summary.priced_cart

    lines = [
        ReceiptLine(
            service_name=p.line.service_name,
            unit_price=p.line.unit_price,
            quantity=p.line.quantity,
            discount_shown=p.line_discount,
            line_total=p.discounted_subtotal,
        )
        for p in priced.lines
    ]

    discount_lines = []
    if priced.line_discount_total > 0:
        discount_lines.append(('Service Discounts', priced.line_discount_total))
    if priced.overall_discount_amount > 0:
        discount_lines.append(('Overall Discount', priced.overall_discount_amount))

    return Receipt(
        business_name=info.get('name', ''),
        business_address=info.get('address', ''),
        business_phone=info.get('phone', ''),
        customer_name=summary.customer_name,
        customer_contact=summary.customer_contact or '',
        payment_mode=payment_mode_label(summary.payment_mode),
        date=summary.date,
        lines=lines,
        subtotal=priced.subtotal,
        discount_lines=discount_lines,
        grand_total=priced.grand_total,
        currency_symbol=info.get('currency_symbol', ''),
    )


def render_receipt_pdf(receipt: Receipt) -> BytesIO:
    """
    Render a receipt to PDF.

    Output is byte-identical for the same receipt (reportlab invariant mode).
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=0.75*inch,
        leftMargin=0.75*inch,
        topMargin=0.75*inch,
        bottomMargin=0.75*inch,
        invariant=1,
        title='Invoice'
    )

    elements = []
    styles = getSampleStyleSheet()
    symbol = receipt.currency_symbol

    title_style = ParagraphStyle(
        'ReceiptTitle',
        parent=styles['Heading1'],
        fontSize=20,
        textColor=colors.HexColor('#2C3E50'),
        spaceAfter=8,
        alignment=TA_CENTER,
        fontName='Helvetica-Bold'
    )

    header_style = ParagraphStyle(
        'ReceiptHeader',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#7F8C8D'),
        alignment=TA_CENTER,
        spaceAfter=4
    )

    # 1. Business header
    elements.append(Paragraph(escape(receipt.business_name.upper() or 'INVOICE'), title_style))
    if receipt.business_address:
        elements.append(Paragraph(escape(receipt.business_address), header_style))
    if receipt.business_phone:
        elements.append(Paragraph(f"Contact: {escape(receipt.business_phone)}", header_style))

    elements.append(Spacer(1, 0.3*inch))

    # 2. Sale metadata
    info_data = [
        ['Invoice To:', receipt.customer_name],
    ]
    if receipt.customer_contact:
        info_data.append(['Contact:', receipt.customer_contact])
    info_data.append(['Payment Mode:', receipt.payment_mode])
    info_data.append(['Date:', date_fmt(receipt.date)])
    info_data.append(['Time:', receipt.date.strftime('%H:%M')])

    info_table = Table(info_data, colWidths=[2*inch, 3*inch])
    info_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (0, -1), 'RIGHT'),
        ('ALIGN', (1, 0), (1, -1), 'LEFT'),
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#34495E')),
    ]))

    elements.append(info_table)
    elements.append(Spacer(1, 0.3*inch))

    # 3. Lines
    table_data = [['Service', 'Price', 'Qty', 'Disc', 'Total']]
    for line in receipt.lines:
        table_data.append([
            line.service_name,
            money_fmt(line.unit_price, symbol),
            str(line.quantity),
            money_fmt(line.discount_shown, symbol),
            money_fmt(line.line_total, symbol),
        ])

    items_table = Table(table_data, colWidths=[2.9*inch, 1*inch, 0.6*inch, 1*inch, 1.2*inch])
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#8E44AD')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 10),
        ('ALIGN', (1, 1), (1, -1), 'RIGHT'),
        ('ALIGN', (2, 1), (2, -1), 'CENTER'),
        ('ALIGN', (3, 1), (-1, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#BDC3C7')),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#F4ECF7')]),
    ]))

    elements.append(items_table)
    elements.append(Spacer(1, 0.2*inch))

    # 4. Totals
    totals_data = [['Sub Total:', money_fmt(receipt.subtotal, symbol)]]
    for label, amount in receipt.discount_lines:
        totals_data.append([f"{label}:", money_fmt(amount, symbol)])

    totals_table = Table(totals_data, colWidths=[5.5*inch, 1.2*inch])
    totals_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#34495E')),
    ]))
    elements.append(totals_table)

    grand_table = Table([['Grand Total:', money_fmt(receipt.grand_total, symbol)]], colWidths=[5.5*inch, 1.2*inch])
    grand_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTNAME', (0, 0), (-1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 14),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#27AE60')),
        ('LINEABOVE', (0, 0), (-1, 0), 2, colors.HexColor('#2C3E50')),
    ]))
    elements.append(grand_table)
    elements.append(Spacer(1, 0.4*inch))

    footer_style = ParagraphStyle('Footer', parent=styles['Normal'], fontSize=9, textColor=colors.HexColor('#95A5A6'), alignment=TA_CENTER)
    visit_name = escape(receipt.business_name) if receipt.business_name else 'us'
    elements.append(Paragraph(f"<b>Thank you for visiting {visit_name}</b>", footer_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer

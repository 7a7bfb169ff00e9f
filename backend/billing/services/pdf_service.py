"""PDF rendering of an already generated invoice."""

from __future__ import annotations

from html import escape
from string import Template
from typing import TYPE_CHECKING

from billing.core.errors import IntegrityViolationError

if TYPE_CHECKING:
    from billing.models.customer import Customer
    from billing.models.invoice import Invoice

_INVOICE_TEMPLATE = Template("""\
<!DOCTYPE html>
<html>
<head>
<style>
  @page { size: A4; margin: 50px; }
  body { font-family: Helvetica, Arial, sans-serif; font-size: 12px; color: #333; }
  h1 { font-size: 22px; margin-bottom: 4px; }
  .muted { color: #777; }
  .meta td { padding: 2px 8px 2px 0; }
  table.items { width: 100%; border-collapse: collapse; margin: 20px 0; }
  table.items th { text-align: left; border-bottom: 1px solid #ccc; padding: 6px 8px; }
  table.items td { padding: 6px 8px; border-bottom: 1px solid #eee; }
  .right { text-align: right; }
  .totals { width: 320px; margin-left: auto; }
  .totals td { padding: 3px 8px; }
  .totals .total-row { font-weight: bold; border-top: 1px solid #333; }
</style>
</head>
<body>
<h1>Invoice</h1>
<table class="meta muted">
  <tr><td>Invoice No:</td><td>${invoice_number}</td></tr>
  <tr><td>Issued At:</td><td>${issued_at}</td></tr>
  <tr><td>Billing Period:</td><td>${billing_period}</td></tr>
  <tr><td>Status:</td><td>${status}</td></tr>
</table>
<h3>Bill To</h3>
<p>${bill_to}</p>
<table class="items">
  <thead>
    <tr><th>Description</th><th class="right">Amount</th>
    <th class="right">Tax</th><th class="right">Total</th></tr>
  </thead>
  <tbody>
    ${item_rows}
  </tbody>
</table>
<table class="totals">
  <tr><td>Subtotal</td><td class="right">${subtotal}</td></tr>
  <tr><td>Tax (${tax_rate})</td><td class="right">${tax_amount}</td></tr>
  <tr class="total-row"><td>Total</td><td class="right">${total}</td></tr>
  <tr><td>Amount Paid</td><td class="right">${amount_paid}</td></tr>
  <tr><td>Remaining</td><td class="right">${remaining}</td></tr>
</table>
</body>
</html>
""")

_ITEM_ROW_TEMPLATE = Template(
    '<tr><td>${description}</td><td class="right">${amount}</td>'
    '<td class="right">${tax_amount}</td><td class="right">${total}</td></tr>'
)

# ISO 4217 exponents that differ from the usual 2
_CURRENCY_DECIMALS = {
    "jpy": 0,
    "krw": 0,
    "vnd": 0,
    "clp": 0,
    "xof": 0,
    "xaf": 0,
    "xpf": 0,
    "kwd": 3,
    "bhd": 3,
    "omr": 3,
    "jod": 3,
    "iqd": 3,
    "tnd": 3,
    "lyd": 3,
}


def currency_decimals(currency: str) -> int:
    return _CURRENCY_DECIMALS.get(currency.lower(), 2)


def format_minor(amount: int, currency: str) -> str:
    """Render minor units as ``USD 12.34`` using the currency's exponent."""
    decimals = currency_decimals(currency)
    sign = "-" if amount < 0 else ""
    major, minor = divmod(abs(int(amount)), 10**decimals)
    formatted = f"{major}.{minor:0{decimals}d}" if decimals else str(major)
    return f"{sign}{currency.upper()} {formatted}"


def _format_date(value: object) -> str:
    if value is None:
        return ""
    return str(value)[:10]


def _bill_to(customer: Customer) -> str:
    lines = [str(customer.name)]
    if customer.email:
        lines.append(str(customer.email))
    if customer.phone:
        lines.append(str(customer.phone))
    return "<br>".join(escape(line) for line in lines)


class PdfService:
    """Renders invoices to PDF. Reads only what generation already computed."""

    def render_html(self, invoice: Invoice, customer: Customer) -> str:
        currency = str(invoice.currency)
        item_rows = "\n    ".join(
            _ITEM_ROW_TEMPLATE.substitute(
                description=escape(str(item.description)),
                amount=format_minor(item.amount, currency),
                tax_amount=format_minor(item.tax_amount, currency),
                total=format_minor(item.total, currency),
            )
            for item in invoice.items
        )
        return _INVOICE_TEMPLATE.substitute(
            invoice_number=escape(str(invoice.invoice_number)),
            issued_at=_format_date(invoice.issued_at),
            billing_period=(
                f"{_format_date(invoice.period_from)} to {_format_date(invoice.period_to)}"
            ),
            status=str(invoice.status),
            bill_to=_bill_to(customer),
            item_rows=item_rows,
            subtotal=format_minor(invoice.subtotal, currency),
            tax_rate=str(invoice.tax_rate),
            tax_amount=format_minor(invoice.tax_amount, currency),
            total=format_minor(invoice.total, currency),
            amount_paid=format_minor(invoice.amount_paid, currency),
            remaining=format_minor(max(0, int(invoice.total) - int(invoice.amount_paid)), currency),
        )

    def generate_invoice_pdf(self, invoice: Invoice, customer: Customer) -> bytes:
        """Render the invoice and return raw PDF bytes.

        Raises:
            IntegrityViolationError: PDF_EMPTY if the renderer produced no output
        """
        html = self.render_html(invoice, customer)

        import weasyprint

        pdf_bytes: bytes = weasyprint.HTML(string=html).write_pdf()
        if not pdf_bytes:
            raise IntegrityViolationError(
                "Generated empty PDF",
                error_code="PDF_EMPTY",
                details={"invoice_id": str(invoice.id)},
            )
        return pdf_bytes

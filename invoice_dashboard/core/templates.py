import os
from datetime import date, datetime
from decimal import Decimal

from fastapi.templating import Jinja2Templates

# Calculate paths relative to this file: invoice_dashboard/core/templates.py
# invoice_dashboard/core/ -> invoice_dashboard/ -> {project_root}/templates
current_dir = os.path.dirname(os.path.abspath(__file__))
templates_dir = os.path.join(current_dir, "..", "..", "templates")
templates_dir = os.path.normpath(templates_dir)

templates = Jinja2Templates(directory=templates_dir)


def format_currency(amount) -> str:
    """1234.5 -> '$1,234.50'"""
    value = Decimal(str(amount or 0)).quantize(Decimal("0.01"))
    return f"${value:,.2f}"


def format_long_date(value) -> str:
    """2025-01-05 -> 'January 5, 2025'"""
    if isinstance(value, str):
        value = date.fromisoformat(value[:10])
    if isinstance(value, datetime):
        value = value.date()
    return f"{value.strftime('%B')} {value.day}, {value.year}"


templates.env.filters["currency"] = format_currency
templates.env.filters["long_date"] = format_long_date

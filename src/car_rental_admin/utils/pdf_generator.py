"""PDF generation for rental receipts."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from car_rental_admin.config import RECEIPT_ISSUER, ReceiptIssuerInfo
from car_rental_admin.domain.models import Car, Customer, RateType, Rental, RentalStatus
from car_rental_admin.utils.money import format_money


def _format_datetime(value: Optional[datetime]) -> str:
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d %H:%M")


def _rate_label(rental: Rental, car: Car) -> str:
    rate = {
        RateType.HOURLY: car.hourly_rate,
        RateType.DAILY: car.daily_rate,
        RateType.WEEKLY: car.weekly_rate,
    }[rental.rate_type]
    unit = {
        RateType.HOURLY: "hour",
        RateType.DAILY: "day",
        RateType.WEEKLY: "week",
    }[rental.rate_type]
    return f"{rental.rate_type.value} ({format_money(rate)} / {unit})"


def _receipt_title(rental: Rental) -> str:
    return {
        RentalStatus.ACTIVE: "RENTAL CONFIRMATION",
        RentalStatus.RETURNED: "RENTAL RECEIPT",
        RentalStatus.CANCELED: "CANCELED RENTAL",
    }[rental.status]


def _grid_table(rows: list[list[str]], col_widths: list[float], header: bool) -> Table:
    table = Table(rows, colWidths=col_widths)
    style = [
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("FONTNAME", (0, 0), (-1, -1), "Helvetica"),
    ]
    if header:
        style.append(("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey))
    table.setStyle(TableStyle(style))
    return table


def generate_rental_receipt(
    rental: Rental,
    car: Car,
    customer: Customer,
    output_path: Path,
    *,
    car_label: Optional[str] = None,
    issuer: ReceiptIssuerInfo = RECEIPT_ISSUER,
) -> Path:
    """Write a one-page PDF summary of ``rental`` and return its path."""
    output_path.parent.mkdir(parents=True, exist_ok=True)

    title = _receipt_title(rental)
    doc = SimpleDocTemplate(
        str(output_path),
        pagesize=A4,
        rightMargin=20 * mm,
        leftMargin=20 * mm,
        topMargin=18 * mm,
        bottomMargin=18 * mm,
        title=f"{title} #{rental.id}",
        author=issuer.name,
    )

    styles = getSampleStyleSheet()
    styles.add(
        ParagraphStyle(
            name="SectionTitle",
            parent=styles["Heading3"],
            spaceBefore=12,
            spaceAfter=6,
        )
    )
    styles.add(
        ParagraphStyle(
            name="SmallText",
            parent=styles["Normal"],
            fontSize=9,
            leading=12,
        )
    )

    elements: list[object] = []
    elements.append(Paragraph(f"<b>{title} #{rental.id}</b>", styles["Title"]))
    elements.append(Spacer(1, 8))

    issuer_lines = [
        f"<b>{escape(issuer.name)}</b>",
        escape(issuer.address),
        f"Phone: {escape(issuer.phone)}",
        f"E-mail: {escape(issuer.email)}",
    ]
    elements.append(Paragraph("<br/>".join(issuer_lines), styles["Normal"]))
    elements.append(Spacer(1, 10))

    customer_lines = [
        "<b>Customer</b>",
        f"Name: {escape(customer.full_name)}",
        f"E-mail: {escape(customer.email)}",
        f"Phone: {escape(customer.phone or '-')}",
        f"Address: {escape(customer.address or '-')}",
    ]
    elements.append(Paragraph("<br/>".join(customer_lines), styles["Normal"]))

    car_rows = [
        ["Car", car_label or car.license_plate],
        ["VIN", car.vin],
        ["License plate", car.license_plate],
        ["Mileage", f"{car.mileage_km} km"],
    ]
    elements.append(Paragraph("Car", styles["SectionTitle"]))
    elements.append(_grid_table(car_rows, [40 * mm, 120 * mm], header=False))

    period_rows = [
        ["Start", _format_datetime(rental.start_at)],
        ["Planned end", _format_datetime(rental.planned_end_at)],
        ["Returned", _format_datetime(rental.actual_return_at)],
        ["Rate plan", _rate_label(rental, car)],
        ["Status", rental.status.value],
    ]
    elements.append(Paragraph("Rental period", styles["SectionTitle"]))
    elements.append(_grid_table(period_rows, [40 * mm, 120 * mm], header=False))

    amount_rows = [
        ["Item", "Amount"],
        ["Base price", format_money(rental.base_price)],
        ["Late fee", format_money(rental.late_fee)],
        ["Total", format_money(rental.total_price)],
    ]
    elements.append(Paragraph("Amounts", styles["SectionTitle"]))
    elements.append(_grid_table(amount_rows, [40 * mm, 50 * mm], header=True))

    if rental.notes:
        elements.append(Paragraph("Notes", styles["SectionTitle"]))
        elements.append(Paragraph(escape(rental.notes), styles["SmallText"]))

    footer = f"Generated {datetime.now().strftime('%Y-%m-%d %H:%M')}"
    elements.append(Spacer(1, 18))
    elements.append(Paragraph(footer, styles["SmallText"]))

    doc.build(elements)
    return output_path

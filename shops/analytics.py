"""
Seller analytics

Figures cover line items of the shop's products on orders created in the
last `days` calendar days, today included, starting at local midnight of
the first day. Cancelled orders are left out of every money figure but
still appear in the status breakdown.
"""

from datetime import datetime, time, timedelta
from decimal import Decimal

from django.db.models import Count, DecimalField, ExpressionWrapper, F, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill

from marketplace.models import Product
from orders.models import Order, OrderItem

LOW_STOCK_THRESHOLD = 5
TOP_PRODUCTS_LIMIT = 10
MAX_DAYS = 365

LINE_REVENUE = ExpressionWrapper(
    F("price") * F("quantity"),
    output_field=DecimalField(max_digits=14, decimal_places=2),
)


def parse_days(value, default=30):
    """`days` query value -> int in 1..MAX_DAYS, or None when invalid"""
    if value in (None, ""):
        return default
    try:
        days = int(str(value).strip())
    except ValueError:
        return None
    if days < 1 or days > MAX_DAYS:
        return None
    return days


def _money(value):
    return value if value is not None else Decimal("0.00")


def shop_analytics(shop, days):
    now = timezone.now()
    today = timezone.localdate(now)
    first_day = today - timedelta(days=days - 1)
    start = timezone.make_aware(datetime.combine(first_day, time.min))

    items = OrderItem.objects.filter(
        product__shop=shop, order__created_at__gte=start
    ).exclude(order__status=Order.STATUS_CANCELLED)

    totals = items.aggregate(
        orders=Count("order", distinct=True),
        revenue=Sum(LINE_REVENUE),
        units=Sum("quantity"),
    )

    products = Product.objects.filter(shop=shop)

    # Every day of the window, including days without sales
    daily_rows = {
        row["day"]: row
        for row in items.annotate(day=TruncDate("order__created_at"))
        .values("day")
        .annotate(revenue=Sum(LINE_REVENUE), orders=Count("order", distinct=True))
    }
    daily = []
    day = first_day
    while day <= today:
        row = daily_rows.get(day, {})
        daily.append({
            "date": day.isoformat(),
            "revenue": _money(row.get("revenue")),
            "orders": row.get("orders", 0),
        })
        day += timedelta(days=1)

    by_payment_method = [
        {
            "paymentMethod": row["order__payment_method"],
            "revenue": _money(row["revenue"]),
            "orders": row["orders"],
        }
        for row in items.values("order__payment_method")
        .annotate(revenue=Sum(LINE_REVENUE), orders=Count("order", distinct=True))
        .order_by("-revenue", "order__payment_method")
    ]

    per_product = items.values("product_id", "product__name").annotate(
        units=Sum("quantity"), revenue=Sum(LINE_REVENUE)
    )

    def product_rows(ordering):
        return [
            {
                "productId": row["product_id"],
                "name": row["product__name"],
                "units": row["units"],
                "revenue": _money(row["revenue"]),
            }
            for row in per_product.order_by(*ordering)[:TOP_PRODUCTS_LIMIT]
        ]

    status_counts = {status: 0 for status, _ in Order.STATUS_CHOICES}
    for row in (
        Order.objects.filter(items__product__shop=shop, created_at__gte=start)
        .values("status")
        .annotate(count=Count("id", distinct=True))
    ):
        status_counts[row["status"]] = row["count"]

    return {
        "shopId": shop.id,
        "days": days,
        "start": start,
        "end": now,
        "totalOrders": totals["orders"],
        "totalRevenue": _money(totals["revenue"]),
        "unitsSold": totals["units"] or 0,
        "productCount": products.count(),
        "lowStockCount": products.filter(stock__lte=LOW_STOCK_THRESHOLD).count(),
        "dailyRevenue": daily,
        "revenueByPaymentMethod": by_payment_method,
        "topProductsByUnits": product_rows(["-units", "product_id"]),
        "topProductsByRevenue": product_rows(["-revenue", "product_id"]),
        "ordersByStatus": status_counts,
    }


def _write_header(ws, row, headers, header_font, header_fill):
    for column, header in enumerate(headers, 1):
        cell = ws.cell(row=row, column=column, value=header)
        cell.font = header_font
        cell.fill = header_fill


def _autosize_columns(ws):
    for column_cells in ws.columns:
        column_letter = None
        max_length = 0
        for cell in column_cells:
            if column_letter is None and hasattr(cell, "column_letter"):
                column_letter = cell.column_letter
            if cell.value is not None:
                max_length = max(max_length, len(str(cell.value)))
        if column_letter is not None:
            ws.column_dimensions[column_letter].width = min(max(max_length + 2, 10), 40)


def build_analytics_workbook(shop, report):
    """Summary sheet plus a product ranking sheet"""
    wb = Workbook()
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")

    ws = wb.active
    ws.title = "Summary"
    ws["A1"] = f"{shop.name} - Sales report"
    ws["A2"] = f"Period: {timezone.localdate(report['start'])} to {timezone.localdate(report['end'])}"
    ws.merge_cells("A1:C1")
    ws.merge_cells("A2:C2")
    ws["A1"].font = Font(bold=True, size=16)
    ws["A2"].font = Font(size=12)
    ws["A1"].alignment = Alignment(horizontal="center")
    ws["A2"].alignment = Alignment(horizontal="center")

    _write_header(ws, 4, ["Figure", "Value"], header_font, header_fill)
    figures = [
        ("Orders", report["totalOrders"]),
        ("Revenue", float(report["totalRevenue"])),
        ("Units sold", report["unitsSold"]),
        ("Products", report["productCount"]),
        (f"Products with stock <= {LOW_STOCK_THRESHOLD}", report["lowStockCount"]),
    ]
    row = 5
    for label, value in figures:
        ws.cell(row=row, column=1, value=label)
        ws.cell(row=row, column=2, value=value)
        row += 1

    row += 1
    _write_header(ws, row, ["Date", "Revenue", "Orders"], header_font, header_fill)
    for entry in report["dailyRevenue"]:
        row += 1
        ws.cell(row=row, column=1, value=entry["date"])
        ws.cell(row=row, column=2, value=float(entry["revenue"]))
        ws.cell(row=row, column=3, value=entry["orders"])

    row += 2
    _write_header(ws, row, ["Payment method", "Revenue", "Orders"], header_font, header_fill)
    for entry in report["revenueByPaymentMethod"]:
        row += 1
        ws.cell(row=row, column=1, value=entry["paymentMethod"])
        ws.cell(row=row, column=2, value=float(entry["revenue"]))
        ws.cell(row=row, column=3, value=entry["orders"])

    row += 2
    _write_header(ws, row, ["Status", "Orders"], header_font, header_fill)
    for order_status, count in report["ordersByStatus"].items():
        row += 1
        ws.cell(row=row, column=1, value=order_status)
        ws.cell(row=row, column=2, value=count)

    _autosize_columns(ws)

    products_ws = wb.create_sheet("Products")
    row = 1
    for title, key in (
        ("Top products by units", "topProductsByUnits"),
        ("Top products by revenue", "topProductsByRevenue"),
    ):
        products_ws.cell(row=row, column=1, value=title).font = Font(bold=True, size=12)
        row += 1
        _write_header(
            products_ws, row, ["Rank", "Product id", "Product", "Units", "Revenue"],
            header_font, header_fill,
        )
        for rank, entry in enumerate(report[key], 1):
            row += 1
            products_ws.cell(row=row, column=1, value=rank)
            products_ws.cell(row=row, column=2, value=entry["productId"])
            products_ws.cell(row=row, column=3, value=entry["name"])
            products_ws.cell(row=row, column=4, value=entry["units"])
            products_ws.cell(row=row, column=5, value=float(entry["revenue"]))
        row += 2

    _autosize_columns(products_ws)
    return wb

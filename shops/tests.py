from datetime import time, timedelta
from decimal import Decimal
from io import BytesIO

from django.contrib.auth import get_user_model
from django.test import Client, TestCase
from django.urls import reverse
from django.utils import timezone
from openpyxl import load_workbook

from accounts.models import Address
from marketplace.models import Product
from orders.models import Order
from orders.services import OrderPlacementService, change_order_status
from .analytics import parse_days, shop_analytics
from .models import Shop

Member = get_user_model()


class ParseDaysTestCase(TestCase):
    def test_default_and_bounds(self):
        """days defaults to 30 and must be within 1 to 365"""
        self.assertEqual(parse_days(None), 30)
        self.assertEqual(parse_days(""), 30)
        self.assertEqual(parse_days("7"), 7)
        self.assertEqual(parse_days("365"), 365)
        self.assertIsNone(parse_days("0"))
        self.assertIsNone(parse_days("366"))
        self.assertIsNone(parse_days("-3"))
        self.assertIsNone(parse_days("week"))


class ShopAnalyticsTestCase(TestCase):
    def setUp(self):
        self.client = Client()
        seller = Member.objects.create_user(
            username="seller@example.com", email="seller@example.com", password="testpass123"
        )
        other_seller = Member.objects.create_user(
            username="other@example.com", email="other@example.com", password="testpass123"
        )
        self.buyer = Member.objects.create_user(
            username="buyer@example.com", email="buyer@example.com", password="testpass123",
            role=Member.ROLE_BUYER,
        )
        self.address = Address.objects.create(
            user=self.buyer, zip_code="01310-100", street="Avenida Paulista",
            number="1000", city="São Paulo", state="SP",
        )
        self.shop = Shop.objects.create(owner=seller, name="Loja Teste")
        other_shop = Shop.objects.create(owner=other_seller, name="Outra Loja")

        self.mug = Product.objects.create(name="Caneca", price=Decimal("20.00"), stock=10, shop=self.shop)
        self.shirt = Product.objects.create(name="Camiseta", price=Decimal("50.00"), stock=3, shop=self.shop)
        self.foreign = Product.objects.create(name="Boné", price=Decimal("40.00"), stock=10, shop=other_shop)

        self.first = self.place([(self.mug, 3), (self.foreign, 1)], "pix")
        self.second = self.place([(self.shirt, 1)], "card")
        cancelled = self.place([(self.mug, 1)], "card")
        change_order_status(cancelled.id, Order.STATUS_CANCELLED)

    def place(self, lines, payment_method):
        return OrderPlacementService().place_order(
            customer_id=self.buyer.id,
            total="0",
            payment_method=payment_method,
            address_id=self.address.id,
            items=[
                {
                    "product_id": product.id,
                    "name": product.name,
                    "price": product.price,
                    "quantity": quantity,
                    "image": product.image,
                }
                for product, quantity in lines
            ],
        )

    def test_figures_cover_only_this_shop_and_skip_cancelled(self):
        """Figures count only this shop's lines on non-cancelled orders"""
        report = shop_analytics(self.shop, 30)

        self.assertEqual(report["totalOrders"], 2)
        self.assertEqual(report["totalRevenue"], Decimal("110.00"))
        self.assertEqual(report["unitsSold"], 4)
        self.assertEqual(report["productCount"], 2)
        # shirt has 2 left, mug 6
        self.assertEqual(report["lowStockCount"], 1)

    def test_daily_trend_is_zero_filled(self):
        """The daily trend has one zero-filled entry per day"""
        report = shop_analytics(self.shop, 7)

        self.assertEqual(len(report["dailyRevenue"]), 7)
        today = report["dailyRevenue"][-1]
        self.assertEqual(today["date"], timezone.localdate().isoformat())
        self.assertEqual(today["revenue"], Decimal("110.00"))
        self.assertTrue(all(day["revenue"] == 0 for day in report["dailyRevenue"][:-1]))

    def test_window_has_one_entry_per_day(self):
        """The window spans exactly days calendar days from local midnight"""
        for days in (1, 30, 365):
            with self.subTest(days=days):
                report = shop_analytics(self.shop, days)
                self.assertEqual(len(report["dailyRevenue"]), days)
                self.assertEqual(timezone.localtime(report["start"]).time(), time.min)

    def test_old_orders_fall_outside_window(self):
        """Orders older than the window are left out"""
        Order.objects.filter(pk=self.second.pk).update(
            created_at=timezone.now() - timedelta(days=10)
        )
        report = shop_analytics(self.shop, 7)
        self.assertEqual(report["totalOrders"], 1)
        self.assertEqual(report["totalRevenue"], Decimal("60.00"))

    def test_breakdowns(self):
        """Payment method, top product and status breakdowns"""
        report = shop_analytics(self.shop, 30)

        self.assertEqual(
            [(row["paymentMethod"], row["revenue"]) for row in report["revenueByPaymentMethod"]],
            [("pix", Decimal("60.00")), ("card", Decimal("50.00"))],
        )
        self.assertEqual(report["topProductsByUnits"][0]["productId"], self.mug.id)
        self.assertEqual(report["topProductsByUnits"][0]["units"], 3)
        self.assertEqual(report["topProductsByRevenue"][0]["productId"], self.mug.id)
        self.assertEqual(report["ordersByStatus"]["to-ship"], 2)
        self.assertEqual(report["ordersByStatus"]["cancelled"], 1)

    def test_analytics_endpoint(self):
        """Analytics endpoint validates days and the shop"""
        url = reverse("shops:shop-analytics", args=[self.shop.id])

        response = self.client.get(url, {"days": "30"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["totalRevenue"], 110.0)

        response = self.client.get(url, {"days": "400"})
        self.assertEqual(response.status_code, 400)

        response = self.client.get(reverse("shops:shop-analytics", args=[999999]))
        self.assertEqual(response.status_code, 404)

    def test_export_workbook(self):
        """The export is an xlsx workbook with summary and product sheets"""
        response = self.client.get(
            reverse("shops:shop-analytics-export", args=[self.shop.id]), {"days": "30"}
        )

        self.assertEqual(response.status_code, 200)
        self.assertIn("attachment;", response["Content-Disposition"])

        workbook = load_workbook(BytesIO(response.content))
        self.assertEqual(workbook.sheetnames, ["Summary", "Products"])
        summary = workbook["Summary"]
        self.assertEqual(summary["A5"].value, "Orders")
        self.assertEqual(summary["B5"].value, 2)
        self.assertEqual(workbook["Products"]["C3"].value, "Caneca")

    def test_shop_detail(self):
        """Shop detail is returned"""
        response = self.client.get(reverse("shops:shop-detail", args=[self.shop.id]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["name"], "Loja Teste")

import threading
import unittest
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import OperationalError, connection
from django.test import Client, TestCase, TransactionTestCase
from django.urls import reverse

from accounts.models import Address
from marketplace.models import Product
from shops.models import Shop
from .models import Order, OrderItem
from .services import (
    CheckoutValidationError,
    InsufficientStockError,
    InvalidStatusTransitionError,
    NotFoundError,
    OrderPlacementService,
    TransientStoreError,
    change_order_status,
)

Member = get_user_model()


def make_member(email, **kwargs):
    return Member.objects.create_user(
        username=email, email=email, password="testpass123", name=email.split("@")[0], **kwargs
    )


def make_address(user):
    return Address.objects.create(
        user=user,
        zip_code="01310-100",
        street="Avenida Paulista",
        number="1000",
        city="São Paulo",
        state="SP",
        is_primary=True,
    )


class CheckoutFixtureMixin:
    def create_fixtures(self):
        self.seller = make_member("seller@example.com")
        self.shop = Shop.objects.create(owner=self.seller, name="Loja Teste")
        self.buyer = make_member("buyer@example.com", role=Member.ROLE_BUYER)
        self.address = make_address(self.buyer)
        self.mug = Product.objects.create(
            name="Caneca", price=Decimal("29.90"), stock=10, shop=self.shop
        )
        self.shirt = Product.objects.create(
            name="Camiseta", price=Decimal("59.90"), stock=5, shop=self.shop
        )

    def line(self, product, quantity, price=None):
        return {
            "product_id": product.id,
            "name": product.name,
            "price": price if price is not None else product.price,
            "quantity": quantity,
            "image": product.image,
        }

    def place(self, items, total="0", **overrides):
        kwargs = {
            "customer_id": self.buyer.id,
            "total": total,
            "payment_method": "pix",
            "address_id": self.address.id,
            "items": items,
        }
        kwargs.update(overrides)
        return OrderPlacementService().place_order(**kwargs)


class OrderPlacementServiceTestCase(CheckoutFixtureMixin, TestCase):
    def setUp(self):
        self.create_fixtures()

    def test_place_order_moves_stock_to_sold(self):
        """Placing an order moves each line's quantity from stock to sold"""
        order = self.place(
            [self.line(self.mug, 2), self.line(self.shirt, 1)], total="119.70"
        )

        self.assertEqual(order.status, Order.STATUS_TO_SHIP)
        self.assertEqual(order.total, Decimal("119.70"))
        self.assertEqual(order.customer_id, self.buyer.id)
        self.assertEqual(order.address_id, self.address.id)
        self.assertEqual(
            [(item.product_id, item.quantity) for item in order.items.all()],
            [(self.mug.id, 2), (self.shirt.id, 1)],
        )

        self.mug.refresh_from_db()
        self.shirt.refresh_from_db()
        self.assertEqual((self.mug.stock, self.mug.sold), (8, 2))
        self.assertEqual((self.shirt.stock, self.shirt.sold), (4, 1))

    def test_line_items_keep_snapshot_after_product_changes(self):
        """Line items keep the name and price from checkout time"""
        order = self.place([self.line(self.mug, 1)], total="29.90")

        self.mug.name = "Caneca Nova"
        self.mug.price = Decimal("99.00")
        self.mug.save()

        item = OrderItem.objects.get(order=order)
        self.assertEqual(item.name, "Caneca")
        self.assertEqual(item.price, Decimal("29.90"))

    def test_line_items_survive_product_deletion(self):
        """Line items keep the product id after the product is deleted"""
        order = self.place([self.line(self.mug, 1)], total="29.90")
        mug_id = self.mug.id
        self.mug.delete()

        item = OrderItem.objects.get(order=order)
        self.assertEqual(item.product_id, mug_id)
        self.assertEqual(item.name, "Caneca")

    def test_total_is_stored_as_given(self):
        """The order total is stored as sent"""
        order = self.place([self.line(self.mug, 1)], total="5.00")
        self.assertEqual(order.total, Decimal("5.00"))

    def test_insufficient_stock_rolls_back_every_line(self):
        """One short line rolls back the order and every other line"""
        with self.assertRaises(InsufficientStockError) as ctx:
            self.place([self.line(self.mug, 3), self.line(self.shirt, 6)])

        self.assertEqual(ctx.exception.product_id, self.shirt.id)
        self.assertEqual(ctx.exception.requested, 6)
        self.assertEqual(ctx.exception.available, 5)
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(OrderItem.objects.count(), 0)

        self.mug.refresh_from_db()
        self.assertEqual((self.mug.stock, self.mug.sold), (10, 0))

    def test_duplicate_lines_are_each_decremented(self):
        """A product listed twice is decremented once per line"""
        self.place([self.line(self.shirt, 2), self.line(self.shirt, 3)])
        self.shirt.refresh_from_db()
        self.assertEqual((self.shirt.stock, self.shirt.sold), (0, 5))

    def test_duplicate_lines_cannot_oversell(self):
        """Duplicate lines together cannot exceed the stock"""
        with self.assertRaises(InsufficientStockError):
            self.place([self.line(self.shirt, 3), self.line(self.shirt, 3)])
        self.shirt.refresh_from_db()
        self.assertEqual((self.shirt.stock, self.shirt.sold), (5, 0))

    def test_sequential_orders_stop_at_zero_stock(self):
        """Orders stop being accepted once stock reaches zero"""
        for _ in range(5):
            self.place([self.line(self.shirt, 1)])

        with self.assertRaises(InsufficientStockError):
            self.place([self.line(self.shirt, 1)])

        self.shirt.refresh_from_db()
        self.assertEqual((self.shirt.stock, self.shirt.sold), (0, 5))
        self.assertEqual(Order.objects.count(), 5)

    def test_decrement_uses_current_row_not_stale_copy(self):
        """The decrement checks the stored stock, not a stale in-memory copy"""
        stale_shirt = Product.objects.get(pk=self.shirt.pk)
        self.place([self.line(self.shirt, 5)])

        # stale_shirt still believes 5 units are available
        self.assertEqual(stale_shirt.stock, 5)
        with self.assertRaises(InsufficientStockError):
            self.place([self.line(stale_shirt, 1)])
        self.assertEqual(Order.objects.count(), 1)

    def test_stock_plus_sold_is_preserved(self):
        """Stock plus sold stays constant across orders"""
        self.place([self.line(self.mug, 4)])
        self.place([self.line(self.mug, 6)])
        self.mug.refresh_from_db()
        self.assertEqual(self.mug.stock + self.mug.sold, 10)
        self.assertEqual(self.mug.stock, 0)

    def test_resubmitting_creates_a_second_order(self):
        """Sending the same order twice places two orders"""
        first = self.place([self.line(self.mug, 2)])
        second = self.place([self.line(self.mug, 2)])

        self.assertNotEqual(first.id, second.id)
        self.mug.refresh_from_db()
        self.assertEqual((self.mug.stock, self.mug.sold), (6, 4))

    def test_unknown_product_is_not_found(self):
        """An unknown product fails the order without touching stock"""
        line = self.line(self.mug, 1)
        line["product_id"] = 999999
        with self.assertRaises(NotFoundError):
            self.place([self.line(self.shirt, 1), line])

        self.assertEqual(Order.objects.count(), 0)
        self.shirt.refresh_from_db()
        self.assertEqual(self.shirt.stock, 5)

    def test_unknown_customer_is_not_found(self):
        """An unknown customer raises NotFoundError"""
        with self.assertRaises(NotFoundError):
            self.place([self.line(self.mug, 1)], customer_id=999999)

    def test_address_of_another_member_is_not_found(self):
        """An address owned by another member raises NotFoundError"""
        other_address = make_address(self.seller)
        with self.assertRaises(NotFoundError):
            self.place([self.line(self.mug, 1)], address_id=other_address.id)
        self.assertEqual(Order.objects.count(), 0)

    def test_empty_items_are_rejected(self):
        """An order without items is rejected"""
        with self.assertRaises(CheckoutValidationError):
            self.place([])

    def test_invalid_quantities_are_rejected(self):
        """Zero, negative and non-integer quantities are rejected"""
        for quantity in (0, -1, "abc", None, True, 1.5):
            with self.subTest(quantity=quantity):
                with self.assertRaises(CheckoutValidationError):
                    self.place([self.line(self.mug, quantity)])
        self.mug.refresh_from_db()
        self.assertEqual(self.mug.stock, 10)

    def test_out_of_range_numbers_are_rejected(self):
        """Ids and quantities beyond the column range are rejected before any write"""
        cases = [
            {"items": [self.line(self.mug, 10**20)]},
            {"items": [self.line(self.mug, 2147483648)]},
            {"items": [dict(self.line(self.mug, 1), product_id=10**20)]},
            {"items": [self.line(self.mug, 1)], "customer_id": 10**20},
            {"items": [self.line(self.mug, 1)], "address_id": 10**20},
        ]
        for overrides in cases:
            with self.subTest(overrides=overrides):
                items = overrides.pop("items")
                with self.assertRaises(CheckoutValidationError):
                    self.place(items, **overrides)
        self.assertEqual(Order.objects.count(), 0)
        self.mug.refresh_from_db()
        self.assertEqual(self.mug.stock, 10)

    def test_negative_total_is_rejected(self):
        """A negative total is rejected"""
        with self.assertRaises(CheckoutValidationError):
            self.place([self.line(self.mug, 1)], total="-1")

    def test_missing_payment_method_is_rejected(self):
        """A blank payment method is rejected"""
        with self.assertRaises(CheckoutValidationError):
            self.place([self.line(self.mug, 1)], payment_method="  ")

    def test_storage_failure_becomes_transient_error(self):
        """Database operational errors surface as TransientStoreError"""
        with mock.patch.object(
            OrderPlacementService, "_write_order", side_effect=OperationalError("timeout")
        ):
            with self.assertRaises(TransientStoreError):
                self.place([self.line(self.mug, 1)])


class OrderStatusTestCase(CheckoutFixtureMixin, TestCase):
    def setUp(self):
        self.create_fixtures()
        self.order = self.place([self.line(self.mug, 1)], total="29.90")

    def test_forward_transitions(self):
        """An order moves forward through shipping to completed"""
        change_order_status(self.order.id, Order.STATUS_SHIPPING)
        order = change_order_status(self.order.id, Order.STATUS_COMPLETED)
        self.assertEqual(order.status, Order.STATUS_COMPLETED)

    def test_terminal_status_cannot_change(self):
        """A cancelled order is final and cannot change again"""
        order = change_order_status(self.order.id, Order.STATUS_CANCELLED)
        self.assertTrue(order.is_final)
        with self.assertRaises(InvalidStatusTransitionError) as ctx:
            change_order_status(self.order.id, Order.STATUS_SHIPPING)
        self.assertIn("already 'cancelled'", str(ctx.exception))

    def test_open_order_is_not_final(self):
        """Only completed and cancelled orders are final"""
        self.assertFalse(self.order.is_final)
        change_order_status(self.order.id, Order.STATUS_SHIPPING)
        order = change_order_status(self.order.id, Order.STATUS_COMPLETED)
        self.assertTrue(order.is_final)

    def test_cannot_go_back_to_pay(self):
        """An order cannot return to to-pay"""
        with self.assertRaises(InvalidStatusTransitionError):
            change_order_status(self.order.id, Order.STATUS_TO_PAY)

    def test_unknown_status_is_rejected(self):
        """An unknown status is a validation error"""
        with self.assertRaises(CheckoutValidationError):
            change_order_status(self.order.id, "lost")

    def test_status_change_does_not_touch_stock(self):
        """Changing status leaves stock and sold alone"""
        change_order_status(self.order.id, Order.STATUS_CANCELLED)
        self.mug.refresh_from_db()
        self.assertEqual((self.mug.stock, self.mug.sold), (9, 1))


class OrderAPITestCase(CheckoutFixtureMixin, TestCase):
    def setUp(self):
        self.client = Client()
        self.create_fixtures()
        self.url = reverse("orders:order-list")

    def payload(self, quantity=2):
        return {
            "customerId": self.buyer.id,
            "total": 59.8,
            "paymentMethod": "credit-card",
            "addressId": self.address.id,
            "items": [
                {
                    "id": self.mug.id,
                    "name": "Caneca",
                    "quantity": quantity,
                    "price": 29.9,
                    "image": "https://placehold.co/400",
                }
            ],
        }

    def test_create_order(self):
        """POST /orders returns the created order with its items"""
        response = self.client.post(self.url, self.payload(), content_type="application/json")

        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data["status"], "to-ship")
        self.assertEqual(data["customerId"], self.buyer.id)
        self.assertEqual(data["paymentMethod"], "credit-card")
        self.assertEqual(data["total"], 59.8)
        self.assertIn("date", data)
        self.assertEqual(len(data["items"]), 1)
        self.assertEqual(data["items"][0]["productId"], self.mug.id)
        self.assertTrue(Order.objects.filter(pk=data["id"]).exists())

    def test_checkout_scenario_leaves_two_in_stock(self):
        """Buying 3 of a product with 5 in stock leaves 2"""
        self.shirt.stock = 5
        self.shirt.save()
        payload = self.payload()
        payload["total"] = 30
        payload["items"] = [
            {"id": self.shirt.id, "quantity": 3, "price": 10, "name": "A", "image": "u"}
        ]

        response = self.client.post(self.url, payload, content_type="application/json")

        self.assertEqual(response.status_code, 201)
        items = response.json()["items"]
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0]["quantity"], 3)
        self.assertEqual(items[0]["price"], 10)
        self.assertEqual(items[0]["name"], "A")
        self.shirt.refresh_from_db()
        self.assertEqual((self.shirt.stock, self.shirt.sold), (2, 3))

    def test_unknown_product_leaves_catalog_untouched(self):
        """An unknown product returns 404 and changes nothing"""
        payload = self.payload()
        payload["items"][0]["id"] = 999999
        response = self.client.post(self.url, payload, content_type="application/json")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(Order.objects.count(), 0)
        self.mug.refresh_from_db()
        self.assertEqual((self.mug.stock, self.mug.sold), (10, 0))

    def test_insufficient_stock_returns_409(self):
        """Insufficient stock returns 409 with the available quantity"""
        response = self.client.post(
            self.url, self.payload(quantity=11), content_type="application/json"
        )

        self.assertEqual(response.status_code, 409)
        data = response.json()
        self.assertEqual(data["productId"], self.mug.id)
        self.assertEqual(data["available"], 10)
        self.assertEqual(Order.objects.count(), 0)

    def test_empty_items_returns_400(self):
        """An empty item list returns 400"""
        payload = self.payload()
        payload["items"] = []
        response = self.client.post(self.url, payload, content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("items", response.json()["details"])

    def test_zero_quantity_returns_400(self):
        """A zero quantity returns 400"""
        response = self.client.post(
            self.url, self.payload(quantity=0), content_type="application/json"
        )
        self.assertEqual(response.status_code, 400)

    def test_oversized_quantity_returns_400(self):
        """A quantity beyond the column range returns 400"""
        response = self.client.post(
            self.url, self.payload(quantity=10**20), content_type="application/json"
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("items", response.json()["details"])
        self.assertEqual(Order.objects.count(), 0)

    def test_oversized_product_id_returns_400(self):
        """A product id beyond the column range returns 400"""
        payload = self.payload()
        payload["items"][0]["id"] = 10**20
        response = self.client.post(self.url, payload, content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(Order.objects.count(), 0)

    def test_oversized_customer_id_returns_400(self):
        """A customer id beyond the column range returns 400"""
        payload = self.payload()
        payload["customerId"] = 10**20
        response = self.client.post(self.url, payload, content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("customerId", response.json()["details"])

    def test_unknown_address_returns_404(self):
        """An unknown address returns 404"""
        payload = self.payload()
        payload["addressId"] = 999999
        response = self.client.post(self.url, payload, content_type="application/json")
        self.assertEqual(response.status_code, 404)

    def test_transient_failure_returns_503(self):
        """A transient database failure returns 503"""
        with mock.patch.object(
            OrderPlacementService, "_write_order", side_effect=OperationalError("lock timeout")
        ):
            response = self.client.post(self.url, self.payload(), content_type="application/json")
        self.assertEqual(response.status_code, 503)

    def test_unexpected_failure_returns_500(self):
        """An unexpected failure returns a generic 500"""
        with mock.patch.object(
            OrderPlacementService, "_write_order", side_effect=RuntimeError("boom")
        ):
            response = self.client.post(self.url, self.payload(), content_type="application/json")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error"], "Could not place the order")

    def test_list_and_detail(self):
        """Orders are listed overall, per customer and one by one"""
        order = self.place([self.line(self.mug, 1)], total="29.90")

        response = self.client.get(self.url)
        self.assertEqual(response.status_code, 200)
        self.assertEqual([o["id"] for o in response.json()], [str(order.id)])

        response = self.client.get(reverse("orders:customer-orders", args=[self.buyer.id]))
        self.assertEqual(len(response.json()), 1)

        response = self.client.get(reverse("orders:customer-orders", args=[self.seller.id]))
        self.assertEqual(response.json(), [])

        response = self.client.get(reverse("orders:order-detail", args=[order.id]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["items"][0]["name"], "Caneca")

    def test_patch_status(self):
        """PATCH status applies allowed transitions and rejects the rest"""
        order = self.place([self.line(self.mug, 1)], total="29.90")
        url = reverse("orders:order-status", args=[order.id])

        response = self.client.patch(url, {"status": "shipping"}, content_type="application/json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "shipping")

        response = self.client.patch(url, {"status": "to-pay"}, content_type="application/json")
        self.assertEqual(response.status_code, 409)

        response = self.client.patch(url, {"status": "unknown"}, content_type="application/json")
        self.assertEqual(response.status_code, 400)

    def test_patch_status_of_missing_order_returns_404(self):
        """Changing the status of a missing order returns 404"""
        url = reverse("orders:order-status", args=["00000000-0000-0000-0000-000000000000"])
        response = self.client.patch(url, {"status": "shipping"}, content_type="application/json")
        self.assertEqual(response.status_code, 404)


@unittest.skipUnless(connection.vendor == "postgresql", "row locks need PostgreSQL")
class ConcurrentCheckoutTestCase(CheckoutFixtureMixin, TransactionTestCase):
    def setUp(self):
        self.create_fixtures()

    def test_concurrent_checkouts_never_oversell(self):
        """Concurrent single-unit orders sell exactly the available stock"""
        attempts = 12
        outcomes = []
        barrier = threading.Barrier(attempts)
        lock = threading.Lock()

        def checkout():
            result = "error"
            try:
                barrier.wait()
                self.place([self.line(self.shirt, 1)])
                result = "placed"
            except InsufficientStockError:
                result = "sold out"
            finally:
                connection.close()
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=checkout) for _ in range(attempts)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.shirt.refresh_from_db()
        self.assertEqual(outcomes.count("placed"), 5)
        self.assertEqual(outcomes.count("sold out"), attempts - 5)
        self.assertEqual((self.shirt.stock, self.shirt.sold), (0, 5))
        self.assertEqual(Order.objects.count(), 5)

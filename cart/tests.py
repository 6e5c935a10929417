from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import Client, TestCase
from django.urls import reverse

from marketplace.models import MAX_UNITS, Product
from shops.models import Shop
from .models import CartItem

Member = get_user_model()


class CartAPITestCase(TestCase):
    def setUp(self):
        self.client = Client()
        seller = Member.objects.create_user(
            username="seller@example.com", email="seller@example.com", password="testpass123"
        )
        self.buyer = Member.objects.create_user(
            username="buyer@example.com", email="buyer@example.com", password="testpass123",
            role=Member.ROLE_BUYER,
        )
        shop = Shop.objects.create(owner=seller, name="Loja Teste")
        self.product = Product.objects.create(
            name="Caneca", price=Decimal("29.90"), stock=10, shop=shop
        )
        self.add_url = reverse("cart:cart-add")

    def add(self, quantity=1):
        return self.client.post(
            self.add_url,
            {
                "userId": self.buyer.id,
                "productId": self.product.id,
                "name": "Caneca",
                "price": 29.9,
                "quantity": quantity,
                "image": "https://placehold.co/400",
            },
            content_type="application/json",
        )

    def test_add_creates_line(self):
        """Adding a product creates a cart line"""
        response = self.add(2)
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["quantity"], 2)
        self.assertEqual(response.json()["productId"], self.product.id)

    def test_adding_same_product_merges_quantities(self):
        """Adding the same product again merges into one line"""
        self.add(2)
        response = self.add(3)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["quantity"], 5)
        self.assertEqual(CartItem.objects.filter(user=self.buyer).count(), 1)

    def test_add_rejects_zero_quantity(self):
        """A zero quantity cannot be added"""
        response = self.add(0)
        self.assertEqual(response.status_code, 400)

    def test_add_rejects_quantity_beyond_column_range(self):
        """Quantities past the unit counter range return 400"""
        response = self.add(10**20)
        self.assertEqual(response.status_code, 400)
        self.assertFalse(CartItem.objects.exists())

    def test_merge_cannot_overflow_quantity(self):
        """Merging past the unit counter range returns 400 and keeps the line"""
        self.add(MAX_UNITS)
        response = self.add(1)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(CartItem.objects.get(user=self.buyer).quantity, MAX_UNITS)

    def test_get_cart_of_member(self):
        """A member's cart lists only their lines"""
        self.add(1)
        response = self.client.get(reverse("cart:cart-detail", args=[self.buyer.id]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), 1)
        self.assertEqual(response.json()[0]["name"], "Caneca")

    def test_update_quantity(self):
        """A cart line quantity can be changed but not set to zero"""
        item_id = self.add(1).json()["id"]
        url = reverse("cart:cart-detail", args=[item_id])

        response = self.client.put(url, {"quantity": 4}, content_type="application/json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(CartItem.objects.get(pk=item_id).quantity, 4)

        response = self.client.put(url, {"quantity": 0}, content_type="application/json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(CartItem.objects.get(pk=item_id).quantity, 4)

    def test_delete_line(self):
        """A cart line can be removed"""
        item_id = self.add(1).json()["id"]
        response = self.client.delete(reverse("cart:cart-detail", args=[item_id]))
        self.assertEqual(response.status_code, 204)
        self.assertFalse(CartItem.objects.filter(pk=item_id).exists())

    def test_delete_missing_line_returns_404(self):
        """Removing a missing line returns 404"""
        response = self.client.delete(reverse("cart:cart-detail", args=[999999]))
        self.assertEqual(response.status_code, 404)

    def test_clear_cart(self):
        """Clearing the cart removes every line of the member"""
        self.add(1)
        response = self.client.delete(reverse("cart:cart-clear", args=[self.buyer.id]))
        self.assertEqual(response.status_code, 204)
        self.assertFalse(CartItem.objects.filter(user=self.buyer).exists())

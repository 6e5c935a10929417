from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import Client, TestCase
from django.urls import reverse

from orders.models import Order
from shops.models import Shop
from .models import Address

Member = get_user_model()


def registration_payload(email="seller@example.com", shop=True):
    payload = {
        "userData": {
            "name": "Maria Silva",
            "email": email,
            "password": "senha-segura-1",
            "cpf": "123.456.789-09",
            "phone": "11999990000",
            "role": "SELLER",
        },
        "addressData": {
            "cep": "01310-100",
            "street": "Avenida Paulista",
            "number": "1000",
            "city": "São Paulo",
            "state": "SP",
        },
    }
    if shop:
        payload["shopData"] = {"name": "Loja da Maria", "description": "Artesanato"}
    return payload


class RegistrationTestCase(TestCase):
    def setUp(self):
        self.client = Client()
        self.url = reverse("accounts:register")

    def post(self, payload):
        return self.client.post(self.url, payload, content_type="application/json")

    def test_register_seller_with_shop(self):
        """Seller registration creates the member, a primary address and the shop"""
        response = self.post(registration_payload())

        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data["email"], "seller@example.com")
        self.assertEqual(data["shop"]["name"], "Loja da Maria")
        self.assertNotIn("password", data)

        member = Member.objects.get(email="seller@example.com")
        self.assertTrue(member.check_password("senha-segura-1"))
        self.assertEqual(member.addresses.get().is_primary, True)
        self.assertEqual(Shop.objects.get(owner=member).image, Shop.PLACEHOLDER_IMAGE)

    def test_register_buyer_without_shop(self):
        """Buyer registration without shop data creates no shop"""
        payload = registration_payload("buyer@example.com", shop=False)
        payload["userData"]["role"] = "BUYER"
        response = self.post(payload)

        self.assertEqual(response.status_code, 201)
        self.assertIsNone(response.json()["shop"])
        self.assertFalse(Shop.objects.exists())

    def test_email_is_unique_case_insensitive(self):
        """An email that differs only in case cannot register twice"""
        self.post(registration_payload())
        response = self.post(registration_payload("Seller@Example.com"))

        self.assertEqual(response.status_code, 400)
        self.assertIn("userData", response.json()["details"])
        self.assertEqual(Member.objects.count(), 1)

    def test_missing_user_data(self):
        """Registration without userData is rejected"""
        response = self.post({"addressData": registration_payload()["addressData"]})
        self.assertEqual(response.status_code, 400)

    def test_invalid_address_creates_nothing(self):
        """An invalid address rolls back the whole registration"""
        payload = registration_payload()
        del payload["addressData"]["city"]
        response = self.post(payload)

        self.assertEqual(response.status_code, 400)
        self.assertFalse(Member.objects.exists())


class LoginTestCase(TestCase):
    def setUp(self):
        self.client = Client()
        self.url = reverse("accounts:login")
        self.member = Member.objects.create_user(
            username="buyer@example.com", email="buyer@example.com", password="testpass123",
            name="Buyer",
        )

    def login(self, email, password):
        return self.client.post(
            self.url, {"email": email, "password": password}, content_type="application/json"
        )

    def test_login_success(self):
        """Login ignores email case and returns the member"""
        response = self.login("BUYER@example.com", "testpass123")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["id"], self.member.id)

    def test_wrong_password_counts_failures(self):
        """A wrong password bumps the failure count and a good login resets it"""
        response = self.login("buyer@example.com", "wrong-password")
        self.assertEqual(response.status_code, 401)
        self.member.refresh_from_db()
        self.assertEqual(self.member.login_failed_count, 1)

        self.login("buyer@example.com", "testpass123")
        self.member.refresh_from_db()
        self.assertEqual(self.member.login_failed_count, 0)

    def test_unknown_email(self):
        """Login with an unknown email returns 401"""
        response = self.login("nobody@example.com", "testpass123")
        self.assertEqual(response.status_code, 401)

    def test_inactive_member(self):
        """An inactive member cannot log in"""
        self.member.is_active = False
        self.member.save()
        response = self.login("buyer@example.com", "testpass123")
        self.assertEqual(response.status_code, 403)


class AddressTestCase(TestCase):
    def setUp(self):
        self.client = Client()
        self.member = Member.objects.create_user(
            username="buyer@example.com", email="buyer@example.com", password="testpass123"
        )
        self.address = Address.objects.create(
            user=self.member, zip_code="01310-100", street="Avenida Paulista",
            number="1000", city="São Paulo", state="SP", is_primary=True,
        )

    def test_list_member_addresses(self):
        """A member's addresses are listed with the formatted zip code"""
        response = self.client.get(reverse("accounts:user-addresses", args=[self.member.id]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()[0]["zipCode"], "01310-100")

    def test_new_primary_address_demotes_old_one(self):
        """Adding a primary address clears the previous primary"""
        response = self.client.post(
            reverse("accounts:address-create"),
            {
                "userId": self.member.id,
                "zipCode": "20040002",
                "street": "Rua da Assembleia",
                "number": "10",
                "city": "Rio de Janeiro",
                "state": "RJ",
                "isPrimary": True,
            },
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["zipCode"], "20040-002")
        self.address.refresh_from_db()
        self.assertFalse(self.address.is_primary)

    def test_invalid_zip_code(self):
        """A zip code without eight digits is rejected"""
        response = self.client.patch(
            reverse("accounts:address-detail", args=[self.address.id]),
            {"zipCode": "123"},
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 400)

    def test_update_address(self):
        """Partial address updates are saved"""
        response = self.client.patch(
            reverse("accounts:address-detail", args=[self.address.id]),
            {"number": "2000"},
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 200)
        self.address.refresh_from_db()
        self.assertEqual(self.address.number, "2000")

    def test_delete_address(self):
        """An unused address can be deleted"""
        response = self.client.delete(reverse("accounts:address-detail", args=[self.address.id]))
        self.assertEqual(response.status_code, 204)
        self.assertFalse(Address.objects.exists())

    def test_address_used_by_order_cannot_be_deleted(self):
        """An address referenced by an order returns 409 and stays"""
        Order.objects.create(
            customer=self.member, address=self.address, total=Decimal("10.00"), payment_method="pix"
        )
        response = self.client.delete(reverse("accounts:address-detail", args=[self.address.id]))
        self.assertEqual(response.status_code, 409)
        self.assertTrue(Address.objects.filter(pk=self.address.pk).exists())


class HealthAndErrorTestCase(TestCase):
    def test_health(self):
        """Health check answers ok"""
        response = Client().get("/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")

    def test_unknown_route_returns_json_404(self):
        """Unknown routes answer with a JSON 404"""
        response = Client().get("/no-such-route")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"], "Resource not found")

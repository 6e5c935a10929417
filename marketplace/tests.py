import json
import shutil
import tempfile
from decimal import Decimal
from io import BytesIO

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import Client, TestCase, override_settings
from django.urls import reverse
from PIL import Image

from shops.models import Shop
from .models import Favorite, Product
from .storage_backends import MediaStorage
from .validators import validate_image_file

Member = get_user_model()


def png_upload(name="photo.png", size=(200, 200)):
    buffer = BytesIO()
    Image.new("RGB", size, color=(200, 30, 30)).save(buffer, format="PNG")
    return SimpleUploadedFile(name, buffer.getvalue(), content_type="image/png")


class ImageValidatorTestCase(TestCase):
    def test_valid_png(self):
        """A valid PNG passes validation"""
        validate_image_file(png_upload())

    def test_unsupported_extension(self):
        """Files with an unsupported extension are rejected"""
        upload = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")
        with self.assertRaises(ValidationError):
            validate_image_file(upload)

    def test_content_must_be_an_image(self):
        """Files that are not images are rejected"""
        upload = SimpleUploadedFile("fake.png", b"not really a png", content_type="image/png")
        with self.assertRaises(ValidationError):
            validate_image_file(upload)

    def test_too_small(self):
        """Images below the minimum size are rejected"""
        with self.assertRaises(ValidationError):
            validate_image_file(png_upload(size=(50, 50)))

    @override_settings(PRODUCT_IMAGE_MAX_SIZE=10)
    def test_too_heavy(self):
        """Files above the size limit are rejected"""
        with self.assertRaises(ValidationError):
            validate_image_file(png_upload())


class ProductAPITestCase(TestCase):
    def setUp(self):
        self.client = Client()
        self.media_root = tempfile.mkdtemp()
        self.media_override = override_settings(MEDIA_ROOT=self.media_root)
        self.media_override.enable()

        seller = Member.objects.create_user(
            username="seller@example.com", email="seller@example.com", password="testpass123"
        )
        self.shop = Shop.objects.create(owner=seller, name="Loja Teste")
        self.url = reverse("marketplace:product-list")

    def tearDown(self):
        self.media_override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)

    def form(self, **overrides):
        data = {
            "name": "Caneca",
            "description": "Caneca de cerâmica",
            "price": "29.90",
            "stock": "10",
            "category": "Casa",
            "variations": json.dumps([{"name": "Cor", "options": ["Azul", "Branca"]}]),
            "shopId": str(self.shop.id),
        }
        data.update(overrides)
        return data

    def test_create_without_files_uses_placeholder(self):
        """A product created without files gets the placeholder image"""
        response = self.client.post(self.url, self.form())

        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(data["image"], settings.PRODUCT_PLACEHOLDER_IMAGE)
        self.assertEqual(data["images"], [])
        self.assertEqual(data["price"], 29.9)
        self.assertEqual(data["stock"], 10)
        self.assertEqual(data["sold"], 0)
        self.assertEqual(data["variations"][0]["name"], "Cor")

    def test_create_with_images(self):
        """Uploaded images are stored and the first one becomes the cover"""
        response = self.client.post(
            self.url, self.form(files=[png_upload("a.png"), png_upload("b.png")])
        )

        self.assertEqual(response.status_code, 201)
        data = response.json()
        self.assertEqual(len(data["images"]), 2)
        self.assertEqual(data["image"], data["images"][0])
        self.assertTrue(data["image"].startswith("http://testserver/media/products/"))

    def test_invalid_image_is_rejected(self):
        """An invalid upload rejects the product"""
        response = self.client.post(self.url, self.form(files=[png_upload(size=(20, 20))]))
        self.assertEqual(response.status_code, 400)
        self.assertFalse(Product.objects.exists())

    def test_unparseable_numbers_fall_back_to_zero(self):
        """Unparseable price and stock fall back to zero"""
        response = self.client.post(self.url, self.form(price="abc", stock="many"))
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["price"], 0)
        self.assertEqual(response.json()["stock"], 0)

    def test_stock_beyond_column_range_is_rejected(self):
        """Stock past the unit counter range returns 400"""
        response = self.client.post(self.url, self.form(stock=str(10**20)))
        self.assertEqual(response.status_code, 400)
        self.assertFalse(Product.objects.exists())

    def test_invalid_variations_json(self):
        """Malformed variations JSON returns 400"""
        response = self.client.post(self.url, self.form(variations="{not json"))
        self.assertEqual(response.status_code, 400)

    def test_unknown_shop(self):
        """Creating a product for an unknown shop returns 400"""
        response = self.client.post(self.url, self.form(shopId="999999"))
        self.assertEqual(response.status_code, 400)

    def test_search_is_case_insensitive(self):
        """Product search ignores case"""
        Product.objects.create(name="Caneca Azul", price=Decimal("10"), shop=self.shop)
        Product.objects.create(name="Camiseta", price=Decimal("10"), shop=self.shop)

        response = self.client.get(self.url, {"search": "caneca"})
        self.assertEqual([p["name"] for p in response.json()], ["Caneca Azul"])

        response = self.client.get(self.url)
        self.assertEqual(len(response.json()), 2)

    def test_detail_update_delete(self):
        """Product detail, partial update and delete"""
        product = Product.objects.create(name="Caneca", price=Decimal("10"), stock=3, shop=self.shop)
        url = reverse("marketplace:product-detail", args=[product.id])

        self.assertEqual(self.client.get(url).json()["name"], "Caneca")

        response = self.client.patch(url, {"price": "12.50", "stock": 7}, content_type="application/json")
        self.assertEqual(response.status_code, 200)
        product.refresh_from_db()
        self.assertEqual((product.price, product.stock), (Decimal("12.50"), 7))

        response = self.client.patch(url, {"price": "-1"}, content_type="application/json")
        self.assertEqual(response.status_code, 400)

        response = self.client.delete(url)
        self.assertEqual(response.status_code, 204)
        self.assertEqual(self.client.get(url).status_code, 404)

    def test_shop_products(self):
        """Products of a shop are listed"""
        Product.objects.create(name="Caneca", price=Decimal("10"), shop=self.shop)
        response = self.client.get(reverse("marketplace:shop-products", args=[self.shop.id]))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), 1)


class FavoriteAPITestCase(TestCase):
    def setUp(self):
        self.client = Client()
        seller = Member.objects.create_user(
            username="seller@example.com", email="seller@example.com", password="testpass123"
        )
        self.buyer = Member.objects.create_user(
            username="buyer@example.com", email="buyer@example.com", password="testpass123"
        )
        shop = Shop.objects.create(owner=seller, name="Loja Teste")
        self.product = Product.objects.create(name="Caneca", price=Decimal("10"), shop=shop)

    def toggle(self):
        return self.client.post(
            reverse("marketplace:favorite-toggle"),
            {"userId": self.buyer.id, "productId": self.product.id},
            content_type="application/json",
        )

    def test_toggle_on_and_off(self):
        """Toggling a favorite twice adds then removes it"""
        self.assertEqual(self.toggle().json(), {"favorited": True})
        self.assertTrue(Favorite.objects.filter(user=self.buyer).exists())

        self.assertEqual(self.toggle().json(), {"favorited": False})
        self.assertFalse(Favorite.objects.exists())

    def test_toggle_requires_ids(self):
        """Toggling without a product id returns 400"""
        response = self.client.post(
            reverse("marketplace:favorite-toggle"), {"userId": self.buyer.id},
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 400)

    def test_favorite_lists(self):
        """Favorite ids and details are listed for the member"""
        self.toggle()

        response = self.client.get(reverse("marketplace:favorite-ids", args=[self.buyer.id]))
        self.assertEqual(response.json(), [self.product.id])

        response = self.client.get(reverse("marketplace:favorite-details", args=[self.buyer.id]))
        self.assertEqual(response.json()[0]["name"], "Caneca")


class MediaStorageTestCase(TestCase):
    def test_bucket_layout(self):
        """S3 uploads go under media/ with public, non-overwriting objects"""
        self.assertEqual(MediaStorage.location, "media")
        self.assertEqual(MediaStorage.bucket_name, settings.AWS_STORAGE_BUCKET_NAME)
        self.assertEqual(MediaStorage.region_name, settings.AWS_S3_REGION_NAME)
        self.assertFalse(MediaStorage.file_overwrite)
        self.assertFalse(MediaStorage.querystring_auth)
        self.assertEqual(MediaStorage.object_parameters["CacheControl"], "max-age=86400")

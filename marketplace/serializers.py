from rest_framework import serializers

from shops.models import Shop
from .models import MAX_UNITS, Product


class ProductSerializer(serializers.ModelSerializer):
    shopId = serializers.IntegerField(source="shop_id", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Product
        fields = [
            "id", "name", "description", "price", "stock", "sold", "category",
            "image", "images", "variations", "shopId", "createdAt", "updatedAt",
        ]


class ProductWriteSerializer(serializers.ModelSerializer):
    """Fields a seller may set; stock/sold bookkeeping stays server side"""

    shopId = serializers.PrimaryKeyRelatedField(source="shop", queryset=Shop.objects.all())
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    stock = serializers.IntegerField(min_value=0, max_value=MAX_UNITS)
    variations = serializers.JSONField(required=False)

    class Meta:
        model = Product
        fields = [
            "name", "description", "price", "stock", "category", "variations",
            "image", "images", "shopId",
        ]
        extra_kwargs = {
            "image": {"required": False},
            "images": {"required": False},
        }

    def validate_variations(self, value):
        if not isinstance(value, list):
            raise serializers.ValidationError("Variations must be a list")
        return value

    def validate_images(self, value):
        if not isinstance(value, list) or not all(isinstance(url, str) for url in value):
            raise serializers.ValidationError("Images must be a list of URLs")
        return value

    def update(self, instance, validated_data):
        # Products never move between shops
        validated_data.pop("shop", None)
        return super().update(instance, validated_data)

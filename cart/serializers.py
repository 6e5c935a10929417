from django.contrib.auth import get_user_model
from rest_framework import serializers

from marketplace.models import MAX_UNITS, Product
from .models import CartItem

Member = get_user_model()


class CartItemSerializer(serializers.ModelSerializer):
    userId = serializers.IntegerField(source="user_id", read_only=True)
    productId = serializers.IntegerField(source="product_id", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = CartItem
        fields = ["id", "userId", "productId", "name", "price", "quantity", "image", "createdAt"]


class CartItemWriteSerializer(serializers.Serializer):
    userId = serializers.PrimaryKeyRelatedField(queryset=Member.objects.all())
    productId = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    name = serializers.CharField(max_length=200)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_UNITS)
    image = serializers.CharField(max_length=500)


class CartQuantitySerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_UNITS)

from rest_framework import serializers

from .models import Order, OrderItem
from .services.placement import MAX_ID, MAX_QUANTITY


class OrderItemInputSerializer(serializers.Serializer):
    id = serializers.IntegerField(min_value=1, max_value=MAX_ID)
    name = serializers.CharField(max_length=200)
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_QUANTITY)
    # Rounded to cents by the placement service
    price = serializers.DecimalField(max_digits=None, decimal_places=None, min_value=0)
    image = serializers.CharField(max_length=500)


class PlaceOrderSerializer(serializers.Serializer):
    """Shape check for POST /orders; business rules live in the service"""

    customerId = serializers.IntegerField(min_value=1, max_value=MAX_ID)
    total = serializers.DecimalField(max_digits=None, decimal_places=None, min_value=0)
    paymentMethod = serializers.CharField(max_length=50)
    addressId = serializers.IntegerField(min_value=1, max_value=MAX_ID)
    items = OrderItemInputSerializer(many=True, allow_empty=False)

    def to_service_kwargs(self):
        data = self.validated_data
        return {
            "customer_id": data["customerId"],
            "total": data["total"],
            "payment_method": data["paymentMethod"],
            "address_id": data["addressId"],
            "items": [
                {
                    "product_id": item["id"],
                    "name": item["name"],
                    "price": item["price"],
                    "quantity": item["quantity"],
                    "image": item["image"],
                }
                for item in data["items"]
            ],
        }


class OrderItemSerializer(serializers.ModelSerializer):
    productId = serializers.IntegerField(source="product_id", read_only=True)

    class Meta:
        model = OrderItem
        fields = ["id", "productId", "name", "price", "quantity", "image"]


class OrderSerializer(serializers.ModelSerializer):
    customerId = serializers.IntegerField(source="customer_id", read_only=True)
    addressId = serializers.IntegerField(source="address_id", read_only=True)
    paymentMethod = serializers.CharField(source="payment_method", read_only=True)
    date = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id", "customerId", "total", "paymentMethod", "addressId",
            "status", "date", "updatedAt", "items",
        ]


class OrderStatusSerializer(serializers.Serializer):
    status = serializers.CharField()

from rest_framework import serializers

from .models import Shop


class ShopSerializer(serializers.ModelSerializer):
    ownerId = serializers.IntegerField(source="owner_id", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Shop
        fields = ["id", "ownerId", "name", "description", "image", "createdAt"]

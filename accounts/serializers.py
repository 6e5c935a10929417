import re

from django.db import transaction
from django.utils import timezone
from rest_framework import serializers

from shops.models import Shop
from shops.serializers import ShopSerializer
from .models import Address, Member


class MemberSerializer(serializers.ModelSerializer):
    createdAt = serializers.DateTimeField(source="date_joined", read_only=True)
    shop = ShopSerializer(read_only=True, allow_null=True)

    class Meta:
        model = Member
        fields = [
            "id", "name", "email", "cpf", "phone", "birthdate", "role",
            "createdAt", "shop",
        ]


class AddressSerializer(serializers.ModelSerializer):
    userId = serializers.PrimaryKeyRelatedField(
        source="user", queryset=Member.objects.all()
    )
    zipCode = serializers.CharField(source="zip_code", max_length=9)
    isPrimary = serializers.BooleanField(source="is_primary", required=False)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Address
        fields = [
            "id", "userId", "zipCode", "street", "number", "complement",
            "neighborhood", "city", "state", "isPrimary", "createdAt",
        ]

    def validate_zipCode(self, value):
        digits = re.sub(r"\D", "", value)
        if len(digits) != 8:
            raise serializers.ValidationError("ZIP code must have 8 digits")
        return f"{digits[:5]}-{digits[5:]}"

    def update(self, instance, validated_data):
        # Addresses never move between members
        validated_data.pop("user", None)
        return super().update(instance, validated_data)


class UserDataSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(min_length=8, write_only=True)
    cpf = serializers.CharField(max_length=14, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    birthdate = serializers.DateField(required=False, allow_null=True)
    role = serializers.ChoiceField(
        choices=Member.role_choices, required=False, allow_blank=True
    )

    def validate_email(self, value):
        email = value.strip().lower()
        if Member.objects.filter(email=email).exists():
            raise serializers.ValidationError("This email is already registered")
        return email

    def validate_cpf(self, value):
        if value and len(re.sub(r"\D", "", value)) != 11:
            raise serializers.ValidationError("CPF must have 11 digits")
        return value

    def validate_birthdate(self, value):
        if value and value > timezone.now().date():
            raise serializers.ValidationError("Birthdate cannot be in the future")
        return value


class AddressDataSerializer(serializers.Serializer):
    cep = serializers.CharField(max_length=9)
    street = serializers.CharField(max_length=200)
    number = serializers.CharField(max_length=20)
    complement = serializers.CharField(max_length=100, required=False, allow_blank=True)
    neighborhood = serializers.CharField(max_length=100, required=False, allow_blank=True)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=50)


class ShopDataSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    description = serializers.CharField(required=False, allow_blank=True)
    image = serializers.URLField(required=False, allow_blank=True)


class RegistrationSerializer(serializers.Serializer):
    """Sign-up payload: member, first address and an optional shop"""

    userData = UserDataSerializer()
    addressData = AddressDataSerializer()
    shopData = ShopDataSerializer(required=False, allow_null=True)

    def create(self, validated_data):
        user_data = validated_data["userData"]
        address_data = validated_data["addressData"]
        shop_data = validated_data.get("shopData")

        with transaction.atomic():
            member = Member.objects.create_user(
                username=user_data["email"],
                email=user_data["email"],
                password=user_data["password"],
                name=user_data["name"],
                cpf=user_data.get("cpf", ""),
                phone=user_data.get("phone", ""),
                birthdate=user_data.get("birthdate"),
                role=user_data.get("role") or Member.ROLE_SELLER,
            )
            Address.objects.create(
                user=member,
                zip_code=address_data["cep"],
                street=address_data["street"],
                number=address_data["number"],
                complement=address_data.get("complement", ""),
                neighborhood=address_data.get("neighborhood", ""),
                city=address_data["city"],
                state=address_data["state"],
                is_primary=True,
            )
            if shop_data:
                Shop.objects.create(
                    owner=member,
                    name=shop_data["name"],
                    description=shop_data.get("description", ""),
                    image=shop_data.get("image") or Shop.PLACEHOLDER_IMAGE,
                )
        return member


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

import logging

from django.db import IntegrityError
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Address, Member
from .serializers import (
    AddressSerializer,
    LoginSerializer,
    MemberSerializer,
    RegistrationSerializer,
)

logger = logging.getLogger(__name__)


class RegisterAPIView(APIView):
    """
    POST /auth/register - create a member with their first address
    and, for sellers, their shop
    """
    def post(self, request):
        user_data = request.data.get("userData")
        if not isinstance(user_data, dict) or not user_data.get("name"):
            return Response(
                {"error": "User data (name, email) is required."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        serializer = RegistrationSerializer(data=request.data)
        if not serializer.is_valid():
            logger.info(f"Registration rejected: {serializer.errors}")
            return Response(
                {"error": "Could not create the user.", "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            member = serializer.save()
        except IntegrityError as e:
            logger.warning(f"Registration failed for {user_data.get('email')}: {e}")
            return Response(
                {"error": "Could not create the user. Check whether the email already exists."},
                status=status.HTTP_400_BAD_REQUEST,
            )

        logger.info(f"Member {member.pk} registered as {member.role}")
        return Response(MemberSerializer(member).data, status=status.HTTP_201_CREATED)


class LoginAPIView(APIView):
    """
    POST /auth/login - check email and password, return the member
    """
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": "Invalid credentials"}, status=status.HTTP_401_UNAUTHORIZED
            )

        email = serializer.validated_data["email"].strip().lower()
        member = Member.objects.filter(email=email).select_related("shop").first()
        if member is None:
            return Response(
                {"error": "Invalid credentials"}, status=status.HTTP_401_UNAUTHORIZED
            )

        if not member.check_password(serializer.validated_data["password"]):
            member.login_failed_count += 1
            member.save(update_fields=["login_failed_count"])
            return Response(
                {"error": "Invalid credentials"}, status=status.HTTP_401_UNAUTHORIZED
            )

        if not member.is_active:
            return Response(
                {"error": "Account is disabled"}, status=status.HTTP_403_FORBIDDEN
            )

        member.login_failed_count = 0
        member.last_login = timezone.now()
        member.save(update_fields=["login_failed_count", "last_login"])
        return Response(MemberSerializer(member).data)


class UserAddressListAPIView(APIView):
    """
    GET /users/:userId/addresses
    """
    def get(self, request, user_id):
        member = get_object_or_404(Member, pk=user_id)
        addresses = Address.objects.filter(user=member)
        return Response(AddressSerializer(addresses, many=True).data)


class AddressCreateAPIView(APIView):
    """
    POST /addresses
    """
    def post(self, request):
        serializer = AddressSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": "Invalid address", "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )
        address = serializer.save()
        return Response(AddressSerializer(address).data, status=status.HTTP_201_CREATED)


class AddressDetailAPIView(APIView):
    """
    PATCH/DELETE /addresses/:id
    """
    def patch(self, request, address_id):
        address = get_object_or_404(Address, pk=address_id)
        serializer = AddressSerializer(address, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(
                {"error": "Invalid address", "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )
        address = serializer.save()
        return Response(AddressSerializer(address).data)

    def delete(self, request, address_id):
        address = get_object_or_404(Address, pk=address_id)
        if address.orders.exists():
            return Response(
                {"error": "Address is used by existing orders"},
                status=status.HTTP_409_CONFLICT,
            )
        address.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

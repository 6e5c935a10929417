import logging

from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .analytics import MAX_DAYS, build_analytics_workbook, parse_days, shop_analytics
from .models import Shop
from .serializers import ShopSerializer

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _invalid_days():
    return Response(
        {"error": f"days must be an integer between 1 and {MAX_DAYS}"},
        status=status.HTTP_400_BAD_REQUEST,
    )


class ShopDetailAPIView(APIView):
    def get(self, request, shop_id):
        shop = get_object_or_404(Shop, pk=shop_id)
        return Response(ShopSerializer(shop).data)


class ShopAnalyticsAPIView(APIView):
    """
    GET /shops/:shopId/analytics?days=30
    """
    def get(self, request, shop_id):
        shop = get_object_or_404(Shop, pk=shop_id)
        days = parse_days(request.query_params.get("days"))
        if days is None:
            return _invalid_days()
        return Response(shop_analytics(shop, days))


class ShopAnalyticsExportAPIView(APIView):
    """
    GET /shops/:shopId/analytics/export?days=30 - same figures as .xlsx
    """
    def get(self, request, shop_id):
        shop = get_object_or_404(Shop, pk=shop_id)
        days = parse_days(request.query_params.get("days"))
        if days is None:
            return _invalid_days()

        workbook = build_analytics_workbook(shop, shop_analytics(shop, days))
        logger.info(f"Sales report exported for shop {shop.id} ({days} days)")

        response = HttpResponse(content_type=XLSX_CONTENT_TYPE)
        response["Content-Disposition"] = (
            f'attachment; filename="sales_report_{shop.id}_{timezone.now().strftime("%Y%m%d")}.xlsx"'
        )
        workbook.save(response)
        return response

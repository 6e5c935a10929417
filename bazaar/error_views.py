from django.http import JsonResponse


def custom_404_view(request, exception=None):
    """
    Unknown route or object
    """
    return JsonResponse(
        {"error": "Resource not found", "path": request.path}, status=404
    )


def custom_500_view(request):
    """
    Unhandled server error
    """
    return JsonResponse({"error": "Internal server error"}, status=500)


def custom_403_view(request, exception=None):
    return JsonResponse({"error": "Permission denied"}, status=403)


def custom_400_view(request, exception=None):
    return JsonResponse({"error": "Bad request"}, status=400)

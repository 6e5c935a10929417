from django.urls import path
from . import views

app_name = "payments"

urlpatterns = [
    path("intents", views.PaymentIntentCreateAPIView.as_view(), name="intent-create"),
]

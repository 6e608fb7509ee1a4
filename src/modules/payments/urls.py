"""Payment URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.payments.views import ConfirmManualPaymentView, VerifyPaymentView

urlpatterns = [
    path("payments/verify/", VerifyPaymentView.as_view(), name="payment-verify"),
    path(
        "payments/confirm/",
        ConfirmManualPaymentView.as_view(),
        name="payment-confirm",
    ),
]

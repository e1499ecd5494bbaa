from django.urls import path

from . import views

app_name = "integrations"

urlpatterns = [
    # Payment provider webhooks
    path("webhooks/paystack/", views.PaystackWebhookView.as_view(), name="paystack_webhook"),
    path("webhooks/nomba/", views.NombaWebhookView.as_view(), name="nomba_webhook"),
    path("webhooks/embedly/", views.EmbedlyWebhookView.as_view(), name="embedly_webhook"),
    # Staff monitoring
    path("webhooks/status/", views.webhook_status, name="webhook_status"),
]

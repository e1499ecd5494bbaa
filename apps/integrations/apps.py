from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class IntegrationsConfig(AppConfig):
    """
    🔌 Payment provider webhooks and outbound CRM / loyalty-ledger sync

    Handles:
    - Paystack, Nomba and Embedly payment webhooks
    - Webhook delivery ledger
    - CRM and loyalty ledger clients
    """
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.integrations'
    verbose_name = _('🔌 Integrations')

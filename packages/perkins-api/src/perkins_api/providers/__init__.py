"""External provider connectors."""
from perkins_api.providers.calendar import GoogleCalendarClient, service_account_credentials
from perkins_api.providers.mercadopago import MercadoPagoConnector

__all__ = [
    "GoogleCalendarClient",
    "MercadoPagoConnector",
    "service_account_credentials",
]

from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.orders"
    label = "orders"

    def ready(self) -> None:
        from modules.orders.events import (
            OrderCancelled,
            OrderCreated,
            OrderStatusChanged,
            PaymentFailed,
            PaymentReceived,
        )
        from modules.orders.handlers import order_audit_handler
        from shared.infrastructure.bus import event_bus

        for event_class in (
            OrderCreated,
            OrderCancelled,
            OrderStatusChanged,
            PaymentFailed,
            PaymentReceived,
        ):
            event_bus.subscribe(event_class, order_audit_handler)

import django_filters

from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(
        field_name="order_status", choices=OrderStatus.choices
    )
    payment_status = django_filters.ChoiceFilter(choices=PaymentStatus.choices)
    restaurant = django_filters.UUIDFilter(field_name="restaurant_id")
    start_date = django_filters.DateFilter(
        field_name="created_at", lookup_expr="date__gte"
    )
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")
    min_total = django_filters.NumberFilter(field_name="total", lookup_expr="gte")
    max_total = django_filters.NumberFilter(field_name="total", lookup_expr="lte")

    class Meta:
        model = Order
        fields = [
            "status",
            "payment_status",
            "restaurant",
            "start_date",
            "end_date",
            "min_total",
            "max_total",
        ]

from django.contrib import admin, messages

from apps.utils.exceptions import BusinessLogicException
from .models import Order, OrderItem
from .services import OrderService


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ('product', 'quantity', 'price_per_unit', 'total_price', 'created_at')

    def has_add_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


def _status_action(target_status):
    def action(modeladmin, request, queryset):
        service = OrderService()
        updated = 0
        for order_id in queryset.values_list('pk', flat=True):
            try:
                service.update_order_status(order_id, target_status)
                updated += 1
            except BusinessLogicException as e:
                modeladmin.message_user(request, f"Order {order_id}: {e.message}", messages.ERROR)
        if updated:
            modeladmin.message_user(request, f"{updated} order(s) set to {target_status}.")

    action.__name__ = f"mark_{target_status.lower()}"
    action.short_description = f"Mark selected orders as {target_status}"
    return action


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Orders are created through the API. Status changes go through
    OrderService (admin actions) so cancellations restore stock.
    """
    list_display = (
        'id',
        'customer_name',
        'status',
        'total_amount',
        'order_date',
    )
    list_filter = ('status', 'order_date')
    search_fields = ('id', 'customer_name')

    inlines = [OrderItemInline]
    actions = [_status_action(status) for status in Order.Status.values]

    # Show ALL fields in read-only mode
    readonly_fields = (
        'id',
        'customer_name',
        'order_date',
        'total_amount',
        'status',
        'created_at',
        'updated_at',
    )

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

from django.db import models
from django.utils import timezone
from apps.utils.models import TimestampedModel


class Order(TimestampedModel):
    class Status(models.TextChoices):
        PENDING = "Pending", "Pending"
        PROCESSING = "Processing", "Processing"
        SHIPPED = "Shipped", "Shipped"
        COMPLETED = "Completed", "Completed"
        CANCELLED = "Cancelled", "Cancelled"

    TERMINAL_STATUSES = (Status.COMPLETED, Status.CANCELLED)

    customer_name = models.CharField(max_length=255)
    order_date = models.DateTimeField(default=timezone.now, db_index=True)

    # Fixed at creation: sum of the items' total_price
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)

    class Meta:
        db_table = "orders"
        ordering = ["-order_date"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=0),
                name='order_total_non_negative'
            ),
        ]

    def __str__(self):
        return f"#{self.pk} {self.customer_name} [{self.status}]"

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

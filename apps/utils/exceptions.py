from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
import logging

logger = logging.getLogger(__name__)


class BusinessLogicException(Exception):
    """
    Raised when a domain rule is violated (e.g. 'Stock not available').
    Subclasses pin the HTTP status and error code the API reports.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "business_error"

    def __init__(self, message, code=None):
        self.message = message
        self.code = code or self.default_code
        super().__init__(message)


class OrderValidationError(BusinessLogicException):
    default_code = "validation_error"


class NotFoundError(BusinessLogicException):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "not_found"


class ProductNotFound(NotFoundError):
    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"Product with ID {product_id} not found.")


class OrderNotFound(NotFoundError):
    def __init__(self, order_id):
        self.order_id = order_id
        super().__init__(f"Order with ID {order_id} not found.")


class DuplicateSKU(BusinessLogicException):
    status_code = status.HTTP_409_CONFLICT
    default_code = "conflict"

    def __init__(self, sku):
        self.sku = sku
        super().__init__(f"SKU '{sku}' already exists.")


class ProductInUse(BusinessLogicException):
    default_code = "product_in_use"

    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(
            "Cannot delete product. It is part of existing orders. "
            "Consider archiving it instead."
        )


class InsufficientStock(BusinessLogicException):
    default_code = "insufficient_stock"

    def __init__(self, product, requested, available=None):
        self.product_id = product.pk
        self.requested = requested
        self.available = product.stock if available is None else available
        super().__init__(
            f"Not enough stock for product {product.name} (ID: {product.pk}). "
            f"Available: {self.available}, Requested: {requested}"
        )


class InvalidTransition(BusinessLogicException):
    default_code = "invalid_transition"

    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(
            f"Order is already {current} and its status cannot be changed to {requested}."
        )


def _first_error_message(detail):
    """
    Flattens DRF's nested error detail down to one readable line.
    """
    if isinstance(detail, dict):
        for field, value in detail.items():
            message = _first_error_message(value)
            if field in ("non_field_errors", "detail"):
                return message
            return f"{field}: {message}"
    if isinstance(detail, list) and detail:
        return _first_error_message(detail[0])
    return str(detail)


def custom_exception_handler(exc, context):
    # Handle domain errors first so they keep their own status codes
    if isinstance(exc, BusinessLogicException):
        return Response(
            {"error": exc.message, "code": exc.code},
            status=exc.status_code
        )

    # Call REST framework's default exception handler
    response = exception_handler(exc, context)

    # If response is None, it's an unhandled server error (500)
    if response is None:
        logger.error(f"Unhandled Exception: {exc}", exc_info=True)
        return Response(
            {"error": "Internal Server Error", "code": "server_error"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    code = {400: "validation_error", 404: "not_found"}.get(
        response.status_code, getattr(exc, "default_code", "error")
    )
    response.data = {
        "error": _first_error_message(response.data),
        "code": code,
        "details": response.data,
    }
    return response

# apps/analytics/urls.py
from django.urls import path

from .views import SalesSummaryView, SalesByProductView, TopSellingProductsView

urlpatterns = [
    path("sales/summary/", SalesSummaryView.as_view(), name="reports-sales-summary"),
    path("sales/by-product/", SalesByProductView.as_view(), name="reports-sales-by-product"),
    path("top-selling-products/", TopSellingProductsView.as_view(), name="reports-top-selling"),
]

from django.urls import path

from apps.payments.views import PaymentStatusView, QrisDetailView

from . import views

urlpatterns = [
    path('orders/', views.OrderListCreateView.as_view(), name='order-list'),
    path('orders/<int:pk>/', views.OrderDetailView.as_view(), name='order-detail'),
    path('orders/<int:pk>/cancel/', views.OrderCancelView.as_view(), name='order-cancel'),
    path('orders/<int:pk>/finish/', views.OrderFinishView.as_view(), name='order-finish'),
    path('orders/<int:pk>/payment-status/', PaymentStatusView.as_view(), name='order-payment-status'),
    path('orders/<int:pk>/qris/', QrisDetailView.as_view(), name='order-qris-detail'),
    path('admin/orders/<int:pk>/status/', views.AdminOrderStatusView.as_view(), name='admin-order-status'),
    path('admin/pos/transactions/', views.PosTransactionListCreateView.as_view(), name='admin-pos-transaction'),
    path('admin/pos/transactions/<int:pk>/', views.PosTransactionDetailView.as_view(), name='admin-pos-transaction-detail'),
]

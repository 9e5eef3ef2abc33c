from django.urls import path

from . import views

urlpatterns = [
    path('qris/', views.QrisChargeView.as_view(), name='payment-qris'),
    path('webhook/', views.MidtransWebhookView.as_view(), name='payment-webhook'),
    path('midtrans/notification/', views.MidtransWebhookView.as_view(), name='midtrans-notification'),
]

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

router = DefaultRouter()
router.register(r'products', views.ProductViewSet, basename='product')
router.register(r'cart', views.CartItemViewSet, basename='cart-item')

urlpatterns = [
    path('', include(router.urls)),
]

from django.contrib import admin

from .models import CartItem, Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'category', 'price_30ml', 'price_50ml', 'stock_30ml', 'stock_50ml')
    search_fields = ('name', 'category')


@admin.register(CartItem)
class CartItemAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'product', 'size', 'quantity', 'created_at')

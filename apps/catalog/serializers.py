from rest_framework import serializers

from .models import CartItem, Product


class ProductSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = [
            'id', 'name', 'description', 'category',
            'price_30ml', 'price_50ml', 'stock_30ml', 'stock_50ml',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']


class CartItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    unit_price = serializers.SerializerMethodField()

    class Meta:
        model = CartItem
        fields = ['id', 'product', 'product_name', 'size', 'quantity', 'unit_price', 'created_at']
        read_only_fields = ['created_at']

    def get_unit_price(self, obj) -> str:
        return str(obj.product.price_for(obj.size))

    def validate_quantity(self, value):
        if value < 1:
            raise serializers.ValidationError('Quantity must be at least 1.')
        return value

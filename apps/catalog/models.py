from django.conf import settings
from django.db import models


class Size(models.TextChoices):
    ML_30 = '30ml', '30ml'
    ML_50 = '50ml', '50ml'


class Product(models.Model):
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=64, blank=True)
    price_30ml = models.DecimalField(max_digits=12, decimal_places=2)
    price_50ml = models.DecimalField(max_digits=12, decimal_places=2)
    stock_30ml = models.PositiveIntegerField(default=0)
    stock_50ml = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self):
        return self.name

    @staticmethod
    def stock_field(size: str) -> str:
        if size not in Size.values:
            raise ValueError(f"Unknown size: {size!r}")
        return f"stock_{size}"

    @staticmethod
    def price_field(size: str) -> str:
        if size not in Size.values:
            raise ValueError(f"Unknown size: {size!r}")
        return f"price_{size}"

    def stock_for(self, size: str) -> int:
        return getattr(self, self.stock_field(size))

    def price_for(self, size: str):
        return getattr(self, self.price_field(size))


class CartItem(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='cart_items')
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name='cart_items')
    size = models.CharField(max_length=4, choices=Size.choices)
    quantity = models.PositiveIntegerField(default=1)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        unique_together = ('user', 'product', 'size')

    def __str__(self):
        return f"{self.product} ({self.size}) x{self.quantity}"

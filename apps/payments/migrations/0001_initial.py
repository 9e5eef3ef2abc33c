import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('orders', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='PaymentTransaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('midtrans_order_id', models.CharField(db_index=True, max_length=64)),
                ('midtrans_transaction_id', models.CharField(blank=True, max_length=128, null=True)),
                ('payment_type', models.CharField(default='qris', max_length=32)),
                ('gross_amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('qr_url', models.URLField(blank=True, max_length=500, null=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('settlement', 'Settlement'), ('expire', 'Expired'), ('cancel', 'Cancelled'), ('deny', 'Denied')], db_index=True, default='pending', max_length=16)),
                ('expired_at', models.DateTimeField(blank=True, null=True)),
                ('raw_notification', models.JSONField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('order', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='payment_transaction', to='orders.order')),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='WebhookEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('gateway_order_id', models.CharField(blank=True, db_index=True, max_length=128)),
                ('transaction_status', models.CharField(blank=True, max_length=32)),
                ('payload', models.JSONField(blank=True, default=dict)),
                ('outcome', models.CharField(choices=[('processed', 'Processed'), ('duplicate', 'Duplicate / already final'), ('ignored', 'Ignored'), ('order_not_found', 'Order not found'), ('malformed', 'Malformed'), ('anomaly', 'Anomaly'), ('rejected_signature', 'Rejected signature'), ('error', 'Error')], max_length=24)),
                ('detail', models.TextField(blank=True)),
                ('received_at', models.DateTimeField(auto_now_add=True)),
                ('order', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='webhook_events', to='orders.order')),
            ],
            options={
                'ordering': ['-received_at'],
            },
        ),
    ]

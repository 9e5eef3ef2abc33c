import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'fivescent.settings')

app = Celery('fivescent')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks(['apps.notifications', 'apps.payments'])

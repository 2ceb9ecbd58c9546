"""
Celery application for background rendition cleanup and sweeps.
"""
import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'floresya.settings')

app = Celery('floresya')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()

"""
Celery Configuration for Spacefinder
"""

import os
from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'spacefinder.settings')

app = Celery('spacefinder')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()

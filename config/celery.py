import os
from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('homevisit')

# all CELERY_* keys come from Django settings
app.config_from_object('django.conf:settings', namespace='CELERY')

# picks up homevisit/tasks.py
app.autodiscover_tasks()

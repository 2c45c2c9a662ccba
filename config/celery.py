import os
from pathlib import Path

from celery import Celery

from config.env import load_dotenv_if_exists

load_dotenv_if_exists(Path(__file__).resolve().parent.parent)
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("camara")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()

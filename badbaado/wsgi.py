"""
WSGI config for the Badbaado backend.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'badbaado.settings')

application = get_wsgi_application()

"""WSGI entry point for the hotel booking backend."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'hotel_booking_backend.settings')

application = get_wsgi_application()

"""ASGI entry point for the hotel booking backend."""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'hotel_booking_backend.settings')

application = get_asgi_application()

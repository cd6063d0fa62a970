from django.urls import path
from rest_framework.routers import DefaultRouter
from hotel_booking.views import (
    BookingViewSet,
    RoomTypeViewSet,
    room_type_availability,
    search_available_rooms,
)

router = DefaultRouter()
router.register(r'rooms', RoomTypeViewSet, basename='roomtype')
router.register(r'bookings', BookingViewSet, basename='booking')

urlpatterns = [
    path('search/', search_available_rooms, name='search'),
    path('search/room/<str:pk>/', room_type_availability, name='search-room'),
    path('book/', BookingViewSet.as_view({'post': 'create'}), name='book'),
] + router.urls

from datetime import timedelta
from decimal import Decimal

from hotel_booking.dates import today
from hotel_booking.models import Booking, RoomType


def days_from_today(days):
    return today() + timedelta(days=days)


def make_room_type(**overrides):
    data = {
        'name': 'Standard Room',
        'description': 'Comfortable standard room',
        'max_occupancy': 2,
        'price_per_night': Decimal('3000'),
        'total_quantity': 1,
    }
    data.update(overrides)
    return RoomType.objects.create(**data)


def make_booking(room_type, check_in, check_out, status=Booking.Status.CONFIRMED, **overrides):
    """Store a booking directly, bypassing the availability check."""
    nights = (check_out - check_in).days
    data = {
        'room_type': room_type,
        'room_type_name': room_type.name,
        'customer_name': 'Alice Johnson',
        'customer_phone': '+1111111111',
        'check_in_date': check_in,
        'check_out_date': check_out,
        'number_of_guests': 1,
        'price_per_night': room_type.price_per_night,
        'total_price': room_type.price_per_night * nights,
        'status': status,
    }
    data.update(overrides)
    return Booking.objects.create(**data)

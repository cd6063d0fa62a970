from decimal import Decimal

from django.core.management.base import BaseCommand
from hotel_booking.models import RoomType


class Command(BaseCommand):
    help = 'Populate database with sample room types'

    def handle(self, *args, **options):
        room_types_data = [
            {
                'name': 'Standard Room',
                'description': 'Comfortable standard room with city view',
                'max_occupancy': 2,
                'price_per_night': Decimal('3000'),
                'total_quantity': 10,
            },
            {
                'name': 'Deluxe Room',
                'description': 'Spacious deluxe room with ocean view',
                'max_occupancy': 3,
                'price_per_night': Decimal('4500'),
                'total_quantity': 6,
            },
            {
                'name': 'Family Suite',
                'description': 'Large family suite with kitchenette',
                'max_occupancy': 4,
                'price_per_night': Decimal('6000'),
                'total_quantity': 4,
            },
            {
                'name': 'Presidential Suite',
                'description': 'Luxury presidential suite with all amenities',
                'max_occupancy': 6,
                'price_per_night': Decimal('12000'),
                'total_quantity': 1,
            },
        ]

        for room_type_data in room_types_data:
            room_type, created = RoomType.objects.get_or_create(
                name=room_type_data['name'],
                defaults=room_type_data
            )

            if created:
                self.stdout.write(f'Created room type: {room_type.name} ({room_type.total_quantity} rooms)')
            else:
                self.stdout.write(f'Room type {room_type.name} already exists')

        self.stdout.write(
            self.style.SUCCESS('Successfully populated database with sample room types')
        )

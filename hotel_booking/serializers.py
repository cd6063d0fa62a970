from rest_framework import serializers

from .models import Booking, RoomType
from .services import BookingRequest, BookingUpdate, RoomTypeFields


class RoomTypeSerializer(serializers.ModelSerializer):
    maxOccupancy = serializers.IntegerField(source='max_occupancy')
    pricePerNight = serializers.DecimalField(source='price_per_night', max_digits=10, decimal_places=2)
    totalQuantity = serializers.IntegerField(source='total_quantity')
    isActive = serializers.BooleanField(source='is_active')
    createdAt = serializers.DateTimeField(source='created_at')
    updatedAt = serializers.DateTimeField(source='updated_at')

    class Meta:
        model = RoomType
        fields = [
            'id', 'name', 'description', 'maxOccupancy', 'pricePerNight',
            'totalQuantity', 'isActive', 'createdAt', 'updatedAt',
        ]


class BookingSerializer(serializers.ModelSerializer):
    roomTypeId = serializers.IntegerField(source='room_type_id')
    roomTypeName = serializers.CharField(source='room_type_name')
    customerName = serializers.CharField(source='customer_name')
    customerPhone = serializers.CharField(source='customer_phone')
    checkInDate = serializers.DateField(source='check_in_date')
    checkOutDate = serializers.DateField(source='check_out_date')
    numberOfGuests = serializers.IntegerField(source='number_of_guests')
    pricePerNight = serializers.DecimalField(source='price_per_night', max_digits=10, decimal_places=2)
    totalPrice = serializers.DecimalField(source='total_price', max_digits=12, decimal_places=2)
    bookingDate = serializers.DateTimeField(source='booking_date')
    createdAt = serializers.DateTimeField(source='created_at')
    updatedAt = serializers.DateTimeField(source='updated_at')

    class Meta:
        model = Booking
        fields = [
            'id', 'roomTypeId', 'roomTypeName', 'customerName', 'customerPhone',
            'checkInDate', 'checkOutDate', 'numberOfGuests', 'pricePerNight',
            'totalPrice', 'bookingDate', 'status', 'createdAt', 'updatedAt',
        ]

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data['nights'] = (instance.check_out_date - instance.check_in_date).days
        return data


class AvailabilitySerializer(serializers.Serializer):
    """Search entry: the room type plus its free units for the stay."""

    def to_representation(self, instance):
        data = RoomTypeSerializer(instance.room_type).data
        data['availableCount'] = instance.available_count
        data['bookedCount'] = instance.booked_count
        data['isAvailable'] = instance.is_available
        data['totalPrice'] = instance.total_price
        return data


# Input serializers only check JSON shapes; the services own the business rules.

class BookingCreateSerializer(serializers.Serializer):
    roomTypeId = serializers.CharField(source='room_type_id', required=False, allow_blank=True, allow_null=True)
    customerName = serializers.CharField(source='customer_name', required=False, allow_blank=True, trim_whitespace=False)
    customerPhone = serializers.CharField(source='customer_phone', required=False, allow_blank=True, trim_whitespace=False)
    checkInDate = serializers.CharField(source='check_in', required=False, allow_blank=True, allow_null=True)
    checkOutDate = serializers.CharField(source='check_out', required=False, allow_blank=True, allow_null=True)
    numberOfGuests = serializers.IntegerField(source='number_of_guests', required=False, allow_null=True)

    def to_request(self):
        return BookingRequest(**self.validated_data)


class BookingUpdateSerializer(serializers.Serializer):
    customerName = serializers.CharField(source='customer_name', required=False, allow_blank=True, trim_whitespace=False)
    customerPhone = serializers.CharField(source='customer_phone', required=False, allow_blank=True, trim_whitespace=False)
    numberOfGuests = serializers.IntegerField(source='number_of_guests', required=False)
    status = serializers.CharField(required=False, allow_blank=True)

    def to_update(self):
        return BookingUpdate(**self.validated_data)


class RoomTypeInputSerializer(serializers.Serializer):
    name = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    description = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)
    maxOccupancy = serializers.IntegerField(source='max_occupancy', required=False, allow_null=True)
    pricePerNight = serializers.DecimalField(
        source='price_per_night', max_digits=10, decimal_places=2, required=False, allow_null=True
    )
    totalQuantity = serializers.IntegerField(source='total_quantity', required=False, allow_null=True)
    isActive = serializers.BooleanField(source='is_active', required=False, allow_null=True)

    def to_fields(self):
        return RoomTypeFields(**self.validated_data)

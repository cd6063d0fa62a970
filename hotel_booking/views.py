import logging

from django.http import JsonResponse
from rest_framework import viewsets, status
from rest_framework.decorators import action, api_view
from rest_framework.response import Response

from .exceptions import (
    AlreadyCancelledError,
    AvailabilityError,
    BookingError,
    CapacityError,
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
)
from .repositories import DjangoHotelRepository
from .serializers import (
    AvailabilitySerializer,
    BookingCreateSerializer,
    BookingSerializer,
    BookingUpdateSerializer,
    RoomTypeInputSerializer,
    RoomTypeSerializer,
)
from .services import AvailabilityEngine, BookingTransaction, RoomTypeService

logger = logging.getLogger(__name__)

ERROR_STATUS = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (CapacityError, status.HTTP_400_BAD_REQUEST),
    (AlreadyCancelledError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (AvailabilityError, status.HTTP_409_CONFLICT),
    (ConflictError, status.HTTP_409_CONFLICT),
    (DependencyError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def welcome(request):
    return JsonResponse({"message": "Welcome to the Hotel Booking API"})

def health_check(request):
    return JsonResponse({"status": "ok"})

def error_response(exc):
    """Map a core error onto the JSON envelope and an HTTP status."""
    code = next(
        (code for error_class, code in ERROR_STATUS if isinstance(exc, error_class)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    body = {'success': False, 'message': exc.message}
    if isinstance(exc, AvailabilityError):
        body['availability'] = {
            'totalRooms': exc.total_rooms,
            'bookedRooms': exc.booked_rooms,
            'availableRooms': exc.available_rooms,
        }
    if isinstance(exc, DependencyError):
        logger.error("Persistence failure: %s", exc.message, exc_info=True)
    return Response(body, status=code)

def invalid_input(serializer):
    return Response({
        'success': False,
        'message': 'Validation error',
        'errors': serializer.errors,
    }, status=status.HTTP_400_BAD_REQUEST)


class RoomTypeViewSet(viewsets.ViewSet):
    """Administrative CRUD for room types"""

    def get_service(self):
        return RoomTypeService(DjangoHotelRepository())

    def list(self, request):
        try:
            room_types = self.get_service().list_room_types()
        except BookingError as exc:
            return error_response(exc)
        return Response({
            'success': True,
            'count': len(room_types),
            'data': RoomTypeSerializer(room_types, many=True).data,
        })

    def retrieve(self, request, pk=None):
        try:
            room_type = self.get_service().get_room_type(pk)
        except BookingError as exc:
            return error_response(exc)
        return Response({'success': True, 'data': RoomTypeSerializer(room_type).data})

    def create(self, request):
        serializer = RoomTypeInputSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer)
        try:
            room_type = self.get_service().create_room_type(serializer.to_fields())
        except BookingError as exc:
            return error_response(exc)

        logger.info("Room type %s created: %s", room_type.pk, room_type.name)
        return Response({
            'success': True,
            'message': 'Room type created successfully',
            'data': RoomTypeSerializer(room_type).data,
        }, status=status.HTTP_201_CREATED)

    def update(self, request, pk=None):
        serializer = RoomTypeInputSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer)
        try:
            room_type = self.get_service().update_room_type(pk, serializer.to_fields())
        except BookingError as exc:
            return error_response(exc)
        return Response({
            'success': True,
            'message': 'Room type updated successfully',
            'data': RoomTypeSerializer(room_type).data,
        })

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    def destroy(self, request, pk=None):
        try:
            room_type = self.get_service().delete_room_type(pk)
        except BookingError as exc:
            return error_response(exc)

        logger.info("Room type %s deleted", room_type.pk)
        return Response({
            'success': True,
            'message': 'Room type deleted successfully',
            'data': RoomTypeSerializer(room_type).data,
        })


@api_view(['GET'])
def search_available_rooms(request):
    """Search room types by date range and guest count"""
    engine = AvailabilityEngine(DjangoHotelRepository())
    try:
        result = engine.search_available(
            request.query_params.get('checkIn'),
            request.query_params.get('checkOut'),
            request.query_params.get('guests'),
        )
    except BookingError as exc:
        return error_response(exc)

    rooms = AvailabilitySerializer(result.rooms, many=True).data
    if rooms:
        message = f"Found {len(rooms)} available room type(s)"
    else:
        message = f"No room types found that can accommodate {result.guests} guests"
    return Response({
        'success': True,
        'message': message,
        'count': len(rooms),
        'data': rooms,
        'searchCriteria': {
            'checkIn': result.check_in.isoformat(),
            'checkOut': result.check_out.isoformat(),
            'guests': result.guests,
            'nights': result.nights,
        },
    })


@api_view(['GET'])
def room_type_availability(request, pk):
    """Availability of one room type for a date range"""
    engine = AvailabilityEngine(DjangoHotelRepository())
    try:
        availability = engine.room_type_availability(
            pk,
            request.query_params.get('checkIn'),
            request.query_params.get('checkOut'),
        )
    except BookingError as exc:
        return error_response(exc)

    room_type = availability.room_type
    return Response({
        'success': True,
        'data': {
            'roomType': RoomTypeSerializer(room_type).data,
            'availability': {
                'totalQuantity': room_type.total_quantity,
                'bookedCount': availability.booked_count,
                'availableCount': availability.available_count,
                'isAvailable': availability.is_available,
                'totalPrice': availability.total_price,
            },
            'searchCriteria': {
                'checkIn': availability.check_in.isoformat(),
                'checkOut': availability.check_out.isoformat(),
                'nights': availability.nights,
            },
        },
    })


class BookingViewSet(viewsets.ViewSet):
    """Booking creation, lookup and status management"""

    def get_service(self):
        return BookingTransaction(DjangoHotelRepository())

    def create(self, request):
        serializer = BookingCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer)
        try:
            booking = self.get_service().create_booking(serializer.to_request())
        except AvailabilityError as exc:
            logger.warning(
                "Booking rejected, room type %s sold out (%s of %s booked)",
                request.data.get('roomTypeId'), exc.booked_rooms, exc.total_rooms,
            )
            return error_response(exc)
        except BookingError as exc:
            return error_response(exc)

        logger.info("Booking %s created for room type %s", booking.pk, booking.room_type_id)
        data = BookingSerializer(booking).data
        return Response({
            'success': True,
            'message': 'Booking created successfully',
            'data': {
                'booking': data,
                'summary': {
                    'bookingId': booking.pk,
                    'customerName': booking.customer_name,
                    'roomType': booking.room_type_name,
                    'checkIn': data['checkInDate'],
                    'checkOut': data['checkOutDate'],
                    'nights': data['nights'],
                    'guests': booking.number_of_guests,
                    'pricePerNight': data['pricePerNight'],
                    'totalPrice': data['totalPrice'],
                    'status': booking.status,
                },
            },
        }, status=status.HTTP_201_CREATED)

    def list(self, request):
        """All bookings, newest first, with status filter and pagination"""
        try:
            page = self.get_service().get_all_bookings(
                status=request.query_params.get('status'),
                page=request.query_params.get('page', 1),
                limit=request.query_params.get('limit', 10),
            )
        except BookingError as exc:
            return error_response(exc)
        return Response({
            'success': True,
            'count': len(page.bookings),
            'total': page.total,
            'page': page.page,
            'totalPages': page.total_pages,
            'data': BookingSerializer(page.bookings, many=True).data,
        })

    def retrieve(self, request, pk=None):
        try:
            booking = self.get_service().get_booking_by_id(pk)
        except BookingError as exc:
            return error_response(exc)
        return Response({'success': True, 'data': BookingSerializer(booking).data})

    @action(detail=False, methods=['get'], url_path=r'customer/(?P<phone>[^/]+)')
    def by_phone(self, request, phone=None):
        """Bookings made with a customer phone number"""
        try:
            bookings = self.get_service().get_bookings_by_phone(phone)
        except BookingError as exc:
            return error_response(exc)
        return Response({
            'success': True,
            'count': len(bookings),
            'data': BookingSerializer(bookings, many=True).data,
            'customerPhone': phone,
        })

    def update(self, request, pk=None):
        serializer = BookingUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return invalid_input(serializer)
        try:
            booking = self.get_service().update_booking(pk, serializer.to_update())
        except BookingError as exc:
            return error_response(exc)
        return Response({
            'success': True,
            'message': 'Booking updated successfully',
            'data': BookingSerializer(booking).data,
        })

    def partial_update(self, request, pk=None):
        return self.update(request, pk)

    @action(detail=True, methods=['put', 'post'])
    def cancel(self, request, pk=None):
        try:
            booking = self.get_service().cancel_booking(pk)
        except BookingError as exc:
            return error_response(exc)

        logger.info("Booking %s cancelled", booking.pk)
        return Response({
            'success': True,
            'message': 'Booking cancelled successfully',
            'data': BookingSerializer(booking).data,
        })

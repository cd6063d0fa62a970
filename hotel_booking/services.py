"""Availability and booking workflows.

Every service receives its persistence collaborator explicitly; none of them
reaches for a global database handle, logs, or retries. Failures surface as
the typed errors in :mod:`hotel_booking.exceptions`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from django.utils import timezone

from . import dates
from .exceptions import (
    AlreadyCancelledError,
    AvailabilityError,
    CapacityError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from .models import Booking, RoomType
from .repositories import HotelRepository
from .validation import (
    CUSTOMER_NAME_MAX_LENGTH,
    ROOM_TYPE_NAME_MAX_LENGTH,
    clean_phone,
    clean_text,
    is_missing,
    parse_identifier,
    parse_positive_int,
    parse_price,
)

DEFAULT_PAGE_SIZE = 10


@dataclass
class BookingRequest:
    room_type_id: object = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    check_in: object = None
    check_out: object = None
    number_of_guests: object = None


@dataclass
class BookingUpdate:
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    number_of_guests: object = None
    status: Optional[str] = None

    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (self.customer_name, self.customer_phone, self.number_of_guests, self.status)
        )


@dataclass
class RoomTypeFields:
    name: Optional[str] = None
    description: Optional[str] = None
    max_occupancy: object = None
    price_per_night: object = None
    total_quantity: object = None
    is_active: Optional[bool] = None


@dataclass
class RoomTypeAvailability:
    room_type: RoomType
    check_in: date
    check_out: date
    booked_count: int
    available_count: int
    nights: int
    total_price: Decimal

    @property
    def is_available(self) -> bool:
        return self.available_count > 0


@dataclass
class SearchResult:
    check_in: date
    check_out: date
    guests: int
    nights: int
    rooms: list[RoomTypeAvailability] = field(default_factory=list)


@dataclass
class BookingPage:
    bookings: list[Booking]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)


class AvailabilityEngine:
    """Answers how many units of a room type are free for a stay."""

    def __init__(self, repository: HotelRepository):
        self.repository = repository

    def count_overlapping(self, room_type_id: int, check_in: date, check_out: date) -> int:
        return self.repository.count_confirmed_overlapping(room_type_id, check_in, check_out)

    def available_units(
        self, room_type: RoomType, check_in: date, check_out: date, booked: Optional[int] = None
    ) -> int:
        """Free units for the stay; ``booked`` skips the count when already known."""
        if booked is None:
            booked = self.count_overlapping(room_type.pk, check_in, check_out)
        return max(0, room_type.total_quantity - booked)

    def _availability(self, room_type, check_in, check_out) -> RoomTypeAvailability:
        booked = self.count_overlapping(room_type.pk, check_in, check_out)
        return RoomTypeAvailability(
            room_type=room_type,
            check_in=check_in,
            check_out=check_out,
            booked_count=booked,
            available_count=self.available_units(room_type, check_in, check_out, booked=booked),
            nights=dates.count_nights(check_in, check_out),
            total_price=dates.calculate_total_price(room_type.price_per_night, check_in, check_out),
        )

    def search_available(self, check_in, check_out, guests) -> SearchResult:
        """Room types able to host ``guests``, cheapest first.

        Room types without free units stay in the result with
        ``is_available`` false; inactive room types are not filtered out.
        """
        if is_missing(check_in) or is_missing(check_out) or is_missing(guests):
            raise ValidationError(
                "Missing required parameters: checkIn, checkOut, and guests are required"
            )
        check_in = dates.parse_calendar_date(check_in, "check-in date")
        check_out = dates.parse_calendar_date(check_out, "check-out date")
        guests = parse_positive_int(guests, "Invalid guest count. Must be a positive number")
        check_in, check_out = dates.validate_stay(check_in, check_out)

        candidates = self.repository.find_room_types_by_min_occupancy(guests)
        rooms = [self._availability(room_type, check_in, check_out) for room_type in candidates]
        # sorted() is stable, so equal prices keep selection order
        rooms = sorted(rooms, key=lambda entry: entry.room_type.price_per_night)

        return SearchResult(
            check_in=check_in,
            check_out=check_out,
            guests=guests,
            nights=dates.count_nights(check_in, check_out),
            rooms=rooms,
        )

    def room_type_availability(self, room_type_id, check_in, check_out) -> RoomTypeAvailability:
        room_type_id = parse_identifier(room_type_id, "room type ID")
        if is_missing(check_in) or is_missing(check_out):
            raise ValidationError("Missing required parameters: checkIn and checkOut are required")
        check_in, check_out = dates.validate_stay(check_in, check_out, allow_past=True)

        room_type = self.repository.find_room_type_by_id(room_type_id)
        if room_type is None:
            raise NotFoundError("Room type not found")
        return self._availability(room_type, check_in, check_out)


class BookingTransaction:
    """Creates bookings against live inventory and manages their status."""

    def __init__(self, repository: HotelRepository, availability: Optional[AvailabilityEngine] = None):
        self.repository = repository
        self.availability = availability or AvailabilityEngine(repository)

    def create_booking(self, request: BookingRequest) -> Booking:
        required = (
            request.room_type_id,
            request.customer_name,
            request.customer_phone,
            request.check_in,
            request.check_out,
            request.number_of_guests,
        )
        if any(is_missing(value) for value in required):
            raise ValidationError(
                "All fields are required: roomTypeId, customerName, customerPhone, "
                "checkInDate, checkOutDate, numberOfGuests"
            )
        customer_name = clean_text(
            request.customer_name, "Customer name is required", CUSTOMER_NAME_MAX_LENGTH, "Customer name"
        )
        customer_phone = clean_phone(request.customer_phone)
        room_type_id = parse_identifier(request.room_type_id, "room type ID")
        check_in, check_out = dates.validate_stay(request.check_in, request.check_out)
        guests = parse_positive_int(request.number_of_guests, "Number of guests must be at least 1")

        with self.repository.locked_room_type(room_type_id) as room_type:
            if room_type is None:
                raise NotFoundError("Room type not found")
            if guests > room_type.max_occupancy:
                raise CapacityError(
                    f"Number of guests ({guests}) exceeds room capacity ({room_type.max_occupancy})"
                )

            booked = self.availability.count_overlapping(room_type.pk, check_in, check_out)
            if not self.availability.available_units(room_type, check_in, check_out, booked=booked):
                raise AvailabilityError(total_rooms=room_type.total_quantity, booked_rooms=booked)

            booking = self.repository.insert_booking(
                room_type_id=room_type.pk,
                room_type_name=room_type.name,
                customer_name=customer_name,
                customer_phone=customer_phone,
                check_in_date=check_in,
                check_out_date=check_out,
                number_of_guests=guests,
                price_per_night=room_type.price_per_night,
                total_price=dates.calculate_total_price(room_type.price_per_night, check_in, check_out),
                booking_date=timezone.now(),
                status=Booking.Status.CONFIRMED,
            )

            # Row locks are a no-op on some backends; recount so an oversold
            # insert rolls back with the surrounding transaction.
            booked_after = self.availability.count_overlapping(room_type.pk, check_in, check_out)
            if booked_after > room_type.total_quantity:
                raise AvailabilityError(
                    total_rooms=room_type.total_quantity, booked_rooms=booked_after - 1
                )
        return booking

    def get_booking_by_id(self, booking_id) -> Booking:
        booking_id = parse_identifier(booking_id, "booking ID")
        booking = self.repository.find_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundError("Booking not found")
        return booking

    def get_bookings_by_phone(self, phone) -> list[Booking]:
        if is_missing(phone):
            raise ValidationError("Phone number is required")
        return self.repository.find_bookings_by_phone(phone)

    def get_all_bookings(self, status=None, page=1, limit=DEFAULT_PAGE_SIZE) -> BookingPage:
        page = parse_positive_int(page, "page must be a positive integer")
        limit = parse_positive_int(limit, "limit must be a positive integer")
        if status not in Booking.Status.values:
            status = None

        bookings, total = self.repository.list_bookings(status, (page - 1) * limit, limit)
        return BookingPage(bookings=bookings, total=total, page=page, limit=limit)

    def update_booking(self, booking_id, update: BookingUpdate) -> Booking:
        booking_id = parse_identifier(booking_id, "booking ID")
        if update.status is not None and update.status not in Booking.Status.values:
            raise ValidationError('Status must be either "confirmed" or "cancelled"')

        fields = {}
        if update.number_of_guests is not None:
            fields["number_of_guests"] = parse_positive_int(
                update.number_of_guests, "Number of guests must be at least 1"
            )
        if update.customer_name is not None:
            fields["customer_name"] = clean_text(
                update.customer_name, "Customer name cannot be empty", CUSTOMER_NAME_MAX_LENGTH, "Customer name"
            )
        if update.customer_phone is not None:
            fields["customer_phone"] = clean_phone(update.customer_phone)

        with self.repository.locked_booking(booking_id) as booking:
            if booking is None:
                raise NotFoundError("Booking not found")

            if booking.is_cancelled:
                if update.status == Booking.Status.CANCELLED:
                    raise AlreadyCancelledError()
                if not update.is_empty():
                    raise ValidationError("Cancelled bookings cannot be modified")
                return booking

            guests = fields.get("number_of_guests")
            if guests is not None and guests != booking.number_of_guests:
                room_type = self.repository.find_room_type_by_id(booking.room_type_id)
                if room_type is not None and guests > room_type.max_occupancy:
                    raise CapacityError(
                        f"Number of guests ({guests}) exceeds room capacity ({room_type.max_occupancy})"
                    )

            if update.status is not None:
                fields["status"] = update.status
            if fields:
                booking = self.repository.update_booking_fields(booking, **fields)
        return booking

    def cancel_booking(self, booking_id) -> Booking:
        booking_id = parse_identifier(booking_id, "booking ID")
        with self.repository.locked_booking(booking_id) as booking:
            if booking is None:
                raise NotFoundError("Booking not found")
            if booking.is_cancelled:
                raise AlreadyCancelledError()
            return self.repository.update_booking_fields(booking, status=Booking.Status.CANCELLED)


class RoomTypeService:
    """Administrative CRUD over room types."""

    def __init__(self, repository: HotelRepository):
        self.repository = repository

    def list_room_types(self) -> list[RoomType]:
        return self.repository.list_room_types()

    def get_room_type(self, room_type_id) -> RoomType:
        room_type_id = parse_identifier(room_type_id, "room type ID")
        room_type = self.repository.find_room_type_by_id(room_type_id)
        if room_type is None:
            raise NotFoundError("Room type not found")
        return room_type

    def create_room_type(self, fields: RoomTypeFields) -> RoomType:
        required = (
            fields.name,
            fields.description,
            fields.max_occupancy,
            fields.price_per_night,
            fields.total_quantity,
        )
        if any(is_missing(value) for value in required):
            raise ValidationError(
                "All fields are required: name, description, maxOccupancy, "
                "pricePerNight, totalQuantity"
            )
        values = self._clean(fields)
        if self.repository.find_room_type_by_name(values["name"]) is not None:
            raise ConflictError()
        return self.repository.insert_room_type(**values)

    def update_room_type(self, room_type_id, fields: RoomTypeFields) -> RoomType:
        room_type_id = parse_identifier(room_type_id, "room type ID")
        values = self._clean(fields)
        if "name" in values and self.repository.find_room_type_by_name(
            values["name"], exclude_id=room_type_id
        ):
            raise ConflictError()

        room_type = self.repository.find_room_type_by_id(room_type_id)
        if room_type is None:
            raise NotFoundError("Room type not found")
        if not values:
            return room_type
        return self.repository.update_room_type_fields(room_type, **values)

    def delete_room_type(self, room_type_id) -> RoomType:
        room_type = self.get_room_type(room_type_id)
        deleted_id = room_type.pk
        self.repository.delete_room_type(room_type)
        # Django clears the pk on delete; callers still report which record went away
        room_type.pk = deleted_id
        return room_type

    @staticmethod
    def _clean(fields: RoomTypeFields) -> dict:
        """Validate and normalise whichever fields were supplied."""
        values = {}
        if fields.name is not None:
            values["name"] = clean_text(
                fields.name, "Room type name is required", ROOM_TYPE_NAME_MAX_LENGTH, "Room type name"
            )
        if fields.description is not None:
            values["description"] = clean_text(fields.description, "Room description is required")
        if fields.max_occupancy is not None:
            values["max_occupancy"] = parse_positive_int(
                fields.max_occupancy, "maxOccupancy must be at least 1"
            )
        if fields.price_per_night is not None:
            values["price_per_night"] = parse_price(fields.price_per_night)
        if fields.total_quantity is not None:
            values["total_quantity"] = parse_positive_int(
                fields.total_quantity, "totalQuantity must be at least 1"
            )
        if fields.is_active is not None:
            values["is_active"] = bool(fields.is_active)
        return values

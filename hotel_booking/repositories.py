"""Persistence collaborators for the booking core.

The services in :mod:`hotel_booking.services` never touch the ORM directly;
they are handed a repository at construction time. ``HotelRepository`` is the
contract, ``DjangoHotelRepository`` the implementation backed by the Django
ORM.
"""

from __future__ import annotations

import functools
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date
from typing import Iterator, Optional

from django.core.exceptions import ValidationError as ModelValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Q

from .exceptions import ConflictError, DependencyError, ValidationError
from .models import Booking, RoomType


class HotelRepository(ABC):
    """Storage operations the availability engine and booking transaction rely on."""

    @abstractmethod
    def find_room_type_by_id(self, room_type_id: int) -> Optional[RoomType]:
        ...

    @abstractmethod
    def find_room_type_by_name(self, name: str, exclude_id: Optional[int] = None) -> Optional[RoomType]:
        ...

    @abstractmethod
    def find_room_types_by_min_occupancy(self, guests: int) -> list[RoomType]:
        ...

    @abstractmethod
    def list_room_types(self) -> list[RoomType]:
        ...

    @abstractmethod
    def insert_room_type(self, **fields) -> RoomType:
        ...

    @abstractmethod
    def update_room_type_fields(self, room_type: RoomType, **fields) -> RoomType:
        ...

    @abstractmethod
    def delete_room_type(self, room_type: RoomType) -> None:
        ...

    @abstractmethod
    def count_confirmed_overlapping(self, room_type_id: int, check_in: date, check_out: date) -> int:
        ...

    @abstractmethod
    def insert_booking(self, **fields) -> Booking:
        ...

    @abstractmethod
    def find_booking_by_id(self, booking_id: int) -> Optional[Booking]:
        ...

    @abstractmethod
    def find_bookings_by_phone(self, phone: str) -> list[Booking]:
        ...

    @abstractmethod
    def update_booking_fields(self, booking: Booking, **fields) -> Booking:
        ...

    @abstractmethod
    def list_bookings(self, status: Optional[str], offset: int, limit: int) -> tuple[list[Booking], int]:
        """Return one page of bookings plus the total matching ``status``."""

    @abstractmethod
    def locked_room_type(self, room_type_id: int):
        """Context manager yielding the room type (or None) under an exclusive lock.

        Everything done inside the block commits or rolls back as one unit.
        """

    @abstractmethod
    def locked_booking(self, booking_id: int):
        """Context manager yielding the booking (or None) under an exclusive lock."""


def _translate_db_errors(func):
    """Surface ORM failures as the core's typed errors."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ModelValidationError as exc:
            raise ValidationError("; ".join(exc.messages)) from exc
        except DatabaseError as exc:
            raise DependencyError(f"Database error: {exc}") from exc

    return wrapper


def overlapping_stays(check_in: date, check_out: date) -> Q:
    """Query form of :func:`hotel_booking.dates.ranges_overlap`.

    Matches stored stays touching [check_in, check_out], boundaries included.
    """
    return Q(check_in_date__lte=check_out) & Q(check_out_date__gte=check_in)


class DjangoHotelRepository(HotelRepository):
    """Repository backed by the default Django database connection."""

    @_translate_db_errors
    def find_room_type_by_id(self, room_type_id):
        return RoomType.objects.filter(pk=room_type_id).first()

    @_translate_db_errors
    def find_room_type_by_name(self, name, exclude_id=None):
        qs = RoomType.objects.filter(name=name)
        if exclude_id is not None:
            qs = qs.exclude(pk=exclude_id)
        return qs.first()

    @_translate_db_errors
    def find_room_types_by_min_occupancy(self, guests):
        return list(RoomType.objects.filter(max_occupancy__gte=guests).order_by("pk"))

    @_translate_db_errors
    def list_room_types(self):
        return list(RoomType.objects.order_by("name"))

    def insert_room_type(self, **fields):
        return self._save_room_type(RoomType(**fields))

    def update_room_type_fields(self, room_type, **fields):
        for attr, value in fields.items():
            setattr(room_type, attr, value)
        return self._save_room_type(room_type)

    @_translate_db_errors
    def _save_room_type(self, room_type):
        # Name uniqueness is reported as a conflict below
        room_type.full_clean(validate_unique=False)
        try:
            with transaction.atomic():
                room_type.save()
        except IntegrityError as exc:
            raise ConflictError() from exc
        return room_type

    @_translate_db_errors
    def delete_room_type(self, room_type):
        room_type.delete()

    @_translate_db_errors
    def count_confirmed_overlapping(self, room_type_id, check_in, check_out):
        return Booking.objects.filter(
            overlapping_stays(check_in, check_out),
            room_type_id=room_type_id,
            status=Booking.Status.CONFIRMED,
        ).count()

    @_translate_db_errors
    def insert_booking(self, **fields):
        booking = Booking(**fields)
        booking.full_clean(exclude=["room_type"])
        booking.save()
        return booking

    @_translate_db_errors
    def find_booking_by_id(self, booking_id):
        return Booking.objects.filter(pk=booking_id).first()

    @_translate_db_errors
    def find_bookings_by_phone(self, phone):
        return list(Booking.objects.filter(customer_phone=phone).order_by("-booking_date"))

    @_translate_db_errors
    def update_booking_fields(self, booking, **fields):
        for attr, value in fields.items():
            setattr(booking, attr, value)
        # Only the changed columns are validated; stored values are left as they are
        unchanged = [f.name for f in Booking._meta.fields if f.name not in fields]
        booking.full_clean(exclude=unchanged)
        booking.save()
        return booking

    @_translate_db_errors
    def list_bookings(self, status, offset, limit):
        qs = Booking.objects.all()
        if status:
            qs = qs.filter(status=status)
        total = qs.count()
        return list(qs.order_by("-booking_date")[offset:offset + limit]), total

    @contextmanager
    def locked_room_type(self, room_type_id) -> Iterator[Optional[RoomType]]:
        try:
            with transaction.atomic():
                # Lock the room type row to serialize bookings against it
                yield RoomType.objects.select_for_update().filter(pk=room_type_id).first()
        except DatabaseError as exc:
            raise DependencyError(f"Database error: {exc}") from exc

    @contextmanager
    def locked_booking(self, booking_id) -> Iterator[Optional[Booking]]:
        try:
            with transaction.atomic():
                yield Booking.objects.select_for_update().filter(pk=booking_id).first()
        except DatabaseError as exc:
            raise DependencyError(f"Database error: {exc}") from exc

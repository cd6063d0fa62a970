from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.core.exceptions import ValidationError as ModelValidationError
from django.db import OperationalError
from django.test import TestCase
from django.utils import timezone

from hotel_booking.exceptions import (
    AlreadyCancelledError,
    AvailabilityError,
    CapacityError,
    DependencyError,
    NotFoundError,
    ValidationError,
)
from hotel_booking.models import Booking, RoomType
from hotel_booking.repositories import DjangoHotelRepository
from hotel_booking.services import AvailabilityEngine, BookingRequest, BookingTransaction, BookingUpdate

from .helpers import days_from_today, make_booking, make_room_type


class StaleCountRepository(DjangoHotelRepository):
    """Reports no overlapping bookings on the first count, as a racing writer would see."""

    def __init__(self):
        self.stale_reads = 1

    def count_confirmed_overlapping(self, room_type_id, check_in, check_out):
        if self.stale_reads:
            self.stale_reads -= 1
            return 0
        return super().count_confirmed_overlapping(room_type_id, check_in, check_out)


def booking_request(room_type, stay_start, stay_end, **overrides):
    data = {
        'room_type_id': room_type.pk,
        'customer_name': 'Alice Johnson',
        'customer_phone': '+1111111111',
        'check_in': stay_start.isoformat(),
        'check_out': stay_end.isoformat(),
        'number_of_guests': 2,
    }
    data.update(overrides)
    return BookingRequest(**data)


class CreateBookingTestCase(TestCase):
    """Booking creation against live inventory"""

    def setUp(self):
        self.service = BookingTransaction(DjangoHotelRepository())
        self.room_type = make_room_type(max_occupancy=2, total_quantity=1, price_per_night=Decimal('3000'))
        self.check_in = days_from_today(10)
        self.check_out = days_from_today(12)

    def test_booking_snapshots_room_type_and_price(self):
        booking = self.service.create_booking(
            booking_request(self.room_type, self.check_in, self.check_out, customer_name='  Alice Johnson  ')
        )

        booking.refresh_from_db()
        self.assertEqual(booking.status, Booking.Status.CONFIRMED)
        self.assertEqual(booking.room_type_id, self.room_type.pk)
        self.assertEqual(booking.room_type_name, 'Standard Room')
        self.assertEqual(booking.customer_name, 'Alice Johnson')
        self.assertEqual(booking.price_per_night, Decimal('3000'))
        self.assertEqual(booking.total_price, Decimal('6000'))
        self.assertEqual(booking.check_in_date, self.check_in)
        self.assertIsNotNone(booking.booking_date)

    def test_validation_errors_in_order(self):
        scenarios = [
            ('All fields are required', {'customer_phone': ''}),
            ('All fields are required', {'number_of_guests': None}),
            ('valid phone number', {'customer_phone': '12345'}),
            ('Invalid room type ID', {'room_type_id': 'abc', 'check_in': 'garbage'}),
            ('Invalid check-in date', {'check_in': '2025/03/01', 'number_of_guests': 0}),
            ('Check-out date must be after check-in date', {'check_out': self.check_in.isoformat()}),
            ('Check-in date cannot be in the past', {'check_in': days_from_today(-1).isoformat()}),
            ('Number of guests must be at least 1', {'number_of_guests': 0}),
        ]
        for message, overrides in scenarios:
            with self.subTest(message=message):
                request = booking_request(self.room_type, self.check_in, self.check_out, **overrides)
                with self.assertRaisesMessage(ValidationError, message):
                    self.service.create_booking(request)
        self.assertEqual(Booking.objects.count(), 0)

    def test_unknown_room_type(self):
        request = booking_request(self.room_type, self.check_in, self.check_out, room_type_id=self.room_type.pk + 50)
        with self.assertRaises(NotFoundError):
            self.service.create_booking(request)

    def test_capacity_checked_before_availability(self):
        make_booking(self.room_type, self.check_in, self.check_out)
        request = booking_request(self.room_type, self.check_in, self.check_out, number_of_guests=3)

        with self.assertRaisesMessage(CapacityError, 'Number of guests (3) exceeds room capacity (2)'):
            self.service.create_booking(request)

    def test_sold_out_window_reports_inventory(self):
        make_booking(self.room_type, days_from_today(8), self.check_in)

        with self.assertRaises(AvailabilityError) as ctx:
            self.service.create_booking(booking_request(self.room_type, self.check_in, self.check_out))

        self.assertEqual(ctx.exception.total_rooms, 1)
        self.assertEqual(ctx.exception.booked_rooms, 1)
        self.assertEqual(ctx.exception.available_rooms, 0)
        self.assertEqual(Booking.objects.count(), 1)

    def test_book_conflict_cancel_rebook(self):
        first = self.service.create_booking(
            booking_request(self.room_type, days_from_today(30), days_from_today(32))
        )
        overlapping = booking_request(
            self.room_type, days_from_today(31), days_from_today(33), customer_name='Bob Smith',
            customer_phone='+2222222222',
        )
        with self.assertRaises(AvailabilityError):
            self.service.create_booking(overlapping)

        self.service.cancel_booking(first.pk)
        second = self.service.create_booking(overlapping)

        self.assertEqual(second.status, Booking.Status.CONFIRMED)
        self.assertEqual(Booking.objects.filter(status=Booking.Status.CONFIRMED).count(), 1)

    def test_over_long_contact_details_rejected(self):
        scenarios = [
            ('Customer phone must be at most 50 characters', {'customer_phone': '1' * 60}),
            ('Customer name must be at most 150 characters', {'customer_name': 'A' * 151}),
        ]
        for message, overrides in scenarios:
            with self.subTest(message=message):
                request = booking_request(self.room_type, self.check_in, self.check_out, **overrides)
                with self.assertRaisesMessage(ValidationError, message):
                    self.service.create_booking(request)
        self.assertFalse(Booking.objects.exists())

    def test_longest_accepted_contact_details_can_be_cancelled(self):
        booking = self.service.create_booking(booking_request(
            self.room_type, self.check_in, self.check_out,
            customer_name='A' * 150, customer_phone='1' * 50,
        ))

        cancelled = self.service.cancel_booking(booking.pk)

        cancelled.refresh_from_db()
        self.assertEqual(cancelled.status, Booking.Status.CANCELLED)
        self.assertEqual(len(cancelled.customer_phone), 50)

    def test_oversold_insert_is_rolled_back(self):
        """A stale pre-check must not leave two confirmed bookings behind"""
        existing = make_booking(self.room_type, self.check_in, self.check_out)
        service = BookingTransaction(StaleCountRepository())

        with self.assertRaises(AvailabilityError) as ctx:
            service.create_booking(booking_request(self.room_type, self.check_in, self.check_out))

        self.assertEqual(ctx.exception.booked_rooms, 1)
        self.assertEqual(list(Booking.objects.values_list('pk', flat=True)), [existing.pk])

    def test_database_failure_surfaces_as_dependency_error(self):
        with mock.patch.object(RoomType.objects, 'select_for_update', side_effect=OperationalError('disk I/O error')):
            with self.assertRaises(DependencyError):
                self.service.create_booking(booking_request(self.room_type, self.check_in, self.check_out))


class CancelBookingTestCase(TestCase):

    def setUp(self):
        self.service = BookingTransaction(DjangoHotelRepository())
        self.room_type = make_room_type()
        self.booking = make_booking(self.room_type, days_from_today(10), days_from_today(12))

    def test_second_cancellation_fails(self):
        self.service.cancel_booking(self.booking.pk)

        with self.assertRaises(AlreadyCancelledError):
            self.service.cancel_booking(self.booking.pk)

        self.booking.refresh_from_db()
        self.assertEqual(self.booking.status, Booking.Status.CANCELLED)

    def test_past_stays_can_be_cancelled(self):
        past = make_booking(self.room_type, days_from_today(-10), days_from_today(-8))
        self.assertEqual(self.service.cancel_booking(str(past.pk)).status, Booking.Status.CANCELLED)

    def test_cancellation_ignores_stored_values_it_does_not_change(self):
        stored = make_booking(
            self.room_type, days_from_today(20), days_from_today(22), customer_phone='ext. 42'
        )

        cancelled = self.service.cancel_booking(stored.pk)

        self.assertEqual(cancelled.status, Booking.Status.CANCELLED)
        stored.refresh_from_db()
        self.assertEqual(stored.status, Booking.Status.CANCELLED)

    def test_unknown_and_malformed_ids(self):
        with self.assertRaises(NotFoundError):
            self.service.cancel_booking(self.booking.pk + 100)
        with self.assertRaises(ValidationError):
            self.service.cancel_booking('not-an-id')


class UpdateBookingTestCase(TestCase):

    def setUp(self):
        self.service = BookingTransaction(DjangoHotelRepository())
        self.room_type = make_room_type(max_occupancy=2, total_quantity=1)
        self.booking = make_booking(self.room_type, days_from_today(10), days_from_today(12))

    def test_contact_details_and_guests_change(self):
        booking = self.service.update_booking(
            self.booking.pk,
            BookingUpdate(customer_name=' Carol White ', customer_phone='(555) 123-4567', number_of_guests=2),
        )

        booking.refresh_from_db()
        self.assertEqual(booking.customer_name, 'Carol White')
        self.assertEqual(booking.customer_phone, '(555) 123-4567')
        self.assertEqual(booking.number_of_guests, 2)

    def test_guest_count_checked_against_current_capacity(self):
        self.room_type.max_occupancy = 1
        self.room_type.save()

        with self.assertRaises(CapacityError):
            self.service.update_booking(self.booking.pk, BookingUpdate(number_of_guests=2))

    def test_guest_change_skips_overlap_check(self):
        make_booking(self.room_type, days_from_today(10), days_from_today(12))

        booking = self.service.update_booking(self.booking.pk, BookingUpdate(number_of_guests=2))

        self.assertEqual(booking.number_of_guests, 2)

    def test_invalid_values_rejected(self):
        scenarios = [
            BookingUpdate(status='pending'),
            BookingUpdate(number_of_guests=0),
            BookingUpdate(customer_phone='abc'),
            BookingUpdate(customer_name='   '),
        ]
        for update in scenarios:
            with self.subTest(update=update):
                with self.assertRaises(ValidationError):
                    self.service.update_booking(self.booking.pk, update)

    def test_status_update_cancels_once(self):
        booking = self.service.update_booking(self.booking.pk, BookingUpdate(status='cancelled'))
        self.assertEqual(booking.status, Booking.Status.CANCELLED)

        with self.assertRaises(AlreadyCancelledError):
            self.service.update_booking(self.booking.pk, BookingUpdate(status='cancelled'))
        with self.assertRaises(ValidationError):
            self.service.update_booking(self.booking.pk, BookingUpdate(status='confirmed'))

    def test_deleted_room_type_skips_capacity_check(self):
        self.room_type.delete()

        booking = self.service.update_booking(self.booking.pk, BookingUpdate(number_of_guests=5))

        self.assertEqual(booking.number_of_guests, 5)
        self.assertEqual(booking.room_type_name, 'Standard Room')


class BookingQueriesTestCase(TestCase):

    def setUp(self):
        self.service = BookingTransaction(DjangoHotelRepository(), AvailabilityEngine(DjangoHotelRepository()))
        self.room_type = make_room_type(total_quantity=20)

    def _book(self, offset, **overrides):
        return make_booking(self.room_type, days_from_today(offset), days_from_today(offset + 1), **overrides)

    def test_bookings_by_phone_newest_first(self):
        older = self._book(1, booking_date=timezone.now() - timedelta(days=3))
        newer = self._book(2, booking_date=timezone.now() - timedelta(days=1))
        self._book(3, customer_phone='+2222222222')

        bookings = self.service.get_bookings_by_phone('+1111111111')

        self.assertEqual([booking.pk for booking in bookings], [newer.pk, older.pk])

    def test_paginated_listing_with_status_filter(self):
        for offset in range(12):
            self._book(offset)
        self._book(20, status=Booking.Status.CANCELLED)

        page = self.service.get_all_bookings(status='confirmed', page='2', limit='5')
        self.assertEqual(page.total, 12)
        self.assertEqual(page.total_pages, 3)
        self.assertEqual(len(page.bookings), 5)

        unfiltered = self.service.get_all_bookings(status='bogus')
        self.assertEqual(unfiltered.total, 13)
        self.assertEqual(len(unfiltered.bookings), 10)

        with self.assertRaises(ValidationError):
            self.service.get_all_bookings(page=0)

    def test_get_booking_by_id(self):
        booking = self._book(1)
        self.assertEqual(self.service.get_booking_by_id(str(booking.pk)), booking)
        with self.assertRaises(NotFoundError):
            self.service.get_booking_by_id(booking.pk + 1)


class BookingModelGuardTestCase(TestCase):

    def test_inverted_stay_is_never_persisted(self):
        room_type = make_room_type()
        with self.assertRaises(ModelValidationError):
            make_booking(room_type, days_from_today(5), days_from_today(5))
        self.assertEqual(Booking.objects.count(), 0)

    def test_repository_insert_runs_field_validation(self):
        room_type = make_room_type()
        with self.assertRaisesMessage(ValidationError, 'Please enter a valid phone number'):
            DjangoHotelRepository().insert_booking(
                room_type_id=room_type.pk,
                room_type_name=room_type.name,
                customer_name='Alice Johnson',
                customer_phone='ext. 42',
                check_in_date=days_from_today(5),
                check_out_date=days_from_today(6),
                number_of_guests=1,
                price_per_night=room_type.price_per_night,
                total_price=room_type.price_per_night,
            )
        self.assertEqual(Booking.objects.count(), 0)

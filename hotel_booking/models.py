from django.db import models
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, RegexValidator
from django.utils import timezone

from .validation import (
    CUSTOMER_NAME_MAX_LENGTH,
    PHONE_MAX_LENGTH,
    PHONE_PATTERN,
    ROOM_TYPE_NAME_MAX_LENGTH,
)


class RoomType(models.Model):
    name = models.CharField(max_length=ROOM_TYPE_NAME_MAX_LENGTH, unique=True)
    description = models.TextField()
    max_occupancy = models.PositiveIntegerField(validators=[MinValueValidator(1)], db_index=True)
    price_per_night = models.DecimalField(
        max_digits=10, decimal_places=2, validators=[MinValueValidator(0)], db_index=True
    )
    total_quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class Booking(models.Model):
    class Status(models.TextChoices):
        CONFIRMED = "confirmed"
        CANCELLED = "cancelled"

    # Bookings outlive their room type: no FK constraint, name kept as a snapshot.
    room_type = models.ForeignKey(
        RoomType,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name="+",
    )
    room_type_name = models.CharField(max_length=ROOM_TYPE_NAME_MAX_LENGTH)
    customer_name = models.CharField(max_length=CUSTOMER_NAME_MAX_LENGTH)
    customer_phone = models.CharField(
        max_length=PHONE_MAX_LENGTH,
        db_index=True,
        validators=[RegexValidator(PHONE_PATTERN, "Please enter a valid phone number")],
    )
    check_in_date = models.DateField()
    check_out_date = models.DateField()
    number_of_guests = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    price_per_night = models.DecimalField(max_digits=10, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    booking_date = models.DateTimeField(default=timezone.now)
    status = models.CharField(
        max_length=10, choices=Status.choices, default=Status.CONFIRMED, db_index=True
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-booking_date"]
        indexes = [
            models.Index(fields=["check_in_date", "check_out_date"], name="booking_stay_idx"),
        ]

    def __str__(self):
        return f"{self.customer_name} - {self.room_type_name} ({self.check_in_date} to {self.check_out_date})"

    @property
    def is_cancelled(self):
        return self.status == self.Status.CANCELLED

    def clean(self):
        if self.check_in_date and self.check_out_date and self.check_out_date <= self.check_in_date:
            raise ValidationError("Check-out date must be after check-in date")

    def save(self, *args, **kwargs):
        self.clean()
        super().save(*args, **kwargs)

from django.contrib import admin

from .models import Booking, RoomType


@admin.register(RoomType)
class RoomTypeAdmin(admin.ModelAdmin):
    list_display = ("name", "max_occupancy", "price_per_night", "total_quantity", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name",)


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "room_type_name",
        "customer_name",
        "customer_phone",
        "check_in_date",
        "check_out_date",
        "status",
    )
    list_filter = ("status",)
    search_fields = ("customer_name", "customer_phone")
    readonly_fields = ("room_type", "check_in_date", "check_out_date", "booking_date")

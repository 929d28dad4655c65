from django.contrib import admin

from checkins.models import Checkin, Venue


class CheckinInline(admin.TabularInline):
    model = Checkin
    extra = 0
    can_delete = False
    fields = ["user", "total_score", "passed", "verified_at"]
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Venue)
class VenueAdmin(admin.ModelAdmin):
    list_display = ["name", "status", "latitude", "longitude", "created_at"]
    list_filter = ["status"]
    search_fields = ["name"]
    readonly_fields = ["code_secret", "created_at", "updated_at"]
    inlines = [CheckinInline]


@admin.register(Checkin)
class CheckinAdmin(admin.ModelAdmin):
    list_display = ["venue", "user", "total_score", "passed", "verified_at"]
    list_filter = ["passed", "venue"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

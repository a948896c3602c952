"""Admin configuration for the reports app."""
from django.contrib import admin

from reports.models import ReportingSettings


@admin.register(ReportingSettings)
class ReportingSettingsAdmin(admin.ModelAdmin):
    list_display = ("offsite_threshold_km", "updated_by", "updated_at")
    readonly_fields = ("id", "updated_by", "created_at", "updated_at")

    def has_add_permission(self, request):
        return not ReportingSettings.objects.exists()

    def save_model(self, request, obj, form, change):
        obj.updated_by = request.user
        super().save_model(request, obj, form, change)

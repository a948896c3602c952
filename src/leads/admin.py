"""Django admin configuration for the leads app."""
from django.contrib import admin

from leads.models import LeadUpdate, SalesLead


class LeadUpdateInline(admin.TabularInline):
    model = LeadUpdate
    extra = 0
    can_delete = False
    fields = ("timestamp", "author", "status", "text", "generated_savings", "attachment_name")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(SalesLead)
class SalesLeadAdmin(admin.ModelAdmin):
    list_display = (
        "title",
        "district",
        "branch",
        "officer",
        "status",
        "expected_savings",
        "deadline",
        "created_at",
    )
    list_filter = ("status", "district", "branch")
    search_fields = ("title", "description", "officer__name")
    list_select_related = ("district", "branch", "officer")
    # Workflow fields go through leads.services only.
    readonly_fields = ("id", "status", "branch", "officer", "version", "created_by", "created_at", "updated_at")
    inlines = [LeadUpdateInline]
    date_hierarchy = "created_at"
    list_per_page = 50

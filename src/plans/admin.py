"""Django admin configuration for the plans app."""
from django.contrib import admin

from plans.models import BranchPlan, PlanEntry


class PlanEntryInline(admin.TabularInline):
    model = PlanEntry
    extra = 0
    fields = ("date", "entry_type", "amount", "status", "submitted_by", "reviewed_by", "reviewed_at")
    readonly_fields = ("status", "reviewed_by", "reviewed_at")


@admin.register(BranchPlan)
class BranchPlanAdmin(admin.ModelAdmin):
    list_display = ("branch", "quarter", "savings_target", "created_at")
    list_filter = ("quarter", "branch__district")
    search_fields = ("branch__name", "quarter")
    list_select_related = ("branch",)
    inlines = [PlanEntryInline]


@admin.register(PlanEntry)
class PlanEntryAdmin(admin.ModelAdmin):
    list_display = ("plan", "date", "entry_type", "amount", "status", "submitted_by", "reviewed_by")
    list_filter = ("status", "entry_type")
    search_fields = ("description", "submitted_by", "plan__branch__name")
    list_select_related = ("plan", "plan__branch")
    readonly_fields = ("status", "reviewed_by", "reviewed_at", "rejection_reason")

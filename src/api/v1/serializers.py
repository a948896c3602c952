"""Serializers for the sales lead workflow API v1."""
from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from branches.models import AuditLog, Branch, District, Officer
from leads.models import LeadUpdate, SalesLead
from plans.models import BranchPlan, PlanEntry

User = get_user_model()


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

class MeSerializer(serializers.ModelSerializer):
    """Profile of the authenticated user."""

    full_name = serializers.CharField(source='get_full_name', read_only=True)
    role_display = serializers.CharField(source='get_role_display', read_only=True)
    officer = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'email', 'first_name', 'last_name', 'full_name',
            'role', 'role_display', 'district', 'branch', 'officer',
        ]
        read_only_fields = fields

    def get_officer(self, obj):
        officer = getattr(obj, 'officer_profile', None)
        return str(officer.pk) if officer else None


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Extends JWT token response to include user profile data."""

    def validate(self, attrs):
        data = super().validate(attrs)
        data['user'] = MeSerializer(self.user).data
        return data


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

class DistrictSerializer(serializers.ModelSerializer):
    class Meta:
        model = District
        fields = ['id', 'name', 'code', 'is_active', 'created_at']
        read_only_fields = ['id', 'created_at']


class BranchSerializer(serializers.ModelSerializer):
    district_name = serializers.CharField(source='district.name', read_only=True)

    class Meta:
        model = Branch
        fields = ['id', 'name', 'code', 'district', 'district_name', 'address', 'is_active', 'created_at']
        read_only_fields = ['id', 'created_at']


class OfficerSerializer(serializers.ModelSerializer):
    branch_name = serializers.CharField(source='branch.name', read_only=True)

    class Meta:
        model = Officer
        fields = ['id', 'name', 'branch', 'branch_name', 'user', 'is_active']
        read_only_fields = ['id']


# ---------------------------------------------------------------------------
# Leads
# ---------------------------------------------------------------------------

class LeadUpdateSerializer(serializers.ModelSerializer):
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = LeadUpdate
        fields = [
            'id', 'text', 'timestamp', 'author', 'status', 'status_display',
            'generated_savings', 'attachment_name', 'attachment_ref',
            'reporting_latitude', 'reporting_longitude',
        ]
        read_only_fields = fields


class SalesLeadSerializer(serializers.ModelSerializer):
    """Read serializer for leads, including the caller's available actions."""

    status_display = serializers.CharField(source='get_status_display', read_only=True)
    district_name = serializers.CharField(source='district.name', read_only=True)
    branch_name = serializers.CharField(source='branch.name', read_only=True, default=None)
    officer_name = serializers.CharField(source='officer.name', read_only=True, default=None)
    allowed_transitions = serializers.SerializerMethodField()

    class Meta:
        model = SalesLead
        fields = [
            'id', 'title', 'description', 'status', 'status_display',
            'district', 'district_name', 'branch', 'branch_name',
            'officer', 'officer_name', 'latitude', 'longitude',
            'expected_savings', 'deadline', 'version',
            'allowed_transitions', 'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_allowed_transitions(self, obj):
        actor = self.context.get('actor')
        if actor is None:
            return []
        from leads.workflow import allowed_transitions
        return [str(s) for s in allowed_transitions(obj, actor)]


class SalesLeadCreateSerializer(serializers.Serializer):
    """Input for registering a new lead."""

    district = serializers.PrimaryKeyRelatedField(queryset=District.objects.filter(is_active=True))
    title = serializers.CharField(max_length=255)
    description = serializers.CharField()
    latitude = serializers.FloatField()
    longitude = serializers.FloatField()
    expected_savings = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal('0'))
    deadline = serializers.DateField()


class LocationSerializer(serializers.Serializer):
    lat = serializers.FloatField()
    lng = serializers.FloatField()


class TransitionSerializer(serializers.Serializer):
    """Input for ``POST /leads/{id}/transition/``.

    ``location`` is passed through untouched; a malformed value only
    produces a warning.
    """

    status = serializers.ChoiceField(choices=SalesLead.Status.choices, required=False, allow_null=True)
    note = serializers.CharField(required=False, allow_blank=True, default='')
    branch = serializers.PrimaryKeyRelatedField(queryset=Branch.objects.all(), required=False, allow_null=True)
    officer = serializers.PrimaryKeyRelatedField(queryset=Officer.objects.all(), required=False, allow_null=True)
    generated_savings = serializers.DecimalField(
        max_digits=14, decimal_places=2, required=False, allow_null=True,
    )
    attachment = serializers.FileField(required=False, allow_null=True)
    location = serializers.JSONField(required=False, allow_null=True)
    version = serializers.IntegerField(required=False, allow_null=True, min_value=0)


class LeadMetricsSerializer(serializers.Serializer):
    expected_savings = serializers.DecimalField(max_digits=14, decimal_places=2)
    generated_savings = serializers.DecimalField(max_digits=14, decimal_places=2)
    achievement = serializers.DecimalField(max_digits=5, decimal_places=2)


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------

class PlanEntrySerializer(serializers.ModelSerializer):
    entry_type_display = serializers.CharField(source='get_entry_type_display', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = PlanEntry
        fields = [
            'id', 'plan', 'date', 'entry_type', 'entry_type_display', 'amount',
            'description', 'status', 'status_display', 'submitted_by',
            'reviewed_by', 'reviewed_at', 'rejection_reason', 'created_at',
        ]
        read_only_fields = fields


class PlanEntryCreateSerializer(serializers.Serializer):
    entry_type = serializers.ChoiceField(choices=PlanEntry.EntryType.choices)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    description = serializers.CharField(allow_blank=True)
    date = serializers.DateField(required=False, allow_null=True)


class PlanEntryReviewSerializer(serializers.Serializer):
    decision = serializers.ChoiceField(
        choices=[PlanEntry.Status.APPROVED, PlanEntry.Status.REJECTED],
    )
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class BranchPlanSerializer(serializers.ModelSerializer):
    branch_name = serializers.CharField(source='branch.name', read_only=True)
    metrics = serializers.SerializerMethodField()

    class Meta:
        model = BranchPlan
        fields = ['id', 'branch', 'branch_name', 'quarter', 'savings_target', 'metrics', 'created_at']
        read_only_fields = fields

    def get_metrics(self, obj):
        from reports.services import plan_metrics
        return {k: str(v) for k, v in plan_metrics(obj).items()}


class BranchPlanCreateSerializer(serializers.Serializer):
    branch = serializers.PrimaryKeyRelatedField(queryset=Branch.objects.filter(is_active=True))
    quarter = serializers.CharField(max_length=7)
    savings_target = serializers.DecimalField(max_digits=14, decimal_places=2)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

class OffsiteReportSerializer(serializers.Serializer):
    lead_id = serializers.CharField(source='lead.id')
    lead_title = serializers.CharField(source='lead.title')
    officer_name = serializers.CharField(source='lead.officer_name')
    update_id = serializers.CharField(source='update.id')
    author = serializers.CharField(source='update.author')
    text = serializers.CharField(source='update.text')
    status = serializers.CharField(source='update.status')
    timestamp = serializers.DateTimeField(source='update.timestamp')
    lead_location = serializers.SerializerMethodField()
    reporting_location = serializers.SerializerMethodField()
    distance_km = serializers.SerializerMethodField()

    def get_lead_location(self, obj):
        return {'lat': obj.lead.location[0], 'lng': obj.lead.location[1]}

    def get_reporting_location(self, obj):
        lat, lng = obj.update.reporting_location
        return {'lat': lat, 'lng': lng}

    def get_distance_km(self, obj):
        return round(obj.distance_km, 3)


class ReportingSettingsSerializer(serializers.Serializer):
    offsite_threshold_km = serializers.FloatField(min_value=0.001)


class AuditLogSerializer(serializers.ModelSerializer):
    """Read-only serializer for AuditLog model."""

    class Meta:
        model = AuditLog
        fields = [
            'id', 'actor', 'actor_name', 'district', 'branch', 'action',
            'entity_type', 'entity_id', 'before_json', 'after_json',
            'ip_address', 'created_at',
        ]
        read_only_fields = fields

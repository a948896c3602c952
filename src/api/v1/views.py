"""ViewSets and API views for the sales lead workflow API v1."""
import logging

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.negotiation import DefaultContentNegotiation
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.services import resolve_actor
from api.v1.permissions import (
    HasWorkflowRole,
    IsAdmin,
    IsAdminOrReadOnly,
    IsBranchStaff,
    IsDistrictManagerOrAdmin,
)
from api.v1.serializers import (
    AuditLogSerializer,
    BranchPlanCreateSerializer,
    BranchPlanSerializer,
    BranchSerializer,
    DistrictSerializer,
    LeadMetricsSerializer,
    LeadUpdateSerializer,
    OfficerSerializer,
    OffsiteReportSerializer,
    PlanEntryCreateSerializer,
    PlanEntryReviewSerializer,
    PlanEntrySerializer,
    ReportingSettingsSerializer,
    SalesLeadCreateSerializer,
    SalesLeadSerializer,
    TransitionSerializer,
)
from branches.models import AuditLog, Branch, District, Officer
from branches.services import visible_branch_ids, visible_district_ids
from core.exceptions import WorkflowError
from leads.models import SalesLead
from plans.models import BranchPlan, PlanEntry

logger = logging.getLogger("salesflow")


def _client_ip(request):
    return request.META.get('REMOTE_ADDR')


def _error_response(exc):
    return Response(exc.as_dict(), status=exc.http_status)


def _display_name(user):
    return user.get_full_name() or user.get_role_display()


def _scope(qs, user, district_field, branch_field):
    district_ids = visible_district_ids(user)
    branch_ids = visible_branch_ids(user)
    if district_ids is not None:
        qs = qs.filter(**{f'{district_field}__in': district_ids})
    if branch_ids is not None:
        qs = qs.filter(**{f'{branch_field}__in': branch_ids})
    return qs


class CSVExportNegotiation(DefaultContentNegotiation):
    """Let ``?format=csv`` through to the view, which answers with a CSV file."""

    def select_renderer(self, request, renderers, format_suffix=None):
        if request.query_params.get('format') == 'csv':
            return (renderers[0], renderers[0].media_type)
        return super().select_renderer(request, renderers, format_suffix)


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

class DistrictViewSet(viewsets.ModelViewSet):
    serializer_class = DistrictSerializer
    queryset = District.objects.all()
    permission_classes = [IsAdminOrReadOnly]
    search_fields = ['name', 'code']

    def get_queryset(self):
        qs = super().get_queryset()
        district_ids = visible_district_ids(self.request.user)
        if district_ids is not None:
            qs = qs.filter(pk__in=district_ids)
        return qs


class BranchViewSet(viewsets.ModelViewSet):
    serializer_class = BranchSerializer
    queryset = Branch.objects.select_related('district')
    permission_classes = [IsAdminOrReadOnly]
    filterset_fields = ['district', 'is_active']
    search_fields = ['name', 'code']

    def get_queryset(self):
        return _scope(super().get_queryset(), self.request.user, 'district_id', 'pk')


class OfficerViewSet(viewsets.ModelViewSet):
    serializer_class = OfficerSerializer
    queryset = Officer.objects.select_related('branch')
    permission_classes = [IsAdminOrReadOnly]
    filterset_fields = ['branch', 'is_active']
    search_fields = ['name']

    def get_queryset(self):
        return _scope(super().get_queryset(), self.request.user, 'branch__district_id', 'branch_id')


# ---------------------------------------------------------------------------
# Leads
# ---------------------------------------------------------------------------

class SalesLeadViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Leads and their workflow actions.

    - list / retrieve: leads the caller may read
    - create: registers a NEW lead (district managers, admins)
    - transition: status change, assignment or progress report
    - updates: chronological history
    - metrics: generated savings and achievement
    """

    serializer_class = SalesLeadSerializer
    queryset = SalesLead.objects.select_related('district', 'branch', 'officer')
    filterset_fields = ['status', 'district', 'branch', 'officer']
    search_fields = ['title', 'description']
    ordering_fields = ['created_at', 'deadline', 'expected_savings', 'status']

    def get_permissions(self):
        if self.action == 'create':
            return [IsDistrictManagerOrAdmin()]
        if self.action == 'transition':
            return [HasWorkflowRole()]
        return [IsAuthenticated()]

    def get_queryset(self):
        return _scope(super().get_queryset(), self.request.user, 'district_id', 'branch_id')

    def get_serializer_context(self):
        context = super().get_serializer_context()
        if self.request.user.is_authenticated:
            context['actor'] = resolve_actor(self.request.user)
        return context

    def create(self, request, *args, **kwargs):
        serializer = SalesLeadCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        district = data['district']
        district_ids = visible_district_ids(request.user)
        if district_ids is not None and district.pk not in district_ids:
            return Response(
                {'detail': 'You cannot register leads in this district.'},
                status=status.HTTP_403_FORBIDDEN,
            )

        from leads.services import create_lead
        try:
            lead = create_lead(created_by=request.user, **data)
        except WorkflowError as e:
            return _error_response(e)
        return Response(
            SalesLeadSerializer(lead, context=self.get_serializer_context()).data,
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=['post'], url_path='transition')
    def transition(self, request, pk=None):
        """Apply one workflow action to the lead.

        Delegates to ``leads.services.apply_transition``; refused actions
        answer ``{"detail", "code"}`` and leave the lead untouched.
        """
        lead = self.get_object()
        serializer = TransitionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        from leads.services import apply_transition
        try:
            result = apply_transition(
                lead,
                resolve_actor(request.user),
                data.get('status'),
                data.get('note', ''),
                branch=data.get('branch'),
                officer=data.get('officer'),
                generated_savings=data.get('generated_savings'),
                attachment=data.get('attachment'),
                location=data.get('location'),
                expected_version=data.get('version'),
                user=request.user,
                ip=_client_ip(request),
            )
        except WorkflowError as e:
            return _error_response(e)

        return Response({
            'lead': SalesLeadSerializer(result.lead, context=self.get_serializer_context()).data,
            'update': LeadUpdateSerializer(result.update).data,
            'warnings': result.warnings,
        })

    @action(detail=True, methods=['get'], url_path='updates')
    def updates(self, request, pk=None):
        lead = self.get_object()
        from leads.services import lead_history
        return Response(LeadUpdateSerializer(lead_history(lead), many=True).data)

    @action(detail=True, methods=['get'], url_path='metrics')
    def metrics(self, request, pk=None):
        lead = self.get_object()
        from reports.services import lead_metrics
        return Response(LeadMetricsSerializer(lead_metrics(lead)).data)


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------

class BranchPlanViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    Branch savings plans.

    - create: district managers (own district) and admins
    - entries: GET lists the plan's entries, POST submits a new one
    """

    serializer_class = BranchPlanSerializer
    queryset = BranchPlan.objects.select_related('branch', 'branch__district').prefetch_related('entries')
    filterset_fields = ['branch', 'quarter']
    ordering_fields = ['quarter', 'created_at']

    def get_permissions(self):
        if self.action == 'create':
            return [IsDistrictManagerOrAdmin()]
        if self.action == 'entries' and self.request.method == 'POST':
            return [IsBranchStaff()]
        return [IsAuthenticated()]

    def get_queryset(self):
        return _scope(super().get_queryset(), self.request.user, 'branch__district_id', 'branch_id')

    def create(self, request, *args, **kwargs):
        serializer = BranchPlanCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        district_ids = visible_district_ids(request.user)
        if district_ids is not None and data['branch'].district_id not in district_ids:
            return Response(
                {'detail': 'You cannot create plans for this branch.'},
                status=status.HTTP_403_FORBIDDEN,
            )

        from plans.services import create_plan
        try:
            plan = create_plan(created_by=request.user, **data)
        except WorkflowError as e:
            return _error_response(e)
        return Response(BranchPlanSerializer(plan).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get', 'post'], url_path='entries')
    def entries(self, request, pk=None):
        plan = self.get_object()
        if request.method == 'GET':
            qs = plan.entries.all()
            entry_status = request.query_params.get('status')
            if entry_status:
                qs = qs.filter(status=entry_status)
            return Response(PlanEntrySerializer(qs, many=True).data)

        serializer = PlanEntryCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        from plans.services import submit_entry
        try:
            entry = submit_entry(
                plan,
                data['entry_type'],
                data['amount'],
                data['description'],
                submitted_by=_display_name(request.user),
                date=data.get('date'),
                user=request.user,
            )
        except WorkflowError as e:
            return _error_response(e)
        return Response(PlanEntrySerializer(entry).data, status=status.HTTP_201_CREATED)


class PlanEntryViewSet(viewsets.ReadOnlyModelViewSet):
    """Plan entries; ``review`` approves or rejects a pending one."""

    serializer_class = PlanEntrySerializer
    queryset = PlanEntry.objects.select_related('plan', 'plan__branch')
    filterset_fields = ['plan', 'status', 'entry_type']
    ordering_fields = ['date', 'created_at', 'amount']

    def get_permissions(self):
        if self.action == 'review':
            return [IsDistrictManagerOrAdmin()]
        return [IsAuthenticated()]

    def get_queryset(self):
        return _scope(
            super().get_queryset(), self.request.user,
            'plan__branch__district_id', 'plan__branch_id',
        )

    @action(detail=True, methods=['post'], url_path='review')
    def review(self, request, pk=None):
        entry = self.get_object()
        serializer = PlanEntryReviewSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        from plans.services import review_entry
        try:
            entry = review_entry(
                entry,
                serializer.validated_data['decision'],
                reviewer_name=_display_name(request.user),
                reason=serializer.validated_data.get('reason', ''),
                user=request.user,
                ip=_client_ip(request),
            )
        except WorkflowError as e:
            return _error_response(e)
        return Response(PlanEntrySerializer(entry).data)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

def _money(value):
    return str(value)


class DashboardView(APIView):
    """
    GET /api/v1/reports/dashboard/?district=<id|all>&branch=<id|all>

    ``?format=csv&level=branch|district`` downloads the performance table.
    """

    permission_classes = [IsAuthenticated]
    content_negotiation_class = CSVExportNegotiation

    def get(self, request):
        from reports.services import dashboard_for_user, export_performance_csv

        dashboard = dashboard_for_user(
            request.user,
            district_id=request.query_params.get('district'),
            branch_id=request.query_params.get('branch'),
        )
        if request.query_params.get('format') == 'csv':
            return export_performance_csv(dashboard, level=request.query_params.get('level', 'branch'))

        def perf(rows):
            return [
                {
                    'id': str(r.id),
                    'name': r.name,
                    'lead_count': r.lead_count,
                    'expected': _money(r.expected),
                    'generated': _money(r.generated),
                    'achievement': _money(r.achievement),
                }
                for r in rows
            ]

        return Response({
            'filters': {
                'district': str(dashboard.district_id) if dashboard.district_id else None,
                'branch': str(dashboard.branch_id) if dashboard.branch_id else None,
            },
            'totals': {
                'lead_count': dashboard.lead_count,
                'expected': _money(dashboard.total_expected),
                'generated': _money(dashboard.total_generated),
                'achievement': _money(dashboard.achievement),
            },
            'leads_by_status': dashboard.leads_by_status,
            'district_performance': perf(dashboard.district_performance),
            'branch_performance': perf(dashboard.branch_performance),
            'lead_performance': perf(dashboard.lead_performance),
            'plan_performance': [
                {
                    'id': str(p.id),
                    'branch': str(p.branch_id),
                    'branch_name': p.branch_name,
                    'quarter': p.quarter,
                    'target': _money(p.target),
                    'collections': _money(p.collections),
                    'withdrawals': _money(p.withdrawals),
                    'net': _money(p.net),
                    'achievement': _money(p.achievement),
                }
                for p in dashboard.plan_performance
            ],
            'branch_choices': [
                {'id': str(b.id), 'name': b.name, 'district': str(b.district_id)}
                for b in dashboard.branch_choices
            ],
        })


class OffsiteReportView(APIView):
    """
    GET /api/v1/reports/offsite/?threshold=<km>

    Updates reported farther than the threshold from their lead, most
    recent first.  ``?format=csv`` downloads the list.
    """

    permission_classes = [IsAuthenticated]
    content_negotiation_class = CSVExportNegotiation

    def get(self, request):
        from reports.services import (
            export_offsite_csv,
            get_offsite_threshold,
            offsite_reports_for_user,
        )

        threshold = request.query_params.get('threshold') or get_offsite_threshold()
        try:
            reports = offsite_reports_for_user(request.user, threshold)
        except ValueError as e:
            return Response({'detail': str(e), 'code': 'INVALID_THRESHOLD'}, status=status.HTTP_400_BAD_REQUEST)

        if request.query_params.get('format') == 'csv':
            return export_offsite_csv(reports, reports.threshold_km)
        return Response({
            'threshold_km': reports.threshold_km,
            'results': OffsiteReportSerializer(list(reports), many=True).data,
        })


class ReportingSettingsView(APIView):
    """GET / PATCH /api/v1/reports/settings/ -- off-site threshold."""

    def get_permissions(self):
        if self.request.method == 'GET':
            return [IsAuthenticated()]
        return [IsAdmin()]

    def get(self, request):
        from reports.services import get_offsite_threshold
        return Response({'offsite_threshold_km': get_offsite_threshold()})

    def patch(self, request):
        serializer = ReportingSettingsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        from reports.services import set_offsite_threshold
        try:
            row = set_offsite_threshold(serializer.validated_data['offsite_threshold_km'], user=request.user)
        except ValueError as e:
            return Response({'detail': str(e), 'code': 'INVALID_THRESHOLD'}, status=status.HTTP_400_BAD_REQUEST)
        return Response({'offsite_threshold_km': row.offsite_threshold_km})


# ---------------------------------------------------------------------------
# Audit log
# ---------------------------------------------------------------------------

class AuditLogViewSet(viewsets.ReadOnlyModelViewSet):
    """Read-only audit log entries; administrators only."""

    serializer_class = AuditLogSerializer
    queryset = AuditLog.objects.select_related('actor', 'district', 'branch')
    permission_classes = [IsAdmin]
    filterset_fields = ['district', 'branch', 'action', 'entity_type']
    search_fields = ['action', 'entity_type', 'entity_id']
    ordering_fields = ['created_at']

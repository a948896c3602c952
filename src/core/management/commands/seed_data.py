"""Seed database with demo districts, branches, users, leads and plans."""
from datetime import timedelta
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.utils import timezone


class Command(BaseCommand):
    help = "Seed database with districts, branches, officers, users, leads and branch plans"

    DEMO_DISTRICTS = [
        {"code": "LIT", "name": "Littoral", "branches": [
            {"code": "AKW", "name": "Akwa", "address": "Boulevard de la Liberte, Douala"},
            {"code": "BNP", "name": "Bonapriso", "address": "Rue Njo-Njo, Douala"},
        ]},
        {"code": "CEN", "name": "Centre", "branches": [
            {"code": "BST", "name": "Bastos", "address": "Avenue Rosa Parks, Yaounde"},
        ]},
    ]

    DEMO_USERS = [
        {"email": "admin@salesflow.cm", "first_name": "Admin", "last_name": "Systeme", "role": "ADMIN", "password": "admin123!"},
        {"email": "district.littoral@salesflow.cm", "first_name": "Marie", "last_name": "Ngo", "role": "DISTRICT_MANAGER", "district": "LIT", "password": "district123!"},
        {"email": "branch.akwa@salesflow.cm", "first_name": "Jean", "last_name": "Kamga", "role": "BRANCH_MANAGER", "branch": "AKW", "password": "branch123!"},
        {"email": "officer.akwa@salesflow.cm", "first_name": "Paul", "last_name": "Tchoupo", "role": "OFFICER", "branch": "AKW", "password": "officer123!"},
        {"email": "officer.bastos@salesflow.cm", "first_name": "Fatou", "last_name": "Bello", "role": "OFFICER", "branch": "BST", "password": "officer123!"},
    ]

    def add_arguments(self, parser):
        parser.add_argument("--flush", action="store_true", help="Delete existing data first")
        parser.add_argument(
            "--reset-passwords",
            action="store_true",
            help="Reset demo users passwords to default values (useful when the DB already contains these users).",
        )
        parser.add_argument("--no-leads", action="store_true", help="Only seed reference data and users")

    def handle(self, *args, **options):
        if options["flush"]:
            self.stdout.write("Flushing existing data...")
            self._flush()

        self.stdout.write("Seeding data...")
        districts, branches = self._create_districts()
        users = self._create_users(districts, branches, reset_passwords=options["reset_passwords"])
        officers = self._create_officers(branches, users)

        leads = []
        plans = []
        if not options["no_leads"]:
            leads = self._create_leads(districts, branches, officers, users)
            plans = self._create_plans(branches, users)

        self.stdout.write(self.style.SUCCESS(
            f"Seed complete: {len(districts)} districts, {len(branches)} branches, "
            f"{len(users)} users, {len(officers)} officers, {len(leads)} leads, {len(plans)} plans"
        ))

    def _flush(self):
        from accounts.models import User
        from branches.models import AuditLog, Branch, District, Officer
        from leads.models import SalesLead
        from plans.models import BranchPlan
        from reports.models import ReportingSettings

        # cascades bypass LeadUpdate.delete()
        for model in [SalesLead, BranchPlan, AuditLog, Officer, ReportingSettings]:
            model.objects.all().delete()
        User.objects.filter(is_superuser=False).delete()
        for model in [Branch, District]:
            model.objects.all().delete()

    def _create_districts(self):
        from branches.models import Branch, District

        districts = {}
        branches = {}
        for dd in self.DEMO_DISTRICTS:
            district, created = District.objects.get_or_create(code=dd["code"], defaults={"name": dd["name"]})
            if created:
                self.stdout.write(f"  District: {district.name}")
            districts[district.code] = district
            for bd in dd["branches"]:
                branch, created = Branch.objects.get_or_create(
                    code=bd["code"],
                    defaults={"name": bd["name"], "address": bd["address"], "district": district},
                )
                if created:
                    self.stdout.write(f"    Branch: {branch.name}")
                branches[branch.code] = branch
        return districts, branches

    def _create_users(self, districts, branches, *, reset_passwords: bool = False):
        from accounts.models import User

        created_users = {}
        for ud in self.DEMO_USERS:
            is_admin = ud["role"] == "ADMIN"
            branch = branches.get(ud.get("branch"))
            district = districts.get(ud.get("district")) or (branch.district if branch else None)
            user, created = User.objects.get_or_create(
                email=ud["email"],
                defaults={
                    "first_name": ud["first_name"],
                    "last_name": ud["last_name"],
                    "role": ud["role"],
                    "district": district,
                    "branch": branch if ud["role"] == "BRANCH_MANAGER" else None,
                    "is_staff": is_admin,
                    "is_superuser": is_admin,
                }
            )
            if created or reset_passwords:
                user.set_password(ud["password"])
                user.save(update_fields=["password"])
                if created:
                    self.stdout.write(f"  User: {user.email} ({user.role})")
            created_users[ud["email"]] = user
        return created_users

    def _create_officers(self, branches, users):
        from branches.models import Officer

        officers = {}
        for ud in self.DEMO_USERS:
            if ud["role"] != "OFFICER":
                continue
            user = users[ud["email"]]
            officer, created = Officer.objects.get_or_create(
                user=user,
                defaults={"name": user.get_full_name(), "branch": branches[ud["branch"]]},
            )
            if created:
                self.stdout.write(f"  Officer: {officer.name} ({officer.branch.name})")
            officers[ud["branch"]] = officer
        return officers

    def _create_leads(self, districts, branches, officers, users):
        """Walk a few leads through the workflow so every stage has data."""
        from accounts.services import resolve_actor
        from leads.models import SalesLead
        from leads.services import apply_transition, create_lead

        if SalesLead.objects.exists():
            self.stdout.write("  Leads: already seeded")
            return list(SalesLead.objects.all())

        admin = users["admin@salesflow.cm"]
        district_manager = resolve_actor(users["district.littoral@salesflow.cm"])
        branch_manager = resolve_actor(users["branch.akwa@salesflow.cm"])
        officer = resolve_actor(users["officer.akwa@salesflow.cm"])
        deadline = timezone.localdate() + timedelta(days=90)

        def lead(title, lat, lng, expected):
            return create_lead(
                districts["LIT"], title, f"{title} for a corporate client of the Littoral district.",
                lat, lng, Decimal(expected), deadline, created_by=admin,
            )

        fresh = lead("Payroll account migration", 4.0511, 9.7679, "500000")

        assigned = lead("Cash management contract", 4.0469, 9.6953, "250000")
        apply_transition(assigned, district_manager, branch=branches["AKW"])

        working = lead("Fleet insurance bundle", 4.0615, 9.7426, "300000")
        apply_transition(working, district_manager, branch=branches["AKW"])
        apply_transition(working, branch_manager, officer=officers["AKW"])
        apply_transition(
            working, officer, "IN_PROGRESS", "First meeting with the CFO.",
            generated_savings="75000", location=(4.0615, 9.7426),
        )
        # reported from the branch office, a few km away from the client
        apply_transition(
            working, officer, "IN_PROGRESS", "Term sheet sent.",
            generated_savings="50000", location=(4.0469, 9.6953),
        )

        closing = lead("Treasury bills subscription", 4.0500, 9.7000, "100000")
        apply_transition(closing, district_manager, branch=branches["AKW"])
        apply_transition(closing, branch_manager, officer=officers["AKW"])
        apply_transition(closing, officer, "PENDING_CLOSURE", generated_savings="100000")
        apply_transition(closing, branch_manager, "PENDING_DISTRICT_APPROVAL")
        apply_transition(closing, district_manager, "CLOSED")

        leads = [fresh, assigned, working, closing]
        self.stdout.write(f"  Leads: {len(leads)}")
        return leads

    def _create_plans(self, branches, users):
        from plans.models import BranchPlan
        from plans.services import create_plan, review_entry, submit_entry

        today = timezone.localdate()
        quarter = f"Q{(today.month - 1) // 3 + 1} {today.year}"
        admin = users["admin@salesflow.cm"]

        plans = []
        for code, target in (("AKW", "250000"), ("BST", "150000")):
            existing = BranchPlan.objects.filter(branch=branches[code], quarter=quarter).first()
            if existing:
                plans.append(existing)
                continue
            plan = create_plan(branches[code], quarter, Decimal(target), created_by=admin)
            plans.append(plan)

            approved = submit_entry(plan, "collection", Decimal("75000"), "Corporate term deposit", "Jean Kamga")
            review_entry(approved, "APPROVED", "Marie Ngo")
            withdrawn = submit_entry(plan, "withdrawal", Decimal("10000"), "Early redemption", "Jean Kamga")
            review_entry(withdrawn, "APPROVED", "Marie Ngo")
            rejected = submit_entry(plan, "collection", Decimal("20000"), "Unverified deposit", "Jean Kamga")
            review_entry(rejected, "REJECTED", "Marie Ngo", "No bank receipt was provided.")
            submit_entry(plan, "collection", Decimal("50000"), "Savings account opening", "Jean Kamga")

        self.stdout.write(f"  Plans: {len(plans)} ({quarter})")
        return plans

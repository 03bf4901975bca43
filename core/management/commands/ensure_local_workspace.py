"""
Create (or reset) a local login plus a workspace it owns.

USAGE:
  Local development (DEBUG=True):
    python manage.py ensure_local_workspace
    python manage.py ensure_local_workspace --workspace "Household"

  Anywhere else:
    python manage.py ensure_local_workspace --force

ENVIRONMENT VARIABLES:
  LOCAL_ADMIN_USERNAME  - Username (default: 'admin')
  LOCAL_ADMIN_EMAIL     - Email (default: 'admin@example.com')
  LOCAL_ADMIN_PASSWORD  - Password (required)

The workspace key printed at the end is what goes into
/api/tenant/<workspace-key>/ URLs.
"""
import os

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from core.models import Workspace, WorkspaceMembership


class Command(BaseCommand):
    help = (
        "Create or reset a superuser from LOCAL_ADMIN_* environment variables and make it "
        "the owner of a workspace. Requires --force when DEBUG is False."
    )

    def add_arguments(self, parser):
        parser.add_argument("--workspace", default="Local workspace", help="Workspace name to create or reuse.")
        parser.add_argument(
            "--force",
            action="store_true",
            help="Allow running when DEBUG is False.",
        )

    def handle(self, *args, **options):
        if not getattr(settings, "DEBUG", False) and not options["force"]:
            raise CommandError(
                "Refusing to run with DEBUG=False. This command modifies user credentials.\n"
                "Use --force if you really mean it."
            )

        password = os.getenv("LOCAL_ADMIN_PASSWORD")
        if not password:
            raise CommandError("LOCAL_ADMIN_PASSWORD environment variable is required.")
        username = os.getenv("LOCAL_ADMIN_USERNAME") or "admin"
        email = os.getenv("LOCAL_ADMIN_EMAIL") or "admin@example.com"

        User = get_user_model()
        with transaction.atomic():
            user, created = User.objects.get_or_create(username=username, defaults={"email": email})
            user.email = email
            user.is_staff = True
            user.is_superuser = True
            user.is_active = True
            user.set_password(password)
            user.save()

            workspace = (
                Workspace.objects.filter(name=options["workspace"], memberships__user=user).first()
                or Workspace.objects.create(name=options["workspace"])
            )
            WorkspaceMembership.objects.update_or_create(
                workspace=workspace,
                user=user,
                defaults={"role": WorkspaceMembership.Role.OWNER, "is_active": True},
            )

        action = "Created" if created else "Updated"
        self.stdout.write(self.style.SUCCESS(f"{action} user '{username}' (email: {email})"))
        self.stdout.write(f"   • Owner of workspace '{workspace.name}'")
        self.stdout.write(f"   • Workspace key: {workspace.key}")

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from jewelbook.core.identity import get_identity_client
from jewelbook.core.models import User
from jewelbook.core.utils import create_audit_log


class Command(BaseCommand):
    help = 'Grant the admin role to a user (bootstraps the first admin)'

    def add_arguments(self, parser):
        parser.add_argument('username', type=str)
        parser.add_argument('--revoke', action='store_true', help='Demote the user back to a plain user')

    def handle(self, *args, **options):
        role = User.ROLE_USER if options['revoke'] else User.ROLE_ADMIN

        with transaction.atomic():
            user = User.objects.select_for_update().filter(username=options['username']).first()
            if user is None:
                raise CommandError(f"User '{options['username']}' does not exist")
            if user.role == role:
                self.stdout.write(self.style.WARNING(f'{user.username} already has role {role}'))
                return

            old_role = user.role
            user.role = role
            user.save(update_fields=['role', 'updated_at'])
            create_audit_log(
                action='role_change', model_name='User', object_id=user.pk, object_name=user.username,
                changes={'role': {'old': old_role, 'new': role}, 'source': 'promote_admin'},
            )
            external_id = user.external_id
            transaction.on_commit(lambda: get_identity_client().update_role(external_id, role))

        self.stdout.write(self.style.SUCCESS(f'{user.username} is now {role}'))

"""
Management command to initialize module configuration and RBAC defaults.
Run: python manage.py init_rbac
"""

from django.core.management.base import BaseCommand
from django.db import transaction

from app.platform.modules.defaults import (
    ensure_default_module_configurations,
    ensure_default_module_dependencies,
)
from app.platform.rbac.defaults import (
    ensure_default_grants,
    ensure_permission_catalog,
    ensure_system_roles,
)


class Command(BaseCommand):
    help = 'Initialize module configurations, dependencies, permissions, roles and default grants'

    def add_arguments(self, parser):
        parser.add_argument(
            '--force',
            action='store_true',
            help='Refresh display metadata of existing modules, permissions and roles',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        force = options['force']

        self.stdout.write(self.style.SUCCESS('Initializing module configuration and RBAC...'))

        self.stdout.write('Creating module configurations...')
        modules_created = ensure_default_module_configurations(force=force)

        self.stdout.write('Creating module dependencies...')
        dependencies_created = ensure_default_module_dependencies()

        self.stdout.write('Creating module permissions...')
        permissions_created = ensure_permission_catalog(force=force)

        self.stdout.write('Creating roles...')
        roles_created = ensure_system_roles(force=force)

        self.stdout.write('Creating role permissions...')
        grants_created = ensure_default_grants()

        self.stdout.write(self.style.SUCCESS('\nRBAC system initialized successfully!'))
        self.stdout.write(f'  - Created {modules_created} module configurations')
        self.stdout.write(f'  - Created {dependencies_created} module dependencies')
        self.stdout.write(f'  - Created {permissions_created} module permissions')
        self.stdout.write(f'  - Created {roles_created} roles')
        self.stdout.write(f'  - Created {grants_created} role permissions')

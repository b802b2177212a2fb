"""
Sync catalog entities to the configured CMS.

Usage:
    python manage.py cms_sync Product
    python manage.py cms_sync ProductVariant --id 42
    python manage.py cms_sync --all-types
"""

from django.core.management.base import BaseCommand, CommandError

from cmssync import admin_api
from cmssync.jobs import EntityType


class Command(BaseCommand):
    help = 'Sync catalog entities (one, all of a kind, or all kinds) to the CMS'

    def add_arguments(self, parser):
        parser.add_argument(
            'entity_type',
            nargs='?',
            choices=[entity_type.value for entity_type in EntityType],
            help='Entity kind to sync',
        )
        parser.add_argument(
            '--id',
            dest='entity_id',
            help='Sync a single entity instead of all of them',
        )
        parser.add_argument(
            '--all-types',
            action='store_true',
            help='Sync products, variants and collections in sequence',
        )

    def handle(self, *args, **options):
        entity_type = options['entity_type']
        entity_id = options['entity_id']

        if options['all_types']:
            if entity_id:
                raise CommandError('--id cannot be combined with --all-types')
            results = [admin_api.sync_all_entities_to_cms(kind) for kind in EntityType]
        elif not entity_type:
            raise CommandError('Give an entity type or --all-types')
        elif entity_id:
            results = [admin_api.sync_entity_to_cms(entity_id, entity_type)]
        else:
            results = [admin_api.sync_all_entities_to_cms(entity_type)]

        failed = False
        for result in results:
            if result['success']:
                self.stdout.write(self.style.SUCCESS(result['message']))
                continue
            failed = True
            self.stdout.write(self.style.ERROR(result['message']))
            for error in result.get('errors', []):
                self.stdout.write('  {entityType} {entityId}: {error}'.format(**error))

        if failed:
            raise CommandError('CMS sync finished with errors')

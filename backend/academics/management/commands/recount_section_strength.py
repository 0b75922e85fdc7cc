"""
Management command to recount stored section strength from active students
Usage: python manage.py recount_section_strength [--college ID] [--dry-run]
"""
from django.core.management.base import BaseCommand
from django.db import transaction
from django.db.models import Count, Q

from academics.models import Section
from academics.services.sections import refresh_section_strength


class Command(BaseCommand):
    help = 'Recount current_strength of every section from its active students'

    def add_arguments(self, parser):
        parser.add_argument('--college', type=int, help='Only sections of this college id')
        parser.add_argument('--dry-run', action='store_true', help='Report drift without writing')

    def handle(self, *args, **options):
        sections = Section.objects.select_related('program').annotate(
            live=Count('students', filter=Q(students__is_active=True)),
        ).order_by('college_id', 'program__code', 'year', 'name')
        if options.get('college'):
            sections = sections.filter(college_id=options['college'])

        if not sections.exists():
            self.stdout.write(self.style.WARNING('No sections found in database!'))
            return

        drifted = [s for s in sections if s.current_strength != s.live]
        self.stdout.write(f'Checked {len(sections)} sections, {len(drifted)} out of sync')
        self.stdout.write('-' * 60)
        for sec in drifted:
            self.stdout.write(
                f'  {sec.program.code} :: {sec.year} :: {sec.name}  stored={sec.current_strength} actual={sec.live}'
            )

        if options.get('dry_run') or not drifted:
            return

        with transaction.atomic():
            refresh_section_strength([s.pk for s in drifted])
        self.stdout.write(self.style.SUCCESS(f'Fixed {len(drifted)} sections'))

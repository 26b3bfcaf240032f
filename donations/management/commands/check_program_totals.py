from django.core.management.base import BaseCommand, CommandError

from donations.funding import find_discrepancies
from donations.models import Program


class Command(BaseCommand):
    help = "Compare each program's collected total with the sum of its verified donations."

    def add_arguments(self, parser):
        parser.add_argument('--program', type=int, action='append', dest='programs',
                            help='Only check this program id (repeatable).')

    def handle(self, *args, **options):
        queryset = Program.objects.all()
        if options.get('programs'):
            queryset = queryset.filter(pk__in=options['programs'])
        mismatches = find_discrepancies(queryset)
        for program, collected, expected in mismatches:
            self.stderr.write(
                f"Program #{program.pk} '{program.title}': collected={collected} verified donations={expected}"
            )
        if mismatches:
            raise CommandError(f"{len(mismatches)} program(s) out of balance")
        self.stdout.write(self.style.SUCCESS(f"{queryset.count()} program(s) balanced"))

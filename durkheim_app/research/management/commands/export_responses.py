"""
Export a form's responses as CSV.

Usage:
    python manage.py export_responses <form_id>
    python manage.py export_responses <form_id> --output responses.csv
"""

from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from durkheim_app.research.exports import NoResponsesToExport, iter_csv
from durkheim_app.research.models import ResearchForm


class Command(BaseCommand):
    help = "Write every response to a form as CSV (stdout unless --output is given)"

    def add_arguments(self, parser):
        parser.add_argument("form_id", help="UUID of the form to export")
        parser.add_argument(
            "--output",
            help="File to write instead of standard output",
        )

    def handle(self, *args, **options):
        try:
            form = ResearchForm.objects.get(pk=options["form_id"])
        except (ResearchForm.DoesNotExist, ValidationError):
            raise CommandError(f"Form {options['form_id']} does not exist")

        try:
            rows = iter_csv(form.responses.order_by("submitted_at", "id"))
        except NoResponsesToExport as exc:
            raise CommandError(str(exc))

        output = options.get("output")
        if not output:
            for line in rows:
                self.stdout.write(line, ending="")
            return

        count = -1
        with open(output, "w", newline="", encoding="utf-8") as fh:
            for line in rows:
                fh.write(line)
                count += 1
        self.stdout.write(
            self.style.SUCCESS(f"Exported {count} responses for '{form.name}' to {output}")
        )

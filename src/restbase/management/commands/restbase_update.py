"""Schedule RESTBase updates for a page by hand."""

import json

from django.core.management.base import BaseCommand, CommandError

from restbase.jobs import describe_job, encode_job
from restbase.services.translator import ChangeEvent, EventKind, schedule, translate
from restbase.services.wiki_backend import get_wiki_backend
from restbase.titles import Title


class Command(BaseCommand):
    help = "Schedule RESTBase cache invalidation jobs as if a wiki change event had fired"

    def add_arguments(self, parser):
        parser.add_argument("title", help="Prefixed page title, e.g. 'Template:Infobox'")
        parser.add_argument(
            "--event",
            choices=[kind.value for kind in EventKind],
            default=EventKind.EDIT.value,
            help="Change event to simulate (default: edit)",
        )
        parser.add_argument("--rev", type=int, help="Revision id of the subject page")
        parser.add_argument("--new-title", help="Target title for move events")
        parser.add_argument("--new-rev", type=int, help="Revision id of the moved page")
        parser.add_argument(
            "--revisions",
            type=int,
            nargs="+",
            default=[],
            help="Revision ids for rev_visibility events",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Print the jobs without pushing them",
        )

    def handle(self, *args, **options):
        kind = EventKind(options["event"])
        if kind is EventKind.MOVE and not options["new_title"]:
            raise CommandError("--new-title is required for move events")
        if kind is EventKind.REV_VISIBILITY and not options["revisions"]:
            raise CommandError("--revisions is required for rev_visibility events")

        event = ChangeEvent(
            kind=kind,
            title=Title.parse(options["title"]),
            revision_id=options["rev"],
            new_title=Title.parse(options["new_title"]) if options["new_title"] else None,
            new_revision_id=options["new_rev"],
            revisions=tuple(options["revisions"]),
        )

        if options["dry_run"]:
            for job in translate(event, get_wiki_backend()):
                self.stdout.write(f"{describe_job(job)}: {json.dumps(encode_job(job), sort_keys=True)}")
            return

        jobs = schedule(event)
        self.stdout.write(self.style.SUCCESS(f"Scheduled {len(jobs)} job(s) for {event.title}"))

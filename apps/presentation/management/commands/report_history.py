import json
from django.core.management.base import BaseCommand
from django.utils.translation import gettext as _

from ._session import add_backend_arguments, build_gateway, build_session


class Command(BaseCommand):
    help = 'List saved reports, or show the analysis history of one report'

    def add_arguments(self, parser):
        parser.add_argument('doc_id', nargs='?', help='Report id (e.g. 2025-01-15); omit to list all reports')
        parser.add_argument('--latest', action='store_true', help='Show the most recent analysis')
        add_backend_arguments(parser)

    def handle(self, *args, **options):
        gateway = build_gateway(options)
        session = build_session(options)

        if options['latest']:
            latest = gateway.latest(session)
            entries = [latest.to_dict()] if latest else []
        elif options['doc_id']:
            entries = [item.to_dict() for item in gateway.history_by_id(options['doc_id'], session)]
        else:
            entries = gateway.list(session)

        if options['json']:
            self.stdout.write(json.dumps(entries, ensure_ascii=False, indent=2))
            return

        if not entries:
            self.stdout.write(_('No reports found.'))
            return

        for entry in entries:
            if 'evaluation' in entry:
                evaluation = entry['evaluation']
                self.stdout.write(f'{entry["id"]}  {entry["timestamp"]}  {evaluation["status"]}  {entry["extracted_data"].get("summary", "")}')
            else:
                self.stdout.write(
                    f'{entry.get("id")}  {entry.get("date") or "-"}  {entry.get("last_evaluation") or "-"}  '
                    f'{entry.get("sentiment", "")} {entry.get("bullish_bearish_score", "")}  {entry.get("summary_headline", "")}'
                )

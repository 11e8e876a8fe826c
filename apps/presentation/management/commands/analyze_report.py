import json
from pathlib import Path
from django.core.management.base import BaseCommand, CommandError
from django.utils.translation import gettext as _

from apps.application.facades.report_analysis_facade import ReportAnalysisFacade
from apps.application.services.document_analysis_service import UploadedReport
from apps.domain.exceptions import AnalysisError, ConfigError, ParseError
from ._session import add_backend_arguments, build_gateway, build_session


class Command(BaseCommand):
    help = 'Analyze a stock report (Excel or PDF) with Gemini and save it to the backend'

    def add_arguments(self, parser):
        parser.add_argument('file', help='Path to the .xls/.xlsx/.pdf report')
        parser.add_argument('--no-save', action='store_true', help='Analyze only, do not save')
        add_backend_arguments(parser)

    def handle(self, *args, **options):
        path = Path(options['file'])
        if not path.is_file():
            raise CommandError(_('File not found: %(path)s') % {'path': path})

        session = build_session(options)
        facade = ReportAnalysisFacade(build_gateway(options))

        try:
            outcome = facade.process(UploadedReport.from_path(path), session, save=not options['no_save'])
        except ConfigError as e:
            raise CommandError(_('Configuration error: %(error)s') % {'error': e})
        except ParseError as e:
            raise CommandError(_('Could not read the file: %(error)s') % {'error': e})
        except AnalysisError as e:
            raise CommandError(_('Analysis failed: %(error)s') % {'error': e})

        result = outcome.result
        if options['json']:
            self.stdout.write(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        else:
            self._print_summary(result)

        if outcome.warning:
            self.stderr.write(self.style.WARNING(outcome.warning))
        elif outcome.saved:
            self.stdout.write(self.style.SUCCESS(_('Saved as %(id)s') % {'id': outcome.saved_id or result.id}))

    def _print_summary(self, result):
        executive_summary = result.extracted_data.executive_summary
        self.stdout.write(self.style.SUCCESS(f'{result.metadata.title} [{result.id}]'))
        if executive_summary:
            self.stdout.write(
                f'{executive_summary.get("sentiment", "Neutral")} '
                f'({executive_summary.get("bullish_bearish_score", 0)}): {executive_summary.get("headline", "")}'
            )
        self.stdout.write(f'{result.evaluation.status} {result.evaluation.score:g} - {result.evaluation.details}')
        if result.evaluation.tags:
            self.stdout.write(', '.join(result.evaluation.tags))
        self.stdout.write(result.extracted_data.summary)
        for point in result.extracted_data.key_points:
            self.stdout.write(f'  - {point}')

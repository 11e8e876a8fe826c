import csv
import io
import logging
from datetime import date, datetime, time
from pathlib import Path
from typing import Iterable, List, Tuple, Union

import xlrd
from openpyxl import load_workbook

from apps.domain.exceptions import ParseError

logger = logging.getLogger('apps')

SPREADSHEET_EXTENSIONS = ('.xlsx', '.xlsm', '.xls')

SHEET_DELIMITER = '--- Sheet: {name} ---'

# Legacy BIFF workbooks (.xls) are OLE2 compound documents
OLE2_SIGNATURE = b'\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1'


def is_spreadsheet(filename: str) -> bool:
    return filename.lower().endswith(SPREADSHEET_EXTENSIONS)


class SpreadsheetExtractorService:
    """Flattens every sheet of a workbook into CSV text for the model prompt."""

    def extract_text_from_path(self, path: Union[str, Path]) -> str:
        return self.extract_text(Path(path).read_bytes())

    def extract_text(self, content: bytes) -> str:
        if content.startswith(OLE2_SIGNATURE):
            sheets = self._read_legacy_workbook(content)
        else:
            sheets = self._read_workbook(content)

        parts = [
            f'\n{SHEET_DELIMITER.format(name=name)}\n{self._sheet_to_csv(rows)}'
            for name, rows in sheets
        ]
        logger.info(f'Extracted {len(parts)} sheet(s) from workbook')
        return ''.join(parts)

    def _read_workbook(self, content: bytes) -> List[Tuple[str, List[tuple]]]:
        try:
            workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        except Exception as e:
            logger.error(f'Error opening workbook: {str(e)}')
            raise ParseError(f'Failed to read spreadsheet: {str(e)}')

        try:
            return [
                (sheet_name, list(workbook[sheet_name].iter_rows(values_only=True)))
                for sheet_name in workbook.sheetnames
            ]
        finally:
            workbook.close()

    def _read_legacy_workbook(self, content: bytes) -> List[Tuple[str, List[tuple]]]:
        try:
            book = xlrd.open_workbook(file_contents=content)
        except Exception as e:
            logger.error(f'Error opening .xls workbook: {str(e)}')
            raise ParseError(f'Failed to read spreadsheet: {str(e)}')

        try:
            return [
                (sheet.name, [tuple(self._legacy_value(cell, book.datemode) for cell in row) for row in sheet.get_rows()])
                for sheet in book.sheets()
            ]
        finally:
            book.release_resources()

    def _legacy_value(self, cell, datemode: int):
        if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
            return None
        if cell.ctype == xlrd.XL_CELL_DATE:
            return xlrd.xldate.xldate_as_datetime(cell.value, datemode)
        if cell.ctype == xlrd.XL_CELL_BOOLEAN:
            return bool(cell.value)
        return cell.value

    def _sheet_to_csv(self, rows: Iterable[tuple]) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator='\n')
        for row in rows:
            writer.writerow([self._format_cell(value) for value in row])
        return buffer.getvalue().rstrip('\n')

    def _format_cell(self, value) -> str:
        if value is None:
            return ''
        if isinstance(value, datetime):
            if value.time() == time(0, 0):
                return value.date().isoformat()
            return value.isoformat(sep=' ')
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)

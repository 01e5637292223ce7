"""
Spreadsheet service for bulk user transfer.

Builds the import template and parses uploaded .xlsx files into user rows.
"""

import io
import logging
from typing import List, Tuple

import pandas as pd
from openpyxl import load_workbook

from common.utils.exceptions import ValidationException

logger = logging.getLogger(__name__)


class UserSpreadsheetService:
    """
    Converts between user rows and .xlsx workbooks.
    """

    TEMPLATE_COLUMNS = ["internalID", "email"]
    REQUIRED_COLUMNS = ("internalID", "email")
    SHEET_NAME = "Sheet1"
    TEMPLATE_FILENAME = "example.xlsx"
    MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

    def build_template(self) -> bytes:
        """
        Build the import template: a workbook holding only the header row.

        Returns:
            .xlsx file content
        """
        buffer = io.BytesIO()
        pd.DataFrame(columns=self.TEMPLATE_COLUMNS).to_excel(
            buffer,
            sheet_name=self.SHEET_NAME,
            index=False,
            engine="openpyxl"
        )
        return buffer.getvalue()

    def parse_users(self, content: bytes) -> List[Tuple[int, dict]]:
        """
        Parse the first sheet of an uploaded workbook into user rows.

        Every column is passed through; empty cells are dropped from the row
        and blank rows are skipped. Each row keeps its line number in the
        sheet so errors can point back at it.

        Args:
            content: .xlsx file content

        Returns:
            (sheet row number, row dict) pairs, in sheet order

        Raises:
            ValidationException: Unreadable file or missing required columns
        """
        try:
            workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        except Exception as e:
            logger.warning(f"Unreadable user spreadsheet: {e}")
            raise ValidationException(
                message="Uploaded file is not a readable spreadsheet.",
                code="INVALID_FILE"
            )

        try:
            sheet_rows = workbook.worksheets[0].iter_rows(values_only=True)
            header = next(sheet_rows, ())
            columns = ["" if cell is None else str(cell).strip() for cell in header]

            missing = [column for column in self.REQUIRED_COLUMNS if column not in columns]
            if missing:
                raise ValidationException(
                    message="Column error in file.",
                    code="COLUMN_ERROR",
                    details={"missingColumns": missing}
                )

            rows = []
            # Header is line 1
            for row_number, values in enumerate(sheet_rows, start=2):
                row = {}
                for column, value in zip(columns, values):
                    if not column or value is None:
                        continue
                    text = str(value).strip()
                    if text:
                        row[column] = text
                if row:
                    rows.append((row_number, row))
        finally:
            workbook.close()

        logger.debug(f"Parsed {len(rows)} user rows from spreadsheet")
        return rows

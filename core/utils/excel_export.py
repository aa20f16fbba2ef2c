# core/utils/excel_export.py
from datetime import datetime
from decimal import Decimal
from io import BytesIO

import pandas as pd
from django.http import HttpResponse
from django.utils import timezone

EXCEL_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


def _excel_value(value):
    """Excel cannot store timezone-aware datetimes or Decimal objects"""
    if isinstance(value, datetime) and timezone.is_aware(value):
        return timezone.localtime(value).replace(tzinfo=None)
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (dict, list)):
        return str(value)
    return value


def rows_to_dataframe(rows):
    """
    Convert a list of dictionaries to a DataFrame that Excel accepts.

    Args:
        rows: List of dictionaries, or a DataFrame (returned unchanged)

    Returns:
        Pandas DataFrame
    """
    if isinstance(rows, pd.DataFrame):
        return rows
    return pd.DataFrame([
        {key: _excel_value(value) for key, value in row.items()}
        for row in rows
    ])


def export_multiple_sheets(data_dict, filename=None):
    """
    Export several tables to one workbook, one sheet each.

    Args:
        data_dict: Dictionary of {sheet_name: rows}
        filename: Output filename (with or without .xlsx)

    Returns:
        HttpResponse with the Excel file as an attachment
    """
    if filename is None:
        timestamp = timezone.localtime(timezone.now()).strftime('%Y%m%d_%H%M%S')
        filename = f'export_{timestamp}'

    if not filename.endswith('.xlsx'):
        filename = f'{filename}.xlsx'

    response = HttpResponse(content_type=EXCEL_CONTENT_TYPE)
    response['Content-Disposition'] = f'attachment; filename="{filename}"'

    with BytesIO() as bio:
        with pd.ExcelWriter(bio, engine='openpyxl') as writer:
            for sheet_name, rows in data_dict.items():
                # Excel limits sheet names to 31 characters
                rows_to_dataframe(rows).to_excel(writer, sheet_name=sheet_name[:31], index=False)

        response.write(bio.getvalue())

    return response

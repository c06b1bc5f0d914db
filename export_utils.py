"""
=============================================================================
Export Utilities for Result Datasets
=============================================================================

Flattens datasets and analytics into pandas DataFrames and writes them as
CSV, Excel (auto-sized columns) and JSON.
=============================================================================
"""

import json
import logging
import os
import re
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

import pandas as pd

from analytics import calculate_dataset_analytics
from dataset import Dataset, DatasetAnalytics

logger = logging.getLogger(__name__)

STUDENTS_SHEET = 'Students'
STATS_SHEET = 'Subject Stats'
MAX_COLUMN_WIDTH = 50


def column_prefix(subject_code: str) -> str:
    """Spreadsheet-safe prefix for a subject code, e.g. "DSC-401(TH)" -> "DSC_401_TH"."""
    return re.sub(r'[^a-zA-Z0-9]+', '_', subject_code).strip('_')


def dataset_to_dataframe(dataset: Dataset) -> pd.DataFrame:
    """
    One row per student: identity and summary columns, then total, grade,
    credit point and components of every subject in subject order.
    """
    if not dataset.students:
        return pd.DataFrame()

    records = []
    for student in dataset.students:
        record: Dict[str, Any] = {
            'Roll_No': student.roll_no,
            'ABC_ID': student.abc_id,
            'Name': student.name,
            'Grand_Total': student.grand_total,
            'Total_Credit': student.total_credit,
            'Total_Credit_Point': student.total_credit_point,
            'SGPA': student.sgpa,
            'Remarks': student.remarks,
        }

        for mark in student.marks:
            prefix = column_prefix(mark.subject_code)
            record[f'{prefix}_Total'] = mark.total_marks
            record[f'{prefix}_Grade'] = mark.letter_grade
            record[f'{prefix}_Credit_Point'] = mark.credit_point
            for component in mark.components:
                record[f'{prefix}_{component.label}'] = component.value

        records.append(record)

    return pd.DataFrame(records)


def subject_stats_dataframe(analytics: DatasetAnalytics) -> pd.DataFrame:
    rows = []
    for stats in analytics.subject_stats:
        rows.append({
            'Subject_Code': stats.subject_code,
            'Subject_Name': stats.subject_name,
            'Highest': stats.highest,
            'Lowest': stats.lowest,
            'Average': round(stats.average, 2),
            'Pass_Rate': round(stats.pass_rate, 2),
            'Grade_Distribution': ', '.join(f'{g}: {n}' for g, n in sorted(stats.grade_distribution.items())),
        })
    return pd.DataFrame(rows)


def _autofit_columns(worksheet) -> None:
    for column in worksheet.columns:
        column_letter = column[0].column_letter
        max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
        worksheet.column_dimensions[column_letter].width = min(max_length + 2, MAX_COLUMN_WIDTH)


def save_outputs(dataset: Dataset, output_dir: str = '.',
                 analytics: Optional[DatasetAnalytics] = None) -> Tuple[Optional[str], Optional[str]]:
    """
    Save a dataset to CSV and Excel files.

    The Excel workbook has a Students sheet and a Subject Stats sheet.

    Args:
        dataset: Parsed dataset
        output_dir: Directory to save output files
        analytics: Precomputed analytics (computed here when omitted)

    Returns:
        Tuple of (csv_file, excel_file) paths, (None, None) for an empty dataset
    """
    df = dataset_to_dataframe(dataset)

    if df.empty:
        logger.error("Cannot save empty DataFrame")
        return None, None

    os.makedirs(output_dir, exist_ok=True)

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    csv_file = os.path.join(output_dir, f'result_analysis_{timestamp}.csv')
    excel_file = os.path.join(output_dir, f'result_analysis_{timestamp}.xlsx')

    df.to_csv(csv_file, index=False)
    logger.info(f"Saved CSV: {csv_file}")

    stats_df = subject_stats_dataframe(analytics or calculate_dataset_analytics(dataset))

    with pd.ExcelWriter(excel_file, engine='openpyxl') as writer:
        df.to_excel(writer, index=False, sheet_name=STUDENTS_SHEET)
        stats_df.to_excel(writer, index=False, sheet_name=STATS_SHEET)

        for sheet_name in (STUDENTS_SHEET, STATS_SHEET):
            _autofit_columns(writer.sheets[sheet_name])

    logger.info(f"Saved Excel: {excel_file}")

    return csv_file, excel_file


def export_dataset_json(dataset: Dataset, output_file: str = 'dataset.json',
                        include_raw_text: bool = False) -> int:
    """
    Export a dataset (subjects, students, marks) to a JSON file.

    Returns:
        Number of students exported
    """
    with open(output_file, 'w', encoding='utf-8') as f:
        json.dump(dataset.to_dict(include_raw_text=include_raw_text), f, indent=2, ensure_ascii=False)

    logger.info(f"Exported {dataset.total_students} students to {output_file}")
    return dataset.total_students


def export_analytics_json(analytics: DatasetAnalytics, output_file: str = 'analytics.json') -> None:
    with open(output_file, 'w', encoding='utf-8') as f:
        json.dump(analytics.to_dict(), f, indent=2, ensure_ascii=False)

    logger.info(f"Exported analytics to {output_file}")


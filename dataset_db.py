"""
=============================================================================
Dataset Persistence
=============================================================================

Save, load, list and delete parsed datasets in the SQLite database.

A dataset that is saved and loaded again compares equal to the original.
Database errors roll the session back and are re-raised.

Usage:
    from init_db import init_database
    from dataset_db import save_dataset, list_datasets

    session = init_database('result_datasets.db')
    save_dataset(session, result.dataset)
    for dataset in list_datasets(session):
        print(dataset.name, dataset.total_students)
=============================================================================
"""

import json
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dataset import Dataset, Mark, MarkComponent, Student, Subject, SubjectComponent
from models import DatasetRecord, MarkRecord, StudentRecord, SubjectRecord

logger = logging.getLogger(__name__)


# =============================================================================
# DATASET -> RECORDS
# =============================================================================

def _subject_record(subject: Subject) -> SubjectRecord:
    return SubjectRecord(
        uid=subject.id,
        code=subject.code,
        full_name=subject.full_name,
        total_column=subject.total_column,
        order_index=subject.order_index,
        components_json=json.dumps([{'key': c.key, 'label': c.label} for c in subject.components]),
    )


def _mark_record(mark: Mark, position: int) -> MarkRecord:
    return MarkRecord(
        position=position,
        subject_uid=mark.subject_id,
        subject_code=mark.subject_code,
        total_marks=mark.total_marks,
        letter_grade=mark.letter_grade,
        credit_point=mark.credit_point,
        components_json=json.dumps(
            [{'key': c.key, 'label': c.label, 'value': c.value} for c in mark.components]
        ),
    )


def _student_record(student: Student, position: int) -> StudentRecord:
    return StudentRecord(
        uid=student.id,
        position=position,
        abc_id=student.abc_id,
        roll_no=student.roll_no,
        name=student.name,
        grand_total=student.grand_total,
        total_credit=student.total_credit,
        total_credit_point=student.total_credit_point,
        sgpa=student.sgpa,
        remarks=student.remarks,
        marks=[_mark_record(mark, i) for i, mark in enumerate(student.marks)],
    )


# =============================================================================
# RECORDS -> DATASET
# =============================================================================

def _to_subject(record: SubjectRecord) -> Subject:
    return Subject(
        id=record.uid,
        code=record.code,
        full_name=record.full_name,
        total_column=record.total_column,
        order_index=record.order_index,
        components=tuple(
            SubjectComponent(key=c['key'], label=c['label'])
            for c in json.loads(record.components_json or '[]')
        ),
    )


def _to_mark(record: MarkRecord) -> Mark:
    return Mark(
        subject_id=record.subject_uid,
        subject_code=record.subject_code,
        total_marks=record.total_marks,
        letter_grade=record.letter_grade,
        credit_point=record.credit_point,
        components=tuple(
            MarkComponent(key=c['key'], label=c['label'], value=c['value'])
            for c in json.loads(record.components_json or '[]')
        ),
    )


def _to_student(record: StudentRecord) -> Student:
    return Student(
        id=record.uid,
        abc_id=record.abc_id or '',
        roll_no=record.roll_no or '',
        name=record.name,
        grand_total=record.grand_total,
        total_credit=record.total_credit,
        total_credit_point=record.total_credit_point,
        sgpa=record.sgpa,
        remarks=record.remarks,
        marks=tuple(_to_mark(m) for m in record.marks),
    )


def record_to_dataset(record: DatasetRecord) -> Dataset:
    return Dataset(
        id=record.id,
        name=record.name,
        created_at=record.created_at,
        subjects=tuple(_to_subject(s) for s in record.subjects),
        students=tuple(_to_student(s) for s in record.students),
        raw_text=record.raw_text,
    )


# =============================================================================
# OPERATIONS
# =============================================================================

def save_dataset(db_session: Session, dataset: Dataset) -> DatasetRecord:
    """
    Save a parsed dataset with all subjects, students and marks.

    Args:
        db_session: SQLAlchemy session
        dataset: Dataset to store; its id must not be saved already

    Returns:
        The stored DatasetRecord
    """
    record = DatasetRecord(
        id=dataset.id,
        name=dataset.name,
        created_at=dataset.created_at,
        raw_text=dataset.raw_text,
        subjects=[_subject_record(s) for s in dataset.subjects],
        students=[_student_record(s, i) for i, s in enumerate(dataset.students)],
    )

    try:
        db_session.add(record)
        db_session.commit()
    except SQLAlchemyError as e:
        db_session.rollback()
        logger.error(f"Database error while saving dataset {dataset.id}: {e}")
        raise

    logger.info(
        f"Saved dataset '{dataset.name}': {dataset.total_subjects} subjects, "
        f"{dataset.total_students} students"
    )
    return record


def load_dataset(db_session: Session, dataset_id: str) -> Optional[Dataset]:
    record = db_session.get(DatasetRecord, dataset_id)
    if record is None:
        return None
    return record_to_dataset(record)


def list_datasets(db_session: Session) -> List[Dataset]:
    """All saved datasets, oldest first."""
    records = db_session.query(DatasetRecord).order_by(DatasetRecord.created_at).all()
    return [record_to_dataset(r) for r in records]


def delete_dataset_record(db_session: Session, dataset_id: str) -> bool:
    """
    Delete a saved dataset and everything belonging to it.

    Returns:
        True if a dataset was deleted, False if the id was unknown
    """
    record = db_session.get(DatasetRecord, dataset_id)
    if record is None:
        return False

    try:
        db_session.delete(record)
        db_session.commit()
    except SQLAlchemyError as e:
        db_session.rollback()
        logger.error(f"Database error while deleting dataset {dataset_id}: {e}")
        raise

    logger.info(f"Deleted dataset {dataset_id}")
    return True


def clear_datasets(db_session: Session) -> int:
    """Delete every saved dataset. Returns how many were removed."""
    records = db_session.query(DatasetRecord).all()

    try:
        for record in records:
            db_session.delete(record)
        db_session.commit()
    except SQLAlchemyError as e:
        db_session.rollback()
        logger.error(f"Database error while clearing datasets: {e}")
        raise

    logger.info(f"Cleared {len(records)} saved dataset(s)")
    return len(records)

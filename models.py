"""
=============================================================================
Database Models for Saved Result Datasets
=============================================================================

SQLAlchemy models for keeping parsed datasets between runs.

Tables:
- datasets: one row per parsed result sheet (name, time, raw text)
- subjects: subjects discovered in the sheet header, in column order
- students: one row per student, in sheet order
- marks: one row per student per subject; component values as JSON text
=============================================================================
"""

from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class DatasetRecord(Base):
    """A saved result sheet"""
    __tablename__ = 'datasets'

    id = Column(String(64), primary_key=True)
    name = Column(String(300), nullable=False)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    raw_text = Column(Text)

    # Relationships
    subjects = relationship(
        'SubjectRecord', back_populates='dataset', cascade='all, delete-orphan',
        order_by='SubjectRecord.order_index',
    )
    students = relationship(
        'StudentRecord', back_populates='dataset', cascade='all, delete-orphan',
        order_by='StudentRecord.position',
    )

    def __repr__(self):
        return f"<DatasetRecord(id={self.id}, name={self.name})>"


class SubjectRecord(Base):
    """Subject column group of a saved sheet"""
    __tablename__ = 'subjects'

    pk = Column(Integer, primary_key=True, autoincrement=True)
    dataset_id = Column(String(64), ForeignKey('datasets.id', ondelete='CASCADE'), nullable=False)
    uid = Column(String(64), nullable=False)
    code = Column(String(100), nullable=False)  # "DSC-401(TH)"
    full_name = Column(String(300))  # "DSC-401 (Theory)"
    total_column = Column(String(150))  # "DSC-401(TH)_TOT"
    order_index = Column(Integer, nullable=False)
    components_json = Column(Text, default='[]')  # [{"key": ..., "label": ...}]

    dataset = relationship('DatasetRecord', back_populates='subjects')

    __table_args__ = (
        UniqueConstraint('dataset_id', 'order_index', name='unique_subject_position'),
    )

    def __repr__(self):
        return f"<SubjectRecord(code={self.code}, dataset={self.dataset_id})>"


class StudentRecord(Base):
    """One student row of a saved sheet"""
    __tablename__ = 'students'

    pk = Column(Integer, primary_key=True, autoincrement=True)
    dataset_id = Column(String(64), ForeignKey('datasets.id', ondelete='CASCADE'), nullable=False)
    uid = Column(String(64), nullable=False)
    position = Column(Integer, nullable=False)  # Row order in the sheet
    abc_id = Column(String(100))
    roll_no = Column(String(30))
    name = Column(String(200), nullable=False)
    grand_total = Column(Float)
    total_credit = Column(Float)
    total_credit_point = Column(Float)
    sgpa = Column(Float)
    remarks = Column(String(20))  # "Q", "NQ", "###Q"

    dataset = relationship('DatasetRecord', back_populates='students')
    marks = relationship(
        'MarkRecord', back_populates='student', cascade='all, delete-orphan',
        order_by='MarkRecord.position',
    )

    def __repr__(self):
        return f"<StudentRecord(roll_no={self.roll_no}, name={self.name}, sgpa={self.sgpa})>"


class MarkRecord(Base):
    """One student's result in one subject"""
    __tablename__ = 'marks'

    pk = Column(Integer, primary_key=True, autoincrement=True)
    student_pk = Column(Integer, ForeignKey('students.pk', ondelete='CASCADE'), nullable=False)
    position = Column(Integer, nullable=False)  # Same order as the dataset's subjects
    subject_uid = Column(String(64), nullable=False)
    subject_code = Column(String(100), nullable=False)
    total_marks = Column(Float)  # NULL for "-" / "AB"
    letter_grade = Column(String(5))
    credit_point = Column(Float)
    components_json = Column(Text, default='[]')  # [{"key": ..., "label": ..., "value": ...}]

    student = relationship('StudentRecord', back_populates='marks')

    def __repr__(self):
        return f"<MarkRecord(subject={self.subject_code}, total={self.total_marks}, grade={self.letter_grade})>"

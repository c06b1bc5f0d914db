"""
=============================================================================
Dataset Store
=============================================================================

Keeps the parsed datasets of a session and the one currently being viewed.

parse_and_add_dataset() runs the primary parser and falls back to the
simplified one, exactly like parse_with_fallback(). Datasets live in memory;
when the store is given a SQLAlchemy session it also writes them to the
database and can restore them with load_saved_datasets().
=============================================================================
"""

import logging
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from dataset import Dataset, ParseResult
from dataset_db import clear_datasets, delete_dataset_record, list_datasets, save_dataset
from extract_results import parse_with_fallback

logger = logging.getLogger(__name__)

PARSE_FAILED = 'Parse failed'


class DatasetStore:
    """
    In-memory collection of parsed datasets.

    Attributes:
        datasets: Datasets in the order they were added
        current_dataset: Dataset being viewed, or None
        error: Message of the last failed parse, or None
    """

    def __init__(self, db_session: Optional[Session] = None,
                 id_factory: Optional[Callable[[], str]] = None):
        """
        Initialize the store.

        Args:
            db_session: Optional SQLAlchemy session for durable storage
            id_factory: Passed on to the parser
        """
        self.db_session = db_session
        self.id_factory = id_factory
        self.datasets: List[Dataset] = []
        self.current_dataset: Optional[Dataset] = None
        self.error: Optional[str] = None
        self.logger = logging.getLogger(__name__)

    def add_dataset(self, dataset: Dataset) -> None:
        """Append a dataset, make it current and save it when a session is set."""
        if self.db_session is not None:
            save_dataset(self.db_session, dataset)
        self.datasets.append(dataset)
        self.current_dataset = dataset
        self.error = None

    def parse_and_add_dataset(self, raw_text: str, name: Optional[str] = None) -> ParseResult:
        """
        Parse pasted text and add the dataset on success.

        Args:
            raw_text: Pasted result sheet
            name: Optional dataset name

        Returns:
            ParseResult of whichever parser produced the final answer
        """
        self.error = None
        result = parse_with_fallback(raw_text, name, self.id_factory)

        if result.success and result.dataset is not None:
            self.add_dataset(result.dataset)
            self.logger.info(
                f"Added dataset '{result.dataset.name}' ({result.rows_parsed} students, "
                f"{result.strategy} parser)"
            )
        else:
            self.error = ', '.join(result.errors) or PARSE_FAILED
            self.logger.warning(f"Parse failed: {self.error}")

        return result

    def set_current_dataset(self, dataset: Optional[Dataset]) -> None:
        self.current_dataset = dataset

    def get_dataset(self, dataset_id: str) -> Optional[Dataset]:
        for dataset in self.datasets:
            if dataset.id == dataset_id:
                return dataset
        return None

    def delete_dataset(self, dataset_id: str) -> None:
        """Remove a dataset; the current dataset is cleared if it was the one removed."""
        if self.db_session is not None:
            delete_dataset_record(self.db_session, dataset_id)
        self.datasets = [d for d in self.datasets if d.id != dataset_id]
        if self.current_dataset is not None and self.current_dataset.id == dataset_id:
            self.current_dataset = None

    def clear_all(self) -> None:
        if self.db_session is not None:
            clear_datasets(self.db_session)
        self.datasets = []
        self.current_dataset = None
        self.error = None

    def load_saved_datasets(self) -> int:
        """
        Replace the in-memory datasets with the ones saved in the database.

        Returns:
            Number of datasets loaded (0 without a session)
        """
        if self.db_session is None:
            return 0

        self.datasets = list_datasets(self.db_session)
        self.current_dataset = self.datasets[-1] if self.datasets else None
        self.logger.info(f"Loaded {len(self.datasets)} saved dataset(s)")
        return len(self.datasets)

"""Document capability used by the executor, and its openpyxl implementation.

The executor never touches openpyxl directly.  It talks to a
:class:`DocumentCapability`, which owns every sheet and cell; the
:class:`WorkbookDocument` implementation backs it with an in-memory
``openpyxl.Workbook`` that is saved on :meth:`~WorkbookDocument.sync`.
"""

from __future__ import annotations

import abc
import logging
from copy import copy
from pathlib import Path
from typing import Any, Optional, Sequence, Tuple, Union

import openpyxl
from openpyxl.cell.cell import MergedCell
from openpyxl.formula.translate import Translator
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from ..codes.errors import ContainerNotFoundError, DocumentOperationError

logger = logging.getLogger(__name__)


class DocumentCapability(abc.ABC):
    """Abstract set of sheet/cell operations the executor relies on.

    Row and column indexes are 1-based.  *container* arguments are whatever
    object :meth:`find_container` / :meth:`duplicate_container` hand back.
    """

    @abc.abstractmethod
    def find_container(self, name: str) -> Optional[Any]:
        """Return the container called *name*, or None."""

    @abc.abstractmethod
    def delete_container(self, name: str) -> None:
        ...

    @abc.abstractmethod
    def duplicate_container(self, template_name: str) -> Any:
        """Copy the container *template_name* and return the new copy."""

    @abc.abstractmethod
    def container_name(self, container: Any) -> str:
        ...

    @abc.abstractmethod
    def rename(self, container: Any, name: str) -> None:
        ...

    @abc.abstractmethod
    def get_last_used_row(self, container: Any) -> int:
        """Index of the last row holding any value; 0 for an empty container."""

    @abc.abstractmethod
    def clear_rows(self, container: Any, from_index: int, to_index: int) -> None:
        """Remove content and formatting from rows *from_index*..*to_index*."""

    @abc.abstractmethod
    def copy_block(
        self,
        source: Any,
        row_range: Tuple[int, int],
        dest: Any,
        dest_row_start: int,
        last_column: int,
    ) -> None:
        """Copy values, formulas and formatting of *row_range* into *dest*."""

    @abc.abstractmethod
    def write_cell(self, container: Any, row: int, col: int, value: Any) -> None:
        ...

    @abc.abstractmethod
    def write_column_run(
        self, container: Any, start_row: int, col: int, values: Sequence[Any]
    ) -> None:
        """Write *values* down column *col* starting at *start_row*."""

    @abc.abstractmethod
    def find_tagged_rows(
        self, container: Any, column: int, tag: str
    ) -> Optional[Tuple[int, int]]:
        """First and last row whose *column* cell equals *tag*, or None."""

    @abc.abstractmethod
    def last_row(self, container: Any) -> int:
        """Bottom of the container's allocated area (used or styled)."""

    def sync(self) -> None:
        """Commit pending mutations.  Default: nothing to commit."""


class WorkbookDocument(DocumentCapability):
    """:class:`DocumentCapability` over an ``openpyxl.Workbook``."""

    def __init__(self, workbook: Workbook, output_path: Optional[str] = None):
        self.wb = workbook
        self.output_path = Path(output_path) if output_path else None

    @classmethod
    def open(cls, path: Union[str, Path], output_path: Optional[str] = None) -> "WorkbookDocument":
        """Load *path* with formulas preserved (``data_only=False``)."""
        wb = openpyxl.load_workbook(str(path), data_only=False)
        return cls(wb, output_path=output_path)

    # -- containers ----------------------------------------------------------

    def find_container(self, name: str) -> Optional[Worksheet]:
        if name in self.wb.sheetnames:
            return self.wb[name]
        return None

    def delete_container(self, name: str) -> None:
        ws = self.find_container(name)
        if ws is None:
            raise ContainerNotFoundError(name)
        self.wb.remove(ws)
        logger.debug(f"Deleted worksheet '{name}'")

    def duplicate_container(self, template_name: str) -> Worksheet:
        template = self.find_container(template_name)
        if template is None:
            raise ContainerNotFoundError(template_name)
        return self.wb.copy_worksheet(template)

    def container_name(self, container: Worksheet) -> str:
        return container.title

    def rename(self, container: Worksheet, name: str) -> None:
        if name != container.title and name in self.wb.sheetnames:
            raise DocumentOperationError(f"Worksheet '{name}' already exists")
        try:
            container.title = name
        except ValueError as e:
            raise DocumentOperationError(f"Cannot rename worksheet to '{name}': {e}") from e

    # -- rows ----------------------------------------------------------------

    def get_last_used_row(self, container: Worksheet) -> int:
        last = 0
        for idx, row in enumerate(container.iter_rows(min_row=1, values_only=True), start=1):
            if any(v is not None and v != "" for v in row):
                last = idx
        return last

    def last_row(self, container: Worksheet) -> int:
        return container.max_row

    def clear_rows(self, container: Worksheet, from_index: int, to_index: int) -> None:
        if to_index < from_index:
            return
        for rng in list(container.merged_cells.ranges):
            if rng.min_row <= to_index and rng.max_row >= from_index:
                container.unmerge_cells(rng.coord)
        container.delete_rows(from_index, to_index - from_index + 1)
        for r in range(from_index, to_index + 1):
            container.row_dimensions.pop(r, None)

    def copy_block(
        self,
        source: Worksheet,
        row_range: Tuple[int, int],
        dest: Worksheet,
        dest_row_start: int,
        last_column: int,
    ) -> None:
        first, last = row_range
        offset = dest_row_start - first

        max_col = min(last_column, source.max_column)
        for row in source.iter_rows(min_row=first, max_row=last, min_col=1, max_col=max_col):
            for cell in row:
                if isinstance(cell, MergedCell):
                    continue
                target = dest.cell(row=cell.row + offset, column=cell.column)
                target.value = self._relocate(cell.value, cell.coordinate, target.coordinate)
                if cell.has_style:
                    target.font = copy(cell.font)
                    target.fill = copy(cell.fill)
                    target.border = copy(cell.border)
                    target.alignment = copy(cell.alignment)
                    target.protection = copy(cell.protection)
                    target.number_format = cell.number_format

        for r in range(first, last + 1):
            height = source.row_dimensions[r].height if r in source.row_dimensions else None
            if height is not None:
                dest.row_dimensions[r + offset].height = height

        for rng in list(source.merged_cells.ranges):
            if rng.min_row >= first and rng.max_row <= last and rng.max_col <= last_column:
                dest.merge_cells(
                    start_row=rng.min_row + offset,
                    start_column=rng.min_col,
                    end_row=rng.max_row + offset,
                    end_column=rng.max_col,
                )

    @staticmethod
    def _relocate(value: Any, origin: str, destination: str) -> Any:
        """Shift relative references of a formula copied to another cell."""
        if isinstance(value, str) and value.startswith("="):
            return Translator(value, origin=origin).translate_formula(destination)
        return value

    # -- cells ---------------------------------------------------------------

    def write_cell(self, container: Worksheet, row: int, col: int, value: Any) -> None:
        container.cell(row=row, column=col, value=value)

    def write_column_run(
        self, container: Worksheet, start_row: int, col: int, values: Sequence[Any]
    ) -> None:
        for i, value in enumerate(values):
            container.cell(row=start_row + i, column=col, value=value)

    def find_tagged_rows(
        self, container: Worksheet, column: int, tag: str
    ) -> Optional[Tuple[int, int]]:
        first = last = None
        for idx, (value,) in enumerate(
            container.iter_rows(min_row=1, min_col=column, max_col=column, values_only=True),
            start=1,
        ):
            if isinstance(value, str) and value.strip() == tag:
                if first is None:
                    first = idx
                last = idx
        if first is None:
            return None
        return first, last

    # -- commit --------------------------------------------------------------

    def sync(self) -> None:
        """Save the workbook when an output path is configured."""
        if self.output_path is None:
            return
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.wb.save(str(self.output_path))

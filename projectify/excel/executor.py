"""Executor that turns a validated code collection into workbook edits."""
import logging
from dataclasses import dataclass
from typing import Optional

from ..codes.errors import (
    DocumentOperationError,
    MissingTargetContext,
    TemplateBlockNotFoundError,
)
from ..config.models import Code, CodeCollection, ExecutorConfig, RunResult
from .document import DocumentCapability

logger = logging.getLogger(__name__)

TAB_TYPE = "TAB"
MODEL_TYPE = "MODEL"


@dataclass
class RunState:
    """Run-scoped interpreter state.  ``current_target`` is None until a TAB runs."""

    current_target: Optional[str] = None

    @property
    def has_target(self) -> bool:
        return self.current_target is not None


class CodeExecutor:
    """Interprets codes in collection order against a document.

    Every code is handled on its own: a failure is logged, recorded in the
    :class:`RunResult`, and the run moves on to the next code.  Nothing that
    already succeeded is rolled back.
    """

    def __init__(self, document: DocumentCapability, config: Optional[ExecutorConfig] = None):
        self.document = document
        self.config = config or ExecutorConfig()

    def execute(self, collection: CodeCollection) -> RunResult:
        """
        Run every code in *collection*.

        Steps per code:
        1. MODEL codes are skipped (not counted, state unchanged)
        2. TAB codes (re)create the destination sheet from the template
        3. Any other code needs a destination; without one it is reported
           as MissingTargetContext
        4. The code's template block is appended to the destination and
           its driver/assumption values injected
        5. The document is synced once per code
        """
        state = RunState()
        result = RunResult()

        for index, code in enumerate(collection.values()):
            code_type = code.base_type

            if code_type == MODEL_TYPE:
                logger.info("MODEL code type encountered - skipping")
                continue

            try:
                if code_type == TAB_TYPE:
                    name = self._run_tab(code, index)
                    self.document.sync()
                    state.current_target = name
                    result.created_targets.append(name)
                    logger.info(f"Tab created: {name}")
                    continue

                if not state.has_target:
                    raise MissingTargetContext(code_type)

                self._run_block(code, state.current_target)
                self.document.sync()
                result.processed_count += 1

            except Exception as e:
                kind = getattr(e, "kind", DocumentOperationError.kind)
                logger.error(f"Error processing code #{index} {code_type}: {e}")
                result.add_error(index, code_type, str(e), kind)

        logger.info(
            f"Run finished: {result.processed_count} processed, "
            f"{len(result.created_targets)} tabs, {len(result.errors)} errors"
        )
        return result

    # -- TAB -----------------------------------------------------------------

    def tab_name(self, code: Code, index: int) -> str:
        """Destination sheet name: ``label1`` or a positional fallback."""
        label = code.label(1).strip()
        return label or f"{self.config.fallback_tab_prefix}{index}"

    def _run_tab(self, code: Code, index: int) -> str:
        doc = self.document
        cfg = self.config
        name = self.tab_name(code, index)

        if name == cfg.template_sheet:
            raise DocumentOperationError(
                f"Tab name '{name}' would overwrite the template worksheet"
            )

        if doc.find_container(name) is not None:
            doc.delete_container(name)
            logger.debug(f"Existing worksheet '{name}' deleted")

        sheet = doc.duplicate_container(cfg.template_sheet)
        try:
            doc.rename(sheet, name)
        except DocumentOperationError:
            # a rejected TAB leaves no copy behind
            doc.delete_container(doc.container_name(sheet))
            raise

        # Drop the sample blocks the template carries below its header.
        bottom = doc.last_row(sheet)
        if bottom >= cfg.data_start_row:
            doc.clear_rows(sheet, cfg.data_start_row, bottom)
        return name

    # -- blocks --------------------------------------------------------------

    def _run_block(self, code: Code, target_name: str) -> int:
        """Append the template block for *code* to *target_name*.

        Returns the row the block was pasted at.
        """
        doc = self.document
        cfg = self.config

        template = doc.find_container(cfg.template_sheet)
        if template is None:
            raise DocumentOperationError(f"Template worksheet '{cfg.template_sheet}' not found")
        target = doc.find_container(target_name)
        if target is None:
            raise DocumentOperationError(f"Destination worksheet '{target_name}' not found")

        rows = doc.find_tagged_rows(template, cfg.tag_column, code.base_type)
        if rows is None:
            raise TemplateBlockNotFoundError(code.base_type, cfg.template_sheet)

        paste_row = doc.get_last_used_row(target) + 1
        doc.copy_block(template, rows, target, paste_row, cfg.last_column)
        logger.debug(
            f"Copied {code.base_type} rows {rows[0]}-{rows[1]} to {target_name}!{paste_row}"
        )

        if code.driver:
            doc.write_cell(target, paste_row, cfg.driver_column, code.driver)
        assumptions = code.assumption_values()
        if assumptions:
            doc.write_column_run(target, paste_row, cfg.assumptions_column, assumptions)
        return paste_row


def execute(
    collection: CodeCollection,
    document: DocumentCapability,
    config: Optional[ExecutorConfig] = None,
) -> RunResult:
    """Interpret *collection* against *document*; see :class:`CodeExecutor`."""
    return CodeExecutor(document, config).execute(collection)

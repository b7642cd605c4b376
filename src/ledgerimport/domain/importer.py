"""Import coordinator: runs an uploaded file through the whole pipeline.

bytes -> text or grid -> raw entries -> resolved accounts -> ledger entries
-> commit decision.

Bank statements and delimited exports allow partial success: entries with
unresolved accounts are kept, flagged and committed with null account
references for manual completion. Settlement forms are all-or-nothing: a
single unresolved account blocks the batch and every missing account is
reported at once.
"""

import logging
import re
from dataclasses import replace
from datetime import date
from typing import Any, Iterable, Optional

from ledgerimport.database.base import Database
from ledgerimport.domain.account import AccountService
from ledgerimport.domain.builder import TransactionBuilder
from ledgerimport.domain.delimited import DelimitedParser
from ledgerimport.domain.entities import (
    ChartAccount,
    ColumnMapping,
    FormHeader,
    ImportBatch,
    ImportFormat,
    ImportOptions,
    LedgerEntry,
    StatementHeader,
    Unresolved,
)
from ledgerimport.domain.errors import (
    NotFoundError,
    ValidationError,
    document_not_found,
    empty_account,
    unknown_format,
)
from ledgerimport.domain.fixed_layout import DEFAULT_TEMPLATE, FixedLayoutParser, FormTemplate
from ledgerimport.domain.parsing import SourceParser
from ledgerimport.domain.resolver import AccountResolver
from ledgerimport.domain.statement import StatementParser
from ledgerimport.utils.date_parser import period_date
from ledgerimport.utils.encoding import decode
from ledgerimport.utils.spreadsheet import is_xlsx

logger = logging.getLogger(__name__)

FORMAT_ALIASES = {
    "statement": ImportFormat.STATEMENT,
    "mt940": ImportFormat.STATEMENT,
    "sta": ImportFormat.STATEMENT,
    "delimited": ImportFormat.DELIMITED,
    "csv": ImportFormat.DELIMITED,
    "txt": ImportFormat.DELIMITED,
    "form": ImportFormat.FIXED_LAYOUT,
    "xlsx": ImportFormat.FIXED_LAYOUT,
    "fixed": ImportFormat.FIXED_LAYOUT,
}

STATEMENT_MARKER = re.compile(r"^:(20|25|61):", re.MULTILINE)


def resolve_format(hint: ImportFormat | str) -> ImportFormat:
    """Map a format hint or file extension to an ImportFormat.

    Raises:
        ValidationError: If the hint is not recognized
    """
    if isinstance(hint, ImportFormat):
        return hint
    key = hint.strip().lower().lstrip(".")
    if key not in FORMAT_ALIASES:
        raise ValidationError(unknown_format(hint))
    return FORMAT_ALIASES[key]


def guess_format(filename: str, data: bytes) -> ImportFormat:
    """Guess the format of an uploaded file from its content and extension.

    Workbooks are forms, text with statement tags is a statement, and
    anything else is treated by its extension, defaulting to delimited text.
    """
    if is_xlsx(data):
        return ImportFormat.FIXED_LAYOUT
    if STATEMENT_MARKER.search(decode(data[:4096])):
        return ImportFormat.STATEMENT
    extension = filename.rsplit(".", 1)[-1] if "." in filename else ""
    return FORMAT_ALIASES.get(extension.lower(), ImportFormat.DELIMITED)


def missing_accounts(entries: Iterable[LedgerEntry], include_empty: bool = False) -> list[str]:
    """Distinct unresolved account tokens, in order of first appearance.

    With ``include_empty``, sides that carry no token at all are listed under
    a label naming the side, so a blocked batch always names every gap.
    """
    missing: list[str] = []
    for entry in entries:
        for side, account in (("debit", entry.debit_account), ("credit", entry.credit_account)):
            if not isinstance(account, Unresolved):
                continue
            label = account.token
            if not label:
                if not include_empty:
                    continue
                label = empty_account(side)
            if label not in missing:
                missing.append(label)
    return missing


class ImportService:
    """Service for importing financial documents into the ledger."""

    def __init__(self, db: Database, template: FormTemplate = DEFAULT_TEMPLATE):
        """Initialize import service.

        Args:
            db: Database instance
            template: Cell map used for settlement forms
        """
        self.db = db
        self.template = template
        self.account_service = AccountService(db)

    def create_parser(
        self,
        fmt: ImportFormat,
        options: ImportOptions,
        mapping: Optional[ColumnMapping] = None,
    ) -> SourceParser:
        """Create the parser for a format, configured from the options."""
        if fmt is ImportFormat.STATEMENT:
            return StatementParser(
                local_account=options.bank_account,
                counter_account=options.counter_account,
                default_date=options.document_date,
            )
        if fmt is ImportFormat.DELIMITED:
            return DelimitedParser(
                mapping=mapping,
                default_date=options.document_date,
                counter_account=options.counter_account,
            )
        return FixedLayoutParser(template=self.template, today=options.document_date)

    def run(
        self,
        source: Any,
        fmt: ImportFormat | str,
        chart: Iterable[ChartAccount],
        mapping: Optional[ColumnMapping] = None,
        options: Optional[ImportOptions] = None,
    ) -> ImportBatch:
        """Run the pipeline without committing anything.

        Args:
            source: Raw bytes, decoded text, or a cell grid for forms
            fmt: Import format or format hint
            chart: Chart-of-accounts snapshot to resolve against
            mapping: Column roles for delimited text; suggested when None
            options: Per-run settings

        Returns:
            ImportBatch ready for preview; ``blocked`` is set when the format's
            policy forbids committing it
        """
        fmt = resolve_format(fmt)
        options = options or ImportOptions()
        parser = self.create_parser(fmt, options, mapping)

        if isinstance(source, bytes):
            raw_entries = parser.parse_bytes(source)
        else:
            raw_entries = parser.parse(source)

        usable = [raw for raw in raw_entries if raw.is_usable()]
        discarded = parser.discarded_rows + len(raw_entries) - len(usable)

        resolver = AccountResolver(chart)
        builder = TransactionBuilder(
            currency=options.currency,
            exchange_rate=options.exchange_rate,
            default_date=options.document_date,
        )
        entries = [
            builder.build(
                raw,
                resolver.resolve(raw.primary_account_token),
                resolver.resolve(raw.secondary_account_token),
                display_order=order,
            )
            for order, raw in enumerate(usable, start=1)
        ]

        batch = ImportBatch(
            format=fmt,
            entries=entries,
            missing_accounts=missing_accounts(entries),
            mapping=getattr(parser, "mapping_used", None),
            header=parser.header,
            discarded_rows=discarded,
            diagnostics=list(parser.diagnostics),
            document_name=options.document_name
            or self._document_name(fmt, parser.header, options.document_date),
        )
        batch.blocked = fmt.blocks_on_unresolved and batch.error_count > 0

        if batch.blocked:
            batch.missing_accounts = missing_accounts(entries, include_empty=True)
            logger.warning(
                "Import blocked: %d entries with unresolved accounts (%s)",
                batch.error_count,
                ", ".join(batch.missing_accounts),
            )
        else:
            logger.info(
                "Prepared %d entries (%d need account completion, %d rows discarded)",
                len(batch.entries),
                batch.error_count,
                batch.discarded_rows,
            )
        return batch

    def import_file(
        self,
        data: bytes,
        format_hint: ImportFormat | str,
        mapping: Optional[ColumnMapping] = None,
        options: Optional[ImportOptions] = None,
        commit: bool = True,
    ) -> ImportBatch:
        """Import an uploaded file.

        The chart is read once into a snapshot, the pipeline runs against it
        and, unless blocked or empty, the batch is committed as one document.

        Args:
            data: Uploaded file content
            format_hint: Format name or file extension
            mapping: Column roles for delimited text; ignored for other formats
            options: Per-run settings
            commit: False to only preview the batch

        Returns:
            The ImportBatch, with ``committed`` and ``document_number`` set
            when it was written

        Raises:
            ValidationError: If the format hint or mapping is invalid
            SQLAlchemyError: If the ledger store fails; nothing is retried
        """
        fmt = resolve_format(format_hint)
        options = options or ImportOptions()
        chart = self.account_service.chart_snapshot()
        batch = self.run(
            data,
            fmt,
            chart,
            mapping=mapping if fmt is ImportFormat.DELIMITED else None,
            options=options,
        )
        if commit:
            self.commit(batch, options)
        return batch

    def commit(self, batch: ImportBatch, options: Optional[ImportOptions] = None) -> ImportBatch:
        """Write a prepared batch as a single document.

        Blocked and empty batches are left uncommitted.

        Raises:
            ValidationError: If no location is known for document numbering
        """
        options = options or ImportOptions()
        if batch.blocked:
            return batch
        if not batch.entries:
            batch.diagnostics.append("No valid entries found, nothing was committed")
            return batch

        document_date = options.document_date
        location = options.location
        if isinstance(batch.header, FormHeader):
            document_date = period_date(batch.header.year, batch.header.month)
            location = location or batch.header.location_code
        if not location:
            raise ValidationError("A location is required to number the document")

        currency = batch.entries[0].currency
        document_number = self.db.allocate_document_number(
            location, document_date.year, document_date.month
        )
        self.db.commit_entries(
            document_number=document_number,
            name=batch.document_name or document_number,
            document_date=document_date,
            location=location,
            currency=currency,
            entries=batch.committable_entries,
        )
        batch.document_number = document_number
        batch.committed = True
        logger.info("Committed %d entries as document %s", len(batch.entries), document_number)
        return batch

    def rederive_document(
        self,
        document_number: str,
        options: Optional[ImportOptions] = None,
        commit: bool = False,
        document_name: Optional[str] = None,
    ) -> ImportBatch:
        """Build a new batch from an already-posted document.

        Each posted entry becomes one balanced pair against the current
        chart; split postings collapse to their larger amount.

        Args:
            document_number: Number of the posted document
            options: Settings for the new document; the source location is used when unset
            commit: Whether to write the result as a new document
            document_name: Name of the new document (default "Copy of <name>")

        Raises:
            NotFoundError: If the document does not exist
        """
        document = self.db.get_document_by_number(document_number)
        if document is None:
            raise NotFoundError(document_not_found(document_number))

        options = options or ImportOptions(location=document.location)
        resolver = AccountResolver(self.account_service.chart_snapshot())
        builder = TransactionBuilder(currency=options.currency)
        entries = [
            builder.rederive(
                posted,
                resolver.resolve(posted.debit_account_number),
                resolver.resolve(posted.credit_account_number),
                display_order=order,
            )
            for order, posted in enumerate(self.db.list_document_entries(document.id), start=1)
        ]

        batch = ImportBatch(
            format=None,
            entries=entries,
            missing_accounts=missing_accounts(entries),
            document_name=document_name
            or options.document_name
            or f"Copy of {document.name}",
        )
        if commit:
            self.commit(batch, replace(options, location=options.location or document.location))
        return batch

    @staticmethod
    def _document_name(
        fmt: ImportFormat,
        header: Optional[StatementHeader | FormHeader],
        document_date: date,
    ) -> str:
        if isinstance(header, FormHeader):
            return header.document_name
        if isinstance(header, StatementHeader):
            parts = [part for part in (header.statement_number, header.account_reference) if part]
            return " - ".join(["Statement", *parts])
        return f"Import {fmt.value} - {document_date.isoformat()}"

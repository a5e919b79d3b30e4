"""Render the outcome of a run as a document.

The report is what makes the catalog useful as documentation:
for each operation it shows what the operation does, how every
backend implements it and whether they all agreed on the result.

Two formats are supported:

* ``markdown``: headings, a summary table and fenced code blocks.
* ``text``: the same content as plain text, for terminals.

Rendering is a pure function of the catalog and of the results,
neither of them is modified.
"""

from typing import Sequence

from .backends import BACKENDS
from .catalog import Operation
from .equivalence import EquivalenceResult
from .utils.tabulate import tabulate

__all__ = ("render", "render_report", "render_catalog", "FORMATS")

FORMATS = ("markdown", "text")


class _Writer:
    """Accumulates the lines of a document in a given format."""

    def __init__(self, fmt: str) -> None:
        if fmt not in FORMATS:
            raise ValueError(f"Unsupported format {fmt!r}, expected one of {FORMATS}")
        self.fmt = fmt
        self.lines: list[str] = []

    def heading(self, text: str, level: int = 1) -> None:
        if self.fmt == "markdown":
            self.lines.append(f"{'#' * level} {text}")
        else:
            self.lines.append(text)
            self.lines.append(("=" if level == 1 else "-") * len(text))
        self.lines.append("")

    def paragraph(self, text: str) -> None:
        self.lines.append(text)
        self.lines.append("")

    def bullets(self, items: Sequence[str]) -> None:
        self.lines.extend(f"- {item}" for item in items)
        self.lines.append("")

    def code(self, text: str, language: str = "") -> None:
        if self.fmt == "markdown":
            self.lines.append(f"```{language}")
            self.lines.extend(text.splitlines())
            self.lines.append("```")
        else:
            self.lines.extend(f"    {line}" for line in text.splitlines())
        self.lines.append("")

    def table(self, header: list[str], rows: list[list[str]]) -> None:
        if self.fmt == "markdown":
            self.lines.append("| " + " | ".join(header) + " |")
            self.lines.append("|" + "|".join(" --- " for _ in header) + "|")
            self.lines.extend("| " + " | ".join(row) + " |" for row in rows)
        else:
            widths = [max(len(r[idx]) for r in [header] + rows) for idx in range(len(header))]
            for row in [header, ["-" * w for w in widths]] + rows:
                self.lines.append(
                    "  ".join(cell.ljust(widths[idx]) for idx, cell in enumerate(row)).rstrip()
                )
        self.lines.append("")

    def render(self) -> str:
        return "\n".join(self.lines).rstrip() + "\n"


def _backend_cell(result: EquivalenceResult | None, backend: str) -> str:
    """Short status of a backend for an operation."""
    if result is None:
        return "not run"
    if backend in result.skipped:
        return "unsupported"
    if backend in result.errors:
        return "error"
    if backend not in result.row_counts:
        return "-"
    cell = f"{result.row_counts[backend]} rows"
    if any(mismatch.backend == backend for mismatch in result.mismatches):
        cell += ", mismatch"
    return cell


def render(
    catalog: Sequence[Operation],
    results: Sequence[EquivalenceResult],
    backends: Sequence[str] | None = None,
    fmt: str = "markdown",
    max_rows: int = 10,
    notes: Sequence[str] = (),
) -> str:
    """Render the catalog and the comparison results as a document.

    :param catalog: The operations, in the order they were run.
    :param results: The comparison results, operations without
                    a result are reported as not run.
    :param backends: The ids of the backends that took part in the run,
                     defaults to all the registered ones.
    :param fmt: One of :data:`FORMATS`.
    :param max_rows: How many rows of each result to preview.
    :param notes: Additional lines to show after the summary.
    """
    backends = list(backends) if backends is not None else list(BACKENDS)
    by_name = {result.operation: result for result in results}
    writer = _Writer(fmt)

    writer.heading("Operation catalog comparison")
    writer.paragraph(f"Backends: {', '.join(backends)}")

    passed = sum(1 for result in results if result.passed)
    failed = len(results) - passed
    not_run = sum(1 for operation in catalog if operation.name not in by_name)
    writer.paragraph(f"Passed: {passed}, failed: {failed}, not run: {not_run}")
    if notes:
        writer.bullets(list(notes))

    writer.table(
        ["operation", "status"] + backends,
        [
            [operation.name, by_name[operation.name].status if operation.name in by_name else "not run"]
            + [_backend_cell(by_name.get(operation.name), backend) for backend in backends]
            for operation in catalog
        ],
    )

    for operation in catalog:
        _render_operation(writer, operation, by_name.get(operation.name), backends, max_rows)

    return writer.render()


def _render_operation(
    writer: _Writer,
    operation: Operation,
    result: EquivalenceResult | None,
    backends: Sequence[str],
    max_rows: int,
) -> None:
    writer.heading(operation.name, level=2)
    writer.paragraph(operation.description)

    details = [f"inputs: {', '.join(operation.inputs)}", f"output: {operation.schema}"]
    if operation.ordered:
        details.append("row order is part of the result")
    if operation.materialize:
        details.append(f"result published as {operation.materialize}")
    writer.bullets(details)

    if result is None:
        writer.paragraph("Status: not run")
    else:
        status = f"Status: {result.status}"
        if result.canonical is not None:
            status += f" (compared against {result.canonical})"
        writer.paragraph(status)

        problems = [str(error) for error in result.errors.values()]
        problems.extend(str(mismatch) for mismatch in result.mismatches)
        if problems:
            writer.bullets(problems)

    for backend in backends:
        backend_class = BACKENDS[backend]
        writer.heading(f"{operation.name} with {backend}", level=3)
        if not backend_class.supports(operation.name):
            writer.paragraph("Not supported by this backend.")
            continue
        expression = backend_class.expressions[operation.name]
        writer.code(
            backend_class.source(operation.name),
            language="sql" if isinstance(expression, str) else "python",
        )

    if result is not None and result.table is not None:
        writer.paragraph("Result:")
        writer.code(tabulate(result.table, max_rows=max_rows))


def render_report(report, fmt: str = "markdown", max_rows: int = 10) -> str:
    """Render a :class:`dataparity.runner.RunReport`."""
    notes = []
    if report.load_error is not None:
        notes.append(f"Unable to load the seed data, nothing was run: {report.load_error}")
    if report.halted:
        notes.append("The run stopped at the first mismatch.")
    for backend, operations in report.unsupported.items():
        if operations:
            notes.append(f"{backend} does not support: {', '.join(operations)}")
    return render(
        report.catalog,
        report.results,
        backends=report.config.backends,
        fmt=fmt,
        max_rows=max_rows,
        notes=notes,
    )


def render_catalog(catalog: Sequence[Operation], backends: Sequence[str] | None = None) -> str:
    """List the operations of the catalog and the backends supporting them."""
    backends = list(backends) if backends is not None else list(BACKENDS)
    writer = _Writer("text")
    writer.table(
        ["operation"] + backends + ["description"],
        [
            [operation.name]
            + ["yes" if BACKENDS[backend].supports(operation.name) else "no" for backend in backends]
            + [operation.description]
            for operation in catalog
        ],
    )
    return writer.render()

"""Shell commands exposing DataParity functionalities.

This module contains the shell commands that can be used to interact with DataParity.

Compare
=======

``dataparity`` runs the whole catalog of operations on the backends
and prints a report of the results::

    dataparity --format text

It can be restricted to some backends, and can write the report to a file::

    dataparity -b sql-engine -b polars --stop-on-mismatch -o report.md

Use ``dataparity --list`` to see the operations and which backends support them.
"""

import sys
import time

from dataparity.backends import BACKENDS, get_backend
from dataparity.catalog import CATALOG
from dataparity.datasets import load

try:
    repeat = int(sys.argv[1])
except IndexError:
    repeat = 100

tables = load()
for backend_id in BACKENDS:
    backend = get_backend(backend_id)
    with backend.session():
        # Materialized tables are produced by the backend itself here,
        # not shared like the runner does.
        start = time.time()
        for _ in range(repeat):
            inputs = dict(tables)
            for operation in CATALOG:
                if not backend.supports(operation.name):
                    continue
                result = backend.execute(operation, inputs)
                if operation.materialize:
                    inputs[operation.materialize] = result
        elapsed = time.time() - start
    print(f"{backend_id}: {elapsed / repeat * 1000:.1f}ms per catalog run")

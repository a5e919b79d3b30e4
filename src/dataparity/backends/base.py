"""Base class and errors for backends.

A backend wraps one data processing engine and knows how
to run the operations of the catalog with it.
Every backend exposes the same surface::

    with backend.session():
        table = backend.execute(operation, inputs)

``inputs`` and the returned ``table`` are always :class:`pyarrow.Table`
objects. Each backend converts the inputs to its native representation,
runs the expression registered for the operation and converts the result
back to Arrow, normalizing it to the schema declared by the operation
through :func:`dataparity.schema.normalize`.

Expressions are registered per backend class through
the :meth:`Backend.expression` decorator::

    @PandasBackend.expression("filter_and")
    def filter_and(tables):
        cars = tables["cars"]
        return cars[(cars["mpg"] == 21) & (cars["cyl"] == 6)]
"""

import abc
import contextlib
import logging
from typing import Any, Callable, Iterator, Mapping

import pyarrow as pa

from ..catalog import Operation
from ..schema import normalize
from ..utils import inspect

logger = logging.getLogger(__name__)


class UnsupportedOperationError(Exception):
    """A backend has no expression registered for an operation."""

    def __init__(self, backend: str, operation: str) -> None:
        super().__init__(f"Backend {backend!r} does not support operation {operation!r}")
        self.backend = backend
        self.operation = operation


class BackendExecutionError(Exception):
    """The underlying engine failed while executing an operation.

    The original exception, if any, is available as ``__cause__``.
    """

    def __init__(self, backend: str, operation: str, reason: str | Exception) -> None:
        super().__init__(f"Backend {backend!r} failed on {operation!r}: {reason}")
        self.backend = backend
        self.operation = operation
        self.reason = str(reason)


class Backend(abc.ABC):
    """A data processing engine able to run catalog operations.

    Subclasses must provide an ``id``, implement the conversions
    from and to Arrow and the way an expression is run.
    Engines that keep state, like a database connection,
    can override :meth:`open_session` and :meth:`close_session`.
    """

    id: str = ""
    expressions: dict[str, Any] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        # Each backend has its own registry of expressions.
        cls.expressions = {}

    def __init__(self) -> None:
        self._session: Any = None

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id!r}, expressions={len(self.expressions)})"

    @classmethod
    def register(cls, name: str, expression: Any) -> None:
        """Register the expression implementing an operation.

        :param name: The name of the operation in the catalog.
        :param expression: What the backend will run, a SQL string
                           or a Python callable depending on the backend.
        """
        if name in cls.expressions:
            raise ValueError(f"Operation {name!r} already registered for {cls.id!r}")
        cls.expressions[name] = expression

    @classmethod
    def expression(cls, name: str) -> Callable[[Callable], Callable]:
        """Decorator registering a function as the expression of an operation."""

        def decorator(func: Callable) -> Callable:
            cls.register(name, func)
            return func

        return decorator

    @classmethod
    def supports(cls, name: str) -> bool:
        """If the backend has an expression for the operation."""
        return name in cls.expressions

    @classmethod
    def source(cls, name: str) -> str:
        """The source code of the expression of an operation."""
        if not cls.supports(name):
            raise UnsupportedOperationError(cls.id, name)
        return inspect.get_source(cls.expressions[name])

    @contextlib.contextmanager
    def session(self) -> Iterator["Backend"]:
        """Open a session, guaranteed to be closed on exit.

        Operations can only be executed while a session is open.
        """
        if self._session is not None:
            raise RuntimeError(f"A session is already open for {self.id!r}")
        self._session = self.open_session()
        logger.debug("Opened session for %s", self.id)
        try:
            yield self
        finally:
            session, self._session = self._session, None
            self.close_session(session)
            logger.debug("Closed session for %s", self.id)

    def open_session(self) -> Any:
        """Acquire the resources needed to run operations."""
        return {}

    def close_session(self, session: Any) -> None:
        """Release what :meth:`open_session` acquired."""

    def execute(self, operation: Operation, inputs: Mapping[str, pa.Table]) -> pa.Table:
        """Run an operation and return its normalized result.

        :param operation: The operation to run.
        :param inputs: The available tables, must include
                       every table listed in ``operation.inputs``.
        """
        if not self.supports(operation.name):
            raise UnsupportedOperationError(self.id, operation.name)
        if self._session is None:
            raise RuntimeError(f"No session open for {self.id!r}, use Backend.session()")

        missing = [name for name in operation.inputs if name not in inputs]
        if missing:
            raise BackendExecutionError(self.id, operation.name, f"missing input tables {missing}")

        expression = self.expressions[operation.name]
        try:
            native = {name: self.from_arrow(name, inputs[name]) for name in operation.inputs}
            result = self.run(expression, native)
            return normalize(self.to_arrow(result), operation.schema)
        except Exception as e:
            raise BackendExecutionError(self.id, operation.name, e) from e

    @abc.abstractmethod
    def from_arrow(self, name: str, table: pa.Table) -> Any:
        """Convert an input table to the native representation of the backend."""
        ...

    @abc.abstractmethod
    def to_arrow(self, result: Any) -> pa.Table:
        """Convert a native result back to a :class:`pyarrow.Table`."""
        ...

    @abc.abstractmethod
    def run(self, expression: Any, tables: dict[str, Any]) -> Any:
        """Run an expression on the native input tables."""
        ...


class FrameBackend(Backend):
    """Base for backends whose expressions are plain Python functions.

    The functions receive the dictionary of native input
    tables and return the native result table.
    """

    def run(self, expression: Callable, tables: dict[str, Any]) -> Any:
        return expression(tables)

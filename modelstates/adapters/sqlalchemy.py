"""SQLAlchemy binding for entities with state fields.

Map the stored short name as an ordinary column and expose it through a
:class:`~modelstates.kernel.fields.StateField`::

    class Payment(Base, HasStates):
        __tablename__ = "payments"

        id: Mapped[int] = mapped_column(primary_key=True)
        _state: Mapped[str | None] = mapped_column("state", String(64))

        state = StateField(PaymentState)

    install_default_states(Payment)

    stmt = Payment.where_state(StateQuery(select(Payment), Payment), "state", [Paid]).statement
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

from sqlalchemy import event

from modelstates.kernel.exceptions import ConfigurationError
from modelstates.kernel.logging import get_logger

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Select

    from modelstates.kernel.has_states import HasStates

logger = get_logger(__name__)


def state_column(model: type[HasStates], column: str) -> Any:
    """Return the SQL expression for a state field or table column of *model*.

    *column* may be qualified with the table name. State field names are
    looked up first, then columns of the mapped table.
    """
    name = column.rsplit(".", 1)[-1]
    descriptor = model.state_fields().get(name)
    if descriptor is not None and descriptor.attribute is not None:
        return getattr(model, descriptor.attribute)

    table = getattr(model, "__table__", None)
    if table is not None and name in table.c:
        return table.c[name]
    raise ConfigurationError(model.__qualname__, f"no state column named '{name}'")


def state_filter(
    model: type[HasStates], column: str, states: object, negate: bool = False
) -> ColumnElement[bool]:
    """Build an ``IN`` / ``NOT IN`` clause for *states* on *column*."""
    field = column.rsplit(".", 1)[-1]
    names = model.get_state_names_for_query(field, states)
    expression = state_column(model, column)
    return expression.not_in(names) if negate else expression.in_(names)


class StateQuery:
    """Adapts a ``Select`` to the ``where_in`` / ``where_not_in`` query protocol."""

    def __init__(self, statement: Select[Any], model: type[HasStates]) -> None:
        self.statement = statement
        self.model = model

    def where_in(self, column: str, values: list[str]) -> Self:
        return type(self)(
            self.statement.where(state_column(self.model, column).in_(values)), self.model
        )

    def where_not_in(self, column: str, values: list[str]) -> Self:
        return type(self)(
            self.statement.where(state_column(self.model, column).not_in(values)), self.model
        )


def _apply_default_states(_mapper: Any, _connection: Any, target: HasStates) -> None:
    target.apply_default_states()


def install_default_states(model: type[HasStates]) -> None:
    """Apply default states to *model* rows (and subclasses) right before INSERT."""
    if event.contains(model, "before_insert", _apply_default_states):
        return
    event.listen(model, "before_insert", _apply_default_states, propagate=True)
    logger.debug("Installed default-state listener on {model}", model=model.__qualname__)


def uninstall_default_states(model: type[HasStates]) -> None:
    """Remove the listener added by :func:`install_default_states`."""
    if event.contains(model, "before_insert", _apply_default_states):
        event.remove(model, "before_insert", _apply_default_states)

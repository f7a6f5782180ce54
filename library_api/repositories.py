"""
Persistence gateway: one repository per model over a SQLAlchemy session.

Filters are mappings of column name to either a value (``None`` matches NULL)
or an operator mapping such as ``{"$in": [...]}`` or ``{"$ne": value}``.
Updates are partial ``{column: value}`` mappings applied with a single
UPDATE statement, so concurrent writers touching different columns never
overwrite each other.
"""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from library_api.errors import ConflictError, NotFoundError, PersistenceError
from library_api.models.base import utcnow

logger = logging.getLogger(__name__)

_OPERATORS = {
    '$in': lambda column, operand: column.in_(operand),
    '$nin': lambda column, operand: ~column.in_(operand),
    '$ne': lambda column, operand: column.isnot(None) if operand is None else column != operand,
}


class Repository:
    """CRUD access to one model."""

    def __init__(self, session, model):
        self.session = session
        self.model = model

    def _clauses(self, filters):
        clauses = []
        for field, condition in (filters or {}).items():
            column = getattr(self.model, field)
            if isinstance(condition, dict):
                for operator, operand in condition.items():
                    try:
                        clauses.append(_OPERATORS[operator](column, operand))
                    except KeyError:
                        raise ValueError(f"Unsupported filter operator {operator!r}") from None
            elif condition is None:
                clauses.append(column.is_(None))
            else:
                clauses.append(column == condition)
        return clauses

    def _query(self, filters):
        return self.session.query(self.model).filter(*self._clauses(filters))

    def _fail(self, action, exc):
        self.session.rollback()
        logger.error("Failed to %s %s: %s", action, self.model.__tablename__, exc)
        raise PersistenceError(f"Failed to {action} {self.model.__tablename__}") from exc

    def find_one(self, filters):
        try:
            return self._query(filters).first()
        except SQLAlchemyError as exc:
            self._fail('read', exc)

    def get(self, id):
        try:
            return self.session.get(self.model, id)
        except SQLAlchemyError as exc:
            self._fail('read', exc)

    def get_or_raise(self, id, message=None):
        """Fetch by primary key or raise NotFoundError."""
        obj = self.get(id)
        if obj is None:
            raise NotFoundError(message or f"{self.model.__name__} not found")
        return obj

    def find_many(self, filters=None, order_by=None):
        try:
            query = self._query(filters)
            if order_by is not None:
                query = query.order_by(order_by)
            return query.all()
        except SQLAlchemyError as exc:
            self._fail('read', exc)

    def insert_one(self, obj):
        """
        Insert a new row and commit.

        Returns:
            int: The generated primary key.
        """
        try:
            self.session.add(obj)
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise ConflictError(f"{self.model.__name__} already exists") from exc
        except SQLAlchemyError as exc:
            self._fail('insert into', exc)
        return obj.id

    def update_one(self, filters, values):
        """
        Apply a partial update to the first row matching ``filters``.

        Returns:
            int: Number of rows updated (0 or 1).
        """
        values = dict(values)
        if 'updated_at' in self.model.__table__.columns:
            values.setdefault('updated_at', utcnow())
        try:
            target = self._query(filters).with_entities(self.model.id).first()
            if target is None:
                return 0
            count = (
                self._query(filters)
                .filter(self.model.id == target.id)
                .update(values, synchronize_session='fetch')
            )
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise ConflictError(f"{self.model.__name__} already exists") from exc
        except SQLAlchemyError as exc:
            self._fail('update', exc)
        return count

    def delete_one(self, filters):
        """
        Delete the first row matching ``filters``.

        Returns:
            int: Number of rows deleted (0 or 1).
        """
        try:
            obj = self._query(filters).first()
            if obj is None:
                return 0
            self.session.delete(obj)
            self.session.commit()
        except SQLAlchemyError as exc:
            self._fail('delete from', exc)
        return 1

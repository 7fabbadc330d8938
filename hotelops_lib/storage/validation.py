"""Per-entity record validation.

Rules live in a table keyed by entity type; each rule set is a pydantic
model that allows extra fields and only constrains the ones it names.
Entity types with no registered model pass validation unconditionally,
which keeps the store open to new collections but means those records
are unchecked. Call sites introducing a new entity type should use
`has_rules` and register a model rather than rely on the pass-through.
"""
from __future__ import annotations

import logging
from threading import RLock
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Set, Type, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError

logger = logging.getLogger(__name__)

NonEmptyStr = Annotated[str, Field(min_length=1)]
# Strict members: bools and numeric strings are rejected.
NonNegative = Union[Annotated[StrictInt, Field(ge=0)], Annotated[StrictFloat, Field(ge=0)]]
Positive = Union[Annotated[StrictInt, Field(gt=0)], Annotated[StrictFloat, Field(gt=0)]]


class EntityRules(BaseModel):
    """Base for rule sets: unknown fields are kept, reserved fields optional."""

    model_config = ConfigDict(extra='allow')

    id: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None


class OrderRules(EntityRules):
    items: Annotated[List[Any], Field(min_length=1)]
    tableId: NonEmptyStr
    total: NonNegative


class DishRules(EntityRules):
    name: NonEmptyStr
    price: NonNegative


class ExpenseRules(EntityRules):
    amount: Positive
    category: NonEmptyStr
    description: NonEmptyStr


class InventoryRules(EntityRules):
    name: NonEmptyStr
    quantity: NonNegative
    unit: NonEmptyStr


class HotelRoomRules(EntityRules):
    roomNumber: NonEmptyStr
    status: Literal['available', 'occupied', 'maintenance', 'cleaning']


class KtvRoomRules(EntityRules):
    name: NonEmptyStr
    status: Literal['available', 'occupied', 'maintenance']


class SignBillAccountRules(EntityRules):
    accountName: NonEmptyStr
    creditLimit: NonNegative


class PartnerAccountRules(EntityRules):
    name_cn: NonEmptyStr
    name_en: NonEmptyStr
    contact_person: NonEmptyStr
    phone: NonEmptyStr
    credit_limit: NonNegative
    current_balance: NonNegative


DEFAULT_RULES: Dict[str, Type[EntityRules]] = {
    'orders': OrderRules,
    'dishes': DishRules,
    'expenses': ExpenseRules,
    'inventory': InventoryRules,
    'hotel_rooms': HotelRoomRules,
    'ktv_rooms': KtvRoomRules,
    'sign_bill_accounts': SignBillAccountRules,
    'partner_accounts': PartnerAccountRules,
}


class Validator:
    """Rule table plus the `validate` entry point used before every write."""

    def __init__(self, rules: Optional[Mapping[str, Type[EntityRules]]] = None) -> None:
        self._lock = RLock()
        self._rules: Dict[str, Type[EntityRules]] = dict(DEFAULT_RULES if rules is None else rules)
        self._unchecked_seen: Set[str] = set()

    def register_rules(self, entity_type: str, model: Type[EntityRules]) -> None:
        with self._lock:
            replaced = entity_type in self._rules
            self._rules[entity_type] = model
            self._unchecked_seen.discard(entity_type)
        logger.info("%s validation rules for entity type '%s'", 'Replaced' if replaced else 'Registered', entity_type)

    def has_rules(self, entity_type: str) -> bool:
        with self._lock:
            return entity_type in self._rules

    def entity_types(self) -> List[str]:
        with self._lock:
            return sorted(self._rules)

    def validate(self, entity_type: str, record: Mapping[str, Any]) -> None:
        """Raise `ValidationError` when `record` breaks the rules for `entity_type`."""
        with self._lock:
            model = self._rules.get(entity_type)
            if model is None:
                if entity_type not in self._unchecked_seen:
                    self._unchecked_seen.add(entity_type)
                    logger.debug("No validation rules registered for '%s'; accepting records unchecked", entity_type)
                return

        if not isinstance(record, Mapping):
            raise ValidationError(entity_type, '__root__', 'record must be a mapping')

        try:
            model.model_validate(dict(record))
        except PydanticValidationError as exc:
            errors = [
                {'field': str(err['loc'][0]) if err['loc'] else '__root__', 'message': err['msg']}
                for err in exc.errors()
            ]
            first = errors[0]
            logger.debug("Rejected %s record: %s", entity_type, errors)
            raise ValidationError(entity_type, first['field'], first['message'], errors) from exc


_default_validator = Validator()


def default_validator() -> Validator:
    return _default_validator


def validate(entity_type: str, record: Mapping[str, Any]) -> None:
    _default_validator.validate(entity_type, record)


def register_rules(entity_type: str, model: Type[EntityRules]) -> None:
    _default_validator.register_rules(entity_type, model)


def has_rules(entity_type: str) -> bool:
    return _default_validator.has_rules(entity_type)

"""
Reconciliación one-way: clasifica registros source/target en
create / update / delete / unchanged.

Reglas:
- El matching se hace por el valor (como string) del key field.
- Registros sin valor de clave se omiten con warning (nunca es fatal).
- Claves duplicadas: gana el último visto, en source y en target.
- Un registro target emparejado queda "visto" aunque no se actualice; los
  no vistos son "extra" y solo se borran si delete_extra está activo.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from loguru import logger

from tablesync.domain.entities.field_map import FieldMap
from tablesync.domain.entities.field_value import values_equal
from tablesync.domain.entities.record import Record

_UNCHANGED = object()


@dataclass(frozen=True)
class PendingUpdate:
    record_id: str
    fields: dict[str, Any]


@dataclass
class ReconcilePlan:
    """Intenciones de mutación sobre la tabla target."""

    creates: list[dict[str, Any]] = field(default_factory=list)
    updates: list[PendingUpdate] = field(default_factory=list)
    deletes: list[Record] = field(default_factory=list)
    unchanged: int = 0
    skipped_source: int = 0
    skipped_target: int = 0

    @property
    def is_empty(self) -> bool:
        return not (self.creates or self.updates or self.deletes)


def changed_fields(mapped: dict[str, Any], target_fields: dict[str, Any]) -> list[str]:
    """
    Fields mapeados cuyo valor difiere del valor actual en target.

    Un field ausente en target se compara como null.
    """
    return [
        name for name, value in mapped.items()
        if not values_equal(value, target_fields.get(name))
    ]


class Reconciler:
    def __init__(
        self,
        *,
        key_field: str,
        field_map: FieldMap,
        create_missing: bool = True,
        update_existing: bool = True,
        delete_extra: bool = False,
    ) -> None:
        self._key_field = key_field
        self._target_key_field = field_map.require_target(key_field)
        self._field_map = field_map
        self._create_missing = create_missing
        self._update_existing = update_existing
        self._delete_extra = delete_extra

    def reconcile(self, source: Iterable[Record], target: Iterable[Record]) -> ReconcilePlan:
        plan = ReconcilePlan()
        target_lookup = self._build_target_lookup(target, plan)

        # key -> target emparejado; permite que un duplicado source posterior
        # vuelva a emparejar el mismo target después de sacarlo del lookup
        matched: dict[str, Record] = {}
        # key -> intención (PendingUpdate, fields a crear o _UNCHANGED);
        # un duplicado source sobrescribe la anterior
        intents: dict[str, Any] = {}

        for record in source:
            key = record.key_value(self._key_field)
            if key is None:
                logger.warning(f"Registro source {record.id} no tiene el key field '{self._key_field}'")
                plan.skipped_source += 1
                continue

            target_record = target_lookup.pop(key, None) or matched.get(key)
            if target_record is not None:
                matched[key] = target_record
                if not self._update_existing:
                    intents.pop(key, None)
                    continue

                mapped = self._field_map.map_fields(record.fields)
                if changed_fields(mapped, target_record.fields):
                    intents[key] = PendingUpdate(target_record.id, mapped)
                else:
                    intents[key] = _UNCHANGED
            elif self._create_missing:
                intents[key] = self._field_map.map_fields(record.fields)

        for intent in intents.values():
            if intent is _UNCHANGED:
                plan.unchanged += 1
            elif isinstance(intent, PendingUpdate):
                plan.updates.append(intent)
            else:
                plan.creates.append(intent)

        if self._delete_extra:
            plan.deletes.extend(target_lookup.values())
        elif target_lookup:
            logger.debug(f"{len(target_lookup)} registros extra en target se dejan intactos")

        logger.info(
            f"Reconciliación: crear={len(plan.creates)}, actualizar={len(plan.updates)}, "
            f"borrar={len(plan.deletes)}, sin cambios={plan.unchanged}"
        )
        return plan

    def _build_target_lookup(self, target: Iterable[Record], plan: ReconcilePlan) -> dict[str, Record]:
        lookup: dict[str, Record] = {}
        for record in target:
            key = record.key_value(self._target_key_field)
            if key is None:
                logger.warning(
                    f"Registro target {record.id} no tiene el key field '{self._target_key_field}'"
                )
                plan.skipped_target += 1
                continue
            lookup[key] = record
        return lookup

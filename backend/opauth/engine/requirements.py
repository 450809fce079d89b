"""Field requirement checks shared by issuance and authorization"""
from functools import lru_cache
from typing import Annotated, Any, Dict, Iterable, Tuple, Type

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from .condition_evaluator import ConditionEvaluator, is_present
from ..domain.models import ConditionalRequirement, OperationFields
from ..domain.errors import (
    MissingRequiredFieldError, ConditionalRequirementNotMetError, InvalidFieldValueError
)


def check_required_fields(required_fields: Iterable[str], fields: Dict[str, Any]) -> None:
    """Raise on the first absent field, in declared order"""
    for name in required_fields:
        if not is_present(ConditionEvaluator.get_field_value(name, fields)):
            raise MissingRequiredFieldError(f"Field '{name}' is required", field=name)


def check_conditional_requirements(
    requirements: Iterable[ConditionalRequirement],
    fields: Dict[str, Any],
    evaluator: ConditionEvaluator
) -> None:
    """
    Evaluate conditional requirements in order; the first unmet one is
    reported against its declared failure path.
    """
    for requirement in requirements:
        if not evaluator.evaluate(requirement.when, fields):
            continue
        missing = [
            name for name in requirement.fields
            if not is_present(ConditionEvaluator.get_field_value(name, fields))
        ]
        if missing:
            raise ConditionalRequirementNotMetError(
                requirement.message,
                field=requirement.failure_path,
                details={"missing": missing}
            )


def invalid_field_error(
    error: PydanticValidationError,
    loc: Tuple[str, ...] = ()
) -> InvalidFieldValueError:
    """Convert a pydantic validation error, reporting its first failing field"""
    errors = [
        {"field": ".".join(str(part) for part in (*loc, *err["loc"])), "message": err["msg"]}
        for err in error.errors()
    ]
    first = errors[0]
    return InvalidFieldValueError(
        f"Invalid value for '{first['field']}': {first['message']}",
        field=first["field"],
        details={"errors": errors}
    )


def validate_fields(model: Type[OperationFields], fields: Dict[str, Any]) -> Dict[str, Any]:
    """Validate a complete field set into the kind's typed variant"""
    try:
        variant = model.model_validate(fields)
    except PydanticValidationError as e:
        raise invalid_field_error(e)
    return variant.model_dump(by_alias=True, exclude_none=True, mode="json")


def validate_partial_fields(model: Type[OperationFields], fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate only the supplied fields against the kind's typed variant

    Used for token details, which carry a subset of the operation fields.
    Values come back in the same form `validate_fields` produces, so they
    compare equal to the validated fields of a matching request. When every
    field the variant requires is supplied, the whole variant is validated
    too, which applies its cross-field rules.
    """
    adapters = _field_adapters(model)
    normalized: Dict[str, Any] = {}
    for name, value in fields.items():
        adapter = adapters.get(name)
        if adapter is None:
            raise InvalidFieldValueError(
                f"Field '{name}' is not part of this operation",
                field=name,
                details={"allowed": sorted(adapters)}
            )
        try:
            value = adapter.dump_python(adapter.validate_python(value), mode="json")
        except PydanticValidationError as e:
            raise invalid_field_error(e, loc=(name,))
        if value is not None:
            normalized[name] = value

    required = {
        field.alias or name
        for name, field in model.model_fields.items()
        if field.is_required()
    }
    if required <= normalized.keys():
        validate_fields(model, normalized)
    return normalized


@lru_cache(maxsize=None)
def _field_adapters(model: Type[OperationFields]) -> Dict[str, TypeAdapter]:
    """One adapter per variant field, keyed by its wire name"""
    adapters = {}
    for name, field in model.model_fields.items():
        annotation = field.annotation
        if field.metadata:
            annotation = Annotated[(annotation, *field.metadata)]
        adapters[field.alias or name] = TypeAdapter(annotation)
    return adapters

"""Planting records attached to fields."""

import logging
from datetime import date
from typing import Any, Optional, Union

from awhere_api.endpoints.descriptor import EndpointDescriptor, ResourceFamily
from awhere_api.endpoints.validation import is_given, parse_date
from awhere_api.exceptions import ValidationError
from awhere_api.operations.common import compact
from awhere_api.session import AWhereSession
from awhere_api.transform.normalize import Table, normalize_response

logger = logging.getLogger(__name__)

Number = Union[int, float, str]
DateLike = Union[str, date]


def _pair(amount: Optional[Number], units: Optional[str], name: str) -> Optional[dict]:
    """Yield amount and units go together, or not at all."""
    parameter = f"{name.replace(' ', '_')}_amount"
    if is_given(amount) != is_given(units):
        raise ValidationError(
            f"Must either have both {name} amount and {name} units, or neither",
            parameter,
        )
    if not is_given(amount):
        return None
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} amount must be numeric, got {amount!r}", parameter)
    return {"amount": value, "units": units}


def _date(value: Optional[DateLike], parameter: str) -> Optional[str]:
    if not is_given(value):
        return None
    return parse_date(value, parameter).isoformat()


def create_planting(
    session: AWhereSession,
    field_id: str,
    crop: str,
    planting_date: Optional[DateLike] = None,
    proj_yield_amount: Optional[Number] = None,
    proj_yield_units: Optional[str] = None,
    proj_harvest_date: Optional[DateLike] = None,
    yield_amount: Optional[Number] = None,
    yield_units: Optional[str] = None,
    harvest_date: Optional[DateLike] = None,
) -> Table:
    """Record a planting on a field.

    Args:
        session: Authenticated session
        field_id: Field the crop was planted on
        crop: Crop id, e.g. ``corn`` or ``wheat-hardred``
        planting_date: Defaults to today
        proj_yield_amount: Projected yield
        proj_yield_units: Units of the projected yield
        proj_harvest_date: Projected harvest date
        yield_amount: Actual yield
        yield_units: Units of the actual yield
        harvest_date: Actual harvest date

    Returns:
        One-row table describing the planting, including its id
    """
    if not is_given(field_id):
        raise ValidationError("field_id is required", "field_id")
    if not is_given(crop):
        raise ValidationError("crop is required", "crop")

    projected_yield = _pair(proj_yield_amount, proj_yield_units, "proj yield")
    actual_yield = _pair(yield_amount, yield_units, "yield")

    body: dict[str, Any] = {
        "crop": crop,
        "plantingDate": _date(planting_date, "planting_date") or session.today().isoformat(),
    }
    projections = compact(
        {
            "yield": projected_yield,
            "harvestDate": _date(proj_harvest_date, "proj_harvest_date"),
        }
    )
    if projections:
        body["projections"] = projections
    if actual_yield:
        body["yield"] = actual_yield
    if is_given(harvest_date):
        body["harvestDate"] = _date(harvest_date, "harvest_date")

    descriptor = EndpointDescriptor(ResourceFamily.PLANTINGS, field_id=field_id)
    document = session.request("POST", descriptor, body=body)

    table = normalize_response(document if document is not None else body, ResourceFamily.PLANTINGS)
    logger.info(
        "Planting created",
        extra={"field_id": field_id, "crop": crop, "planting_id": (document or {}).get("id")},
    )
    return table


def get_plantings(
    session: AWhereSession,
    field_id: Optional[str] = None,
    planting_id: Optional[Union[int, str]] = None,
    current: bool = False,
    offset: Optional[int] = None,
    limit: Optional[int] = None,
) -> Table:
    """List plantings, for the whole account or one field.

    Args:
        session: Authenticated session
        field_id: Restrict to this field
        planting_id: Fetch only this planting
        current: Fetch the field's most recent planting
        offset: Number of plantings to skip
        limit: Page size
    """
    descriptor = EndpointDescriptor(
        ResourceFamily.PLANTINGS,
        field_id=field_id,
        planting_id=planting_id,
        current=current,
        options=compact({"offset": offset, "limit": limit}),
    )
    return session.fetch_table(descriptor)


def update_planting(
    session: AWhereSession,
    field_id: str,
    planting_id: Optional[Union[int, str]] = None,
    current: bool = False,
    planting_date: Optional[DateLike] = None,
    proj_yield_amount: Optional[Number] = None,
    proj_yield_units: Optional[str] = None,
    proj_harvest_date: Optional[DateLike] = None,
    yield_amount: Optional[Number] = None,
    yield_units: Optional[str] = None,
    harvest_date: Optional[DateLike] = None,
) -> Table:
    """Replace the given properties of a planting; others are left alone.

    Either ``planting_id`` or ``current=True`` selects the planting.

    Raises:
        ValidationError: If nothing is given to update
    """
    if not is_given(field_id):
        raise ValidationError("field_id is required", "field_id")
    if not current and not is_given(planting_id):
        raise ValidationError("Give planting_id, or current=True", "planting_id")

    for amount, name in ((proj_yield_amount, "proj_yield_amount"), (yield_amount, "yield_amount")):
        if is_given(amount):
            try:
                float(amount)
            except (TypeError, ValueError):
                raise ValidationError(f"{name} must be numeric, got {amount!r}", name)

    changes = [
        ("/plantingDate", _date(planting_date, "planting_date")),
        ("/projections/yield/amount", float(proj_yield_amount) if is_given(proj_yield_amount) else None),
        ("/projections/yield/units", proj_yield_units),
        ("/projections/harvestDate", _date(proj_harvest_date, "proj_harvest_date")),
        ("/yield/amount", float(yield_amount) if is_given(yield_amount) else None),
        ("/yield/units", yield_units),
        ("/harvestDate", _date(harvest_date, "harvest_date")),
    ]
    patch = [
        {"op": "replace", "path": path, "value": value}
        for path, value in changes
        if is_given(value)
    ]
    if not patch:
        raise ValidationError("Must pass in a value to update")

    descriptor = EndpointDescriptor(
        ResourceFamily.PLANTINGS,
        field_id=field_id,
        planting_id=planting_id,
        current=current,
    )
    document = session.request("PATCH", descriptor, body=patch)
    logger.info(
        "Planting updated",
        extra={"field_id": field_id, "planting_id": planting_id, "changes": len(patch)},
    )
    if document is None:
        return Table()
    return normalize_response(document, ResourceFamily.PLANTINGS)


def delete_planting(
    session: AWhereSession,
    field_id: str,
    planting_id: Union[int, str],
) -> None:
    """Delete one planting from a field."""
    if not is_given(field_id):
        raise ValidationError("field_id is required", "field_id")
    if not is_given(planting_id):
        raise ValidationError("planting_id is required", "planting_id")

    descriptor = EndpointDescriptor(
        ResourceFamily.PLANTINGS,
        field_id=field_id,
        planting_id=planting_id,
    )
    session.request("DELETE", descriptor)
    logger.info("Planting deleted", extra={"field_id": field_id, "planting_id": planting_id})

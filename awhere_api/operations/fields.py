"""Field locations: create, read, update and delete."""

import logging
from typing import Any, Optional, Union

from awhere_api.endpoints.descriptor import EndpointDescriptor, ResourceFamily
from awhere_api.endpoints.validation import check_coordinates, is_given
from awhere_api.exceptions import ValidationError
from awhere_api.operations.common import compact
from awhere_api.session import AWhereSession
from awhere_api.transform.normalize import Table, normalize_response

logger = logging.getLogger(__name__)


def clean_id(value: str) -> str:
    """Ids may not contain spaces; they are replaced with underscores."""
    return str(value).replace(" ", "_")


def create_field(
    session: AWhereSession,
    field_id: str,
    latitude: Union[float, str],
    longitude: Union[float, str],
    farm_id: str,
    field_name: Optional[str] = None,
    acres: Optional[Union[float, str]] = None,
) -> Table:
    """Register a field location with the account.

    Args:
        session: Authenticated session
        field_id: Id to give the field (spaces become underscores)
        latitude: Latitude of the field's center, decimal degrees
        longitude: Longitude of the field's center, decimal degrees
        farm_id: Arbitrary farm id used for grouping fields
        field_name: Display name
        acres: Field size

    Returns:
        One-row table describing the created field

    Raises:
        ValidationError: If coordinates or acres are invalid
        HttpError: If the service rejects the field (e.g. duplicate id)
    """
    if not is_given(field_id):
        raise ValidationError("field_id is required", "field_id")
    if not is_given(farm_id):
        raise ValidationError("farm_id is required", "farm_id")
    check_coordinates(latitude, longitude)

    body: dict[str, Any] = {
        "id": clean_id(field_id),
        "centerPoint": {"latitude": float(latitude), "longitude": float(longitude)},
        "farmId": clean_id(farm_id),
    }
    if is_given(field_name):
        body["name"] = field_name
    if is_given(acres):
        try:
            body["acres"] = float(acres)
        except (TypeError, ValueError):
            raise ValidationError(f"acres must be numeric, got {acres!r}", "acres")

    document = session.request("POST", EndpointDescriptor(ResourceFamily.FIELDS), body=body)
    logger.info("Field created", extra={"field_id": body["id"], "farm_id": body["farmId"]})
    return normalize_response(document if document is not None else body, ResourceFamily.FIELDS)


def get_fields(
    session: AWhereSession,
    field_id: Optional[str] = None,
    offset: Optional[int] = None,
    limit: Optional[int] = None,
) -> Table:
    """List the account's fields, or fetch one by id.

    Args:
        session: Authenticated session
        field_id: Fetch only this field
        offset: Number of fields to skip
        limit: Page size
    """
    descriptor = EndpointDescriptor(
        ResourceFamily.FIELDS,
        field_id=field_id,
        options=compact({"offset": offset, "limit": limit}),
    )
    return session.fetch_table(descriptor)


def update_field(
    session: AWhereSession,
    field_id: str,
    variable: str,
    value: Any,
    test_variable: Optional[str] = None,
    test_value: Any = None,
) -> Table:
    """Replace one property of a field.

    With ``test_variable`` the update only applies if that property
    currently equals ``test_value``.

    Args:
        session: Authenticated session
        field_id: Field to update
        variable: Property path to replace, e.g. ``name`` or ``farmId``
        value: New value
        test_variable: Property that must match before the update applies
        test_value: Expected current value of ``test_variable``

    Returns:
        Table describing the updated field
    """
    if not is_given(field_id):
        raise ValidationError("field_id is required", "field_id")
    if not is_given(variable):
        raise ValidationError("variable to update is required", "variable")

    patch = []
    if is_given(test_variable):
        patch.append({"op": "test", "path": f"/{test_variable.lstrip('/')}", "value": test_value})
    patch.append({"op": "replace", "path": f"/{variable.lstrip('/')}", "value": value})

    document = session.request(
        "PATCH",
        EndpointDescriptor(ResourceFamily.FIELDS, field_id=field_id),
        body=patch,
    )
    logger.info("Field updated", extra={"field_id": field_id, "variable": variable})
    if document is None:
        return Table()
    return normalize_response(document, ResourceFamily.FIELDS)


def delete_field(session: AWhereSession, field_id: str) -> None:
    """Delete a field and everything attached to it."""
    if not is_given(field_id):
        raise ValidationError("field_id is required", "field_id")
    session.request("DELETE", EndpointDescriptor(ResourceFamily.FIELDS, field_id=field_id))
    logger.info("Field deleted", extra={"field_id": field_id})

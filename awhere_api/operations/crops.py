"""Crop catalogue."""

from typing import Optional

from awhere_api.endpoints.descriptor import EndpointDescriptor, ResourceFamily
from awhere_api.operations.common import compact
from awhere_api.session import AWhereSession
from awhere_api.transform.normalize import Table


def get_crops(
    session: AWhereSession,
    crop_id: Optional[str] = None,
    offset: Optional[int] = None,
    limit: Optional[int] = None,
) -> Table:
    """List the crops plantings can reference, or fetch one by id."""
    descriptor = EndpointDescriptor(
        ResourceFamily.CROPS,
        crop_id=crop_id,
        options=compact({"offset": offset, "limit": limit}),
    )
    return session.fetch_table(descriptor)

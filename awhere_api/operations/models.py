"""Crop growth-stage models: catalogue, details and per-field results."""

from typing import Any, Optional

from awhere_api.endpoints.descriptor import EndpointDescriptor, ResourceFamily
from awhere_api.exceptions import ParseError
from awhere_api.operations.common import compact
from awhere_api.session import AWhereSession
from awhere_api.transform.normalize import Table, normalize_response


def get_models(
    session: AWhereSession,
    model_id: Optional[str] = None,
    offset: Optional[int] = None,
    limit: Optional[int] = None,
) -> Table:
    """List the models available to the account, or fetch one by id.

    Returns:
        One row per model (``modelId``, ``name``, ``description``, ``type``,
        ``source.name``, ``source.link``)
    """
    descriptor = EndpointDescriptor(
        ResourceFamily.MODELS,
        model_id=model_id,
        options=compact({"offset": offset, "limit": limit}),
    )
    return session.fetch_table(descriptor)


def get_model_details(session: AWhereSession, model_id: str) -> Table:
    """Growth stages a model can report, with its GDD settings.

    Returns:
        One row per stage; the model's GDD method, base temperature,
        boundaries and biofix repeat on every row
    """
    descriptor = EndpointDescriptor(ResourceFamily.MODEL_DETAILS, model_id=model_id)
    return session.fetch_table(descriptor)


def _stage_document(document: Any) -> dict:
    """Collect previous, current and next stages into one tagged list."""
    if not isinstance(document, dict):
        raise ParseError(f"Expected a JSON object, got {type(document).__name__}")

    tagged = [(stage, "previous") for stage in document.get("previousStages") or []]
    for key, stage_type in (("currentStage", "current"), ("nextStage", "next")):
        if document.get(key):
            tagged.append((document[key], stage_type))

    stages = []
    for stage, stage_type in tagged:
        if not isinstance(stage, dict):
            raise ParseError(f"{stage_type} stage is a {type(stage).__name__}, expected an object")
        stages.append({**stage, "stageType": stage_type})

    rest = {
        k: v
        for k, v in document.items()
        if k not in ("previousStages", "currentStage", "nextStage")
    }
    return {**rest, "stages": stages}


def get_model_results(session: AWhereSession, field_id: str, model_id: str) -> Table:
    """Run a model for a field's most recent planting.

    The field needs a planting (see ``create_planting``); the service picks
    the crop and planting date from it.

    Returns:
        One row per stage, tagged by ``stageType`` (previous, current or
        next), with the model id, biofix and planting dates and location
    """
    descriptor = EndpointDescriptor(
        ResourceFamily.MODEL_RESULTS,
        field_id=field_id,
        model_id=model_id,
    )
    document = session.request("GET", descriptor)
    return normalize_response(_stage_document(document), ResourceFamily.MODEL_RESULTS)

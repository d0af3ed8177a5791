"""
Deterministic request fingerprints for result memoization.

Identical logical requests yield identical keys: object keys are sorted,
cache-control flags are excluded, and empty optional groups (parameters,
filters, facet) are omitted rather than serialized as ``{}`` so that
semantically identical calls never fragment the cache.

Examples:
    >>> generic_cache_key(survey_id="state_of_js", question_id="tools")
    'generic({"editionId":"allEditions(state_of_js)","questionId":"tools","subField":"responses"})'
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from survey_spine.core.constants import SubField
from survey_spine.compute.requests import ComputeRequest

CACHE_KEY_KIND = "generic"


def compute_key(kind: str, options: dict[str, Any]) -> str:
    """Render ``kind(<sorted compact json>)``."""
    payload = json.dumps(options, sort_keys=True, separators=(",", ":"), default=str)
    return f"{kind}({payload})"


def generic_cache_key(
    *,
    survey_id: str,
    question_id: str,
    sub_field: SubField | str = SubField.RESPONSES,
    selected_edition_id: str | None = None,
    parameters: dict[str, Any] | None = None,
    filters: dict[str, Any] | None = None,
    facet: str | None = None,
) -> str:
    """Build the memoization key of a generic compute request."""
    options: dict[str, Any] = {
        "editionId": selected_edition_id or f"allEditions({survey_id})",
        "questionId": question_id,
        "subField": sub_field.value if isinstance(sub_field, SubField) else sub_field,
    }
    if parameters:
        cache_parameters = {k: v for k, v in parameters.items() if k != "enableCache"}
        if cache_parameters:
            options["parameters"] = cache_parameters
    if filters:
        options["filters"] = filters
    if facet:
        options["facet"] = facet
    return compute_key(CACHE_KEY_KIND, options)


def request_cache_key(request: ComputeRequest, survey_id: str) -> str:
    """Memoization key of a validated request."""
    return generic_cache_key(
        survey_id=survey_id,
        question_id=request.question_id,
        sub_field=request.sub_field,
        selected_edition_id=request.edition_id,
        parameters=request.parameters.cache_relevant(),
        filters=request.filters,
        facet=request.facet,
    )


def cache_key_digest(key: str, length: int = 32) -> str:
    """SHA-256 digest of a key, for backends with key-length limits."""
    return hashlib.sha256(key.encode()).hexdigest()[:length]

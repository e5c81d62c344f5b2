"""
Path Builder

Maps a ResourceQuery onto exactly one v2 request path and query string.

Stage A looks up a path template by (resource family, filter kind).
Stage B appends owner and pagination parameters in a fixed order.
"""
import logging
from typing import Dict, List, Tuple
from urllib.parse import quote

from tcrest.errors import InvalidQueryError
from tcrest.models.resources import (
    DETAIL_INDICATOR_TYPES,
    GROUP_TYPES,
    IndicatorType,
    ResourceFamily,
    ResourceQuery,
)


logger = logging.getLogger(__name__)

DEFAULT_RESULT_LIMIT = 100

# Left unescaped in non-URL indicator values
INDICATOR_SAFE_CHARS = "@:"

# Collection segment of each family
FAMILY_SEGMENTS = {
    ResourceFamily.OWNERS: "owners",
    ResourceFamily.GROUPS: "groups",
    ResourceFamily.ADVERSARIES: "groups/adversaries",
    ResourceFamily.EMAILS: "groups/emails",
    ResourceFamily.INCIDENTS: "groups/incidents",
    ResourceFamily.SIGNATURES: "groups/signatures",
    ResourceFamily.THREATS: "groups/threats",
    ResourceFamily.ATTRIBUTES: "attributes",
    ResourceFamily.SECURITY_LABELS: "securityLabels",
    ResourceFamily.TAGS: "tags",
    ResourceFamily.VICTIMS: "victims",
    ResourceFamily.VICTIM_ASSETS: "victimAssets",
    ResourceFamily.INDICATORS: "indicators",
}

GROUP_COLLECTIONS = (ResourceFamily.GROUPS,) + GROUP_TYPES

# Templates resolving to one entity rather than a collection
SINGLE_ENTITY = "single"
COLLECTION = "collection"

PATH_TEMPLATES: Dict[Tuple[ResourceFamily, str], Tuple[str, str]] = {}


def _register(kind: str, families, template: str, shape: str = COLLECTION):
    for family in families:
        PATH_TEMPLATES[(family, kind)] = (template, shape)


_register("none", (
    ResourceFamily.OWNERS,
    *GROUP_COLLECTIONS,
    ResourceFamily.INDICATORS,
    ResourceFamily.SECURITY_LABELS,
    ResourceFamily.TAGS,
    ResourceFamily.VICTIMS,
), "/v2/{collection}")

_register("by_id", (
    ResourceFamily.OWNERS,
    *GROUP_TYPES,
    ResourceFamily.VICTIMS,
), "/v2/{collection}/{id}", SINGLE_ENTITY)

_register("by_parent_id", (
    *GROUP_COLLECTIONS,
    ResourceFamily.INDICATORS,
    ResourceFamily.ATTRIBUTES,
    ResourceFamily.SECURITY_LABELS,
    ResourceFamily.TAGS,
    ResourceFamily.VICTIMS,
    ResourceFamily.VICTIM_ASSETS,
), "/v2/groups/{parent}/{id}/{collection}")

_register("by_indicator", (
    ResourceFamily.OWNERS,
    *GROUP_COLLECTIONS,
    ResourceFamily.ATTRIBUTES,
    ResourceFamily.SECURITY_LABELS,
    ResourceFamily.TAGS,
    ResourceFamily.VICTIMS,
), "/v2/indicators/{indicator_type}/{indicator}/{collection}")
_register("by_indicator", (ResourceFamily.INDICATORS,),
          "/v2/indicators/{indicator_type}/{indicator}", SINGLE_ENTITY)

_register("by_security_label", (
    *GROUP_COLLECTIONS,
    ResourceFamily.INDICATORS,
), "/v2/securityLabels/{name}/{collection}")
_register("by_security_label", (ResourceFamily.SECURITY_LABELS,),
          "/v2/securityLabels/{name}", SINGLE_ENTITY)

_register("by_tag_name", (
    *GROUP_COLLECTIONS,
    ResourceFamily.INDICATORS,
), "/v2/tags/{name}/{collection}")
_register("by_tag_name", (ResourceFamily.TAGS,), "/v2/tags/{name}", SINGLE_ENTITY)

_register("by_victim_id", (
    *GROUP_COLLECTIONS,
    ResourceFamily.INDICATORS,
    ResourceFamily.VICTIM_ASSETS,
), "/v2/victims/{id}/{collection}")
_register("by_victim_id", (ResourceFamily.VICTIMS,), "/v2/victims/{id}", SINGLE_ENTITY)

_register("by_signature_download", (ResourceFamily.SIGNATURES,),
          "/v2/groups/signatures/{id}/download", SINGLE_ENTITY)


def escape_segment(value: str) -> str:
    """
    Percent-escape a value for use as a path segment or query value

    Everything outside the RFC 3986 unreserved set is escaped, including
    '/', ':' and '%', so the result is never split or re-decoded.
    """
    return quote(str(value), safe='')


def escape_indicator(indicator_type: IndicatorType, value: str) -> str:
    """
    Escape an indicator value for insertion into a path

    URL values are escaped like any other data segment. The other types
    keep '@' and ':' readable (email addresses, IPv6 addresses) but have
    every other reserved or non-ASCII character escaped, so the signed
    path is already in the form that goes on the wire.
    """
    if indicator_type == IndicatorType.URL:
        return escape_segment(value)
    return quote(str(value), safe=INDICATOR_SAFE_CHARS)


def is_single_entity(query: ResourceQuery) -> bool:
    """True when the query addresses one entity instead of a collection"""
    entry = PATH_TEMPLATES.get((query.family, query.filter.kind))
    if entry is None or query.indicator_detail is not None:
        return False
    return entry[1] == SINGLE_ENTITY or query.member is not None


def _collection(query: ResourceQuery) -> str:
    """Family segment, narrowed by indicator or victim asset type"""
    collection = FAMILY_SEGMENTS[query.family]

    if query.indicator_type is not None:
        if query.family != ResourceFamily.INDICATORS:
            raise InvalidQueryError(
                f"indicator_type only applies to indicators, not {query.family.value}"
            )
        if query.filter.kind == "by_indicator":
            raise InvalidQueryError(
                "indicator_type cannot be combined with a ByIndicator filter"
            )
        collection = f"{collection}/{query.indicator_type.segment}"

    if query.asset_type is not None:
        if query.family != ResourceFamily.VICTIM_ASSETS:
            raise InvalidQueryError(
                f"asset_type only applies to victimAssets, not {query.family.value}"
            )
        collection = f"{collection}/{query.asset_type.segment}"

    return collection


def _suffix(query: ResourceQuery, shape: str) -> str:
    """Detail sub-resource or member segment appended after the template"""
    if query.indicator_detail is not None and query.member is not None:
        raise InvalidQueryError("indicator_detail and member are mutually exclusive")

    if query.indicator_detail is not None:
        if query.family != ResourceFamily.INDICATORS or query.filter.kind != "by_indicator":
            raise InvalidQueryError(
                f"{query.indicator_detail.value} requires a single indicator "
                f"(indicators family with a ByIndicator filter)"
            )
        expected = DETAIL_INDICATOR_TYPES[query.indicator_detail]
        if query.filter.indicator_type != expected:
            raise InvalidQueryError(
                f"{query.indicator_detail.value} is only available for "
                f"{expected.value} indicators, not {query.filter.indicator_type.value}"
            )
        return f"/{query.indicator_detail.value}"

    if query.member is not None:
        if shape != COLLECTION or query.filter.kind not in ("by_parent_id", "by_indicator", "by_victim_id"):
            raise InvalidQueryError(
                f"member can only address a child of a relationship collection, "
                f"not ({query.family.value}, {query.filter.kind})"
            )
        return f"/{escape_segment(query.member)}"

    return ""


def build_base_path(query: ResourceQuery) -> str:
    """
    Stage A: resolve the path without query string

    Raises:
        InvalidQueryError: If (family, filter kind) has no template, or a
            sub-resource selector does not fit the query
    """
    entry = PATH_TEMPLATES.get((query.family, query.filter.kind))
    if entry is None:
        raise InvalidQueryError(
            f"Unsupported query: {query.family.value} with filter {query.filter.kind}"
        )
    template, shape = entry

    query_filter = query.filter
    values = {"collection": _collection(query)}

    if query_filter.kind in ("by_id", "by_victim_id", "by_signature_download"):
        values["id"] = query_filter.id
    elif query_filter.kind == "by_parent_id":
        values["id"] = query_filter.id
        values["parent"] = query_filter.parent_family.value
    elif query_filter.kind == "by_indicator":
        values["indicator_type"] = query_filter.indicator_type.segment
        values["indicator"] = escape_indicator(query_filter.indicator_type, query_filter.value)
    elif query_filter.kind in ("by_security_label", "by_tag_name"):
        values["name"] = escape_segment(query_filter.name)

    return template.format(**values) + _suffix(query, shape)


def build_query_string(query: ResourceQuery) -> str:
    """
    Stage B: owner, resultStart, resultLimit in that order

    Each parameter is omitted when absent or at its default. Pagination is
    ignored for single-entity targets.
    """
    params: List[str] = []

    if query.owner:
        params.append(f"owner={escape_segment(query.owner)}")

    pagination = query.pagination
    if pagination is not None and is_single_entity(query):
        logger.debug(f"Ignoring pagination for single-entity query on {query.family.value}")
        pagination = None

    if pagination is not None:
        if pagination.start:
            params.append(f"resultStart={pagination.start}")
        if pagination.limit != DEFAULT_RESULT_LIMIT:
            params.append(f"resultLimit={pagination.limit}")

    if not params:
        return ""
    return "?" + "&".join(params)


def build_path(query: ResourceQuery) -> str:
    """
    Build the canonical request path for a query

    Args:
        query: Resource query

    Returns:
        Path and query string, e.g.
        "/v2/groups/adversaries?owner=Acme%20Co&resultStart=100&resultLimit=50"

    Raises:
        InvalidQueryError: If the query has no valid path
    """
    return build_base_path(query) + build_query_string(query)


def supported_combinations() -> List[Tuple[ResourceFamily, str]]:
    """All (family, filter kind) pairs with a path template"""
    return sorted(PATH_TEMPLATES, key=lambda pair: (pair[0].value, pair[1]))

"""
Optional Manifests

Classifies bundle manifests as optional from the ``olm.manifests.optional``
property. A malformed property never fails a projection: it is logged and
treated as declaring nothing optional.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import FrozenSet, Iterable, List, Optional

from ..core.constants import OLMConstants
from ..core.exceptions import OptionalManifestParseError
from .models import ManifestKey, Property

logger = logging.getLogger(__name__)

OPTIONAL_MANIFESTS_PROPERTY = OLMConstants.PropertyType.OPTIONAL_MANIFESTS.value

_KEY_FIELDS = ('group', 'kind', 'namespace', 'name')


class OptionalManifestPredicate(ABC):
    """Decides whether a manifest, identified by its ManifestKey, is optional"""

    @abstractmethod
    def is_optional(self, key: ManifestKey) -> bool:
        """Return True if the manifest identified by key is optional"""

    def __call__(self, key: ManifestKey) -> bool:
        return self.is_optional(key)


class NeverOptional(OptionalManifestPredicate):
    """Predicate used when the bundle declares no usable optional manifests"""

    def is_optional(self, key: ManifestKey) -> bool:
        return False

    def __repr__(self) -> str:
        return "NeverOptional()"


class OptionalManifestLookup(OptionalManifestPredicate):
    """Exact-match lookup over the declared optional manifest keys"""

    def __init__(self, keys: Iterable[ManifestKey]):
        self._keys: FrozenSet[ManifestKey] = frozenset(keys)

    @property
    def keys(self) -> FrozenSet[ManifestKey]:
        return self._keys

    def is_optional(self, key: ManifestKey) -> bool:
        return key in self._keys

    def __repr__(self) -> str:
        return f"OptionalManifestLookup({sorted(self._keys)!r})"


def get_property_value(properties: Iterable[Property], property_type: str) -> Optional[str]:
    """
    Get the value of the first property of the given type

    Returns:
        The property value, or None if no property has that type
    """
    for prop in properties:
        if prop.type == property_type:
            return prop.value
    return None


def parse_optional_manifests(value: str) -> List[ManifestKey]:
    """
    Decode an optional manifests property value

    Args:
        value: JSON text of the form ``{"manifests": [{"group", "kind", "namespace", "name"}]}``
            where namespace is omitted for cluster-scoped manifests

    Returns:
        List of declared ManifestKeys

    Raises:
        OptionalManifestParseError: If value is not valid JSON or has the wrong shape
    """
    try:
        data = json.loads(value)
    except (TypeError, ValueError) as e:
        raise OptionalManifestParseError(f"invalid JSON: {e}") from e

    if data is None:
        return []
    if not isinstance(data, dict):
        raise OptionalManifestParseError(f"expected a JSON object, got {type(data).__name__}")

    manifests = data.get('manifests')
    if manifests is None:
        return []
    if not isinstance(manifests, list):
        raise OptionalManifestParseError("'manifests' must be a list")

    keys = []
    for index, entry in enumerate(manifests):
        if not isinstance(entry, dict):
            raise OptionalManifestParseError(f"manifests[{index}] must be an object")
        fields = {}
        for field_name in _KEY_FIELDS:
            field_value = entry.get(field_name)
            if field_value is None:
                field_value = ''
            if not isinstance(field_value, str):
                raise OptionalManifestParseError(f"manifests[{index}].{field_name} must be a string")
            fields[field_name] = field_value
        keys.append(ManifestKey(**fields))
    return keys


def optional_manifest_predicate(properties: Iterable[Property]) -> OptionalManifestPredicate:
    """
    Build the optional-manifest predicate of a bundle

    Args:
        properties: Declared bundle properties

    Returns:
        OptionalManifestLookup when the property is present and well formed,
        NeverOptional otherwise
    """
    value = get_property_value(properties, OPTIONAL_MANIFESTS_PROPERTY)
    if value is None:
        return NeverOptional()

    try:
        keys = parse_optional_manifests(value)
    except OptionalManifestParseError as e:
        logger.warning(f"Ignoring malformed {OPTIONAL_MANIFESTS_PROPERTY} property {value!r}: {e}")
        return NeverOptional()

    logger.debug(f"Bundle declares {len(keys)} optional manifest(s)")
    return OptionalManifestLookup(keys)

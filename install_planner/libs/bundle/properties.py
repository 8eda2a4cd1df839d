"""
Properties Annotation

Serializes declared bundle properties into the annotation OLM stamps on the
ClusterServiceVersion of an install plan.
"""

import json
from typing import Iterable

from ..core.constants import OLMConstants
from ..core.exceptions import AnnotationConstructionError
from .models import Property

PROPERTIES_ANNOTATION_KEY = OLMConstants.PROPERTIES_ANNOTATION_KEY


def properties_annotation_from_property_list(properties: Iterable[Property]) -> str:
    """
    Build the properties annotation value

    Args:
        properties: Declared bundle properties; each value must be JSON text

    Returns:
        str: Compact JSON ``{"properties": [{"type": ..., "value": ...}]}``,
        or ``{}`` when there are no properties

    Raises:
        AnnotationConstructionError: If a property value is not valid JSON
    """
    entries = []
    for prop in properties:
        try:
            value = json.loads(prop.value)
        except (TypeError, ValueError) as e:
            raise AnnotationConstructionError(
                f"failed to marshal properties annotation: invalid value for property {prop.type!r}: {e}"
            ) from e
        entries.append({'type': prop.type, 'value': value})

    annotation = {'properties': entries} if entries else {}
    return json.dumps(annotation, separators=(',', ':'), ensure_ascii=False)

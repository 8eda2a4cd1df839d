"""
Manifest Decoder

Parses raw manifest text (YAML or JSON) into Resource handles exposing the
identity of the object and its canonical serialized form.
"""

import copy
import json
import logging
from typing import Any, Dict, Optional

import yaml

from ..core.constants import ErrorMessages
from ..core.exceptions import DecodeError, MetadataError
from ..core.utils import canonical_json
from .registry import GroupVersionKind, TypeRegistry

logger = logging.getLogger(__name__)


class ManifestLoader(yaml.SafeLoader):
    """SafeLoader that keeps timestamps as strings, matching YAML-to-JSON conversion"""


ManifestLoader.add_constructor('tag:yaml.org,2002:timestamp', ManifestLoader.construct_yaml_str)


class Resource:
    """
    Decoded Kubernetes object

    Wraps the object mapping and gives typed access to the fields the step
    assembler needs. The mapping is owned by the Resource; callers that
    mutate it (namespace, annotations) only affect this copy.
    """

    def __init__(self, obj: Dict[str, Any], gvk: GroupVersionKind):
        self._obj = obj
        self._gvk = gvk

    @property
    def gvk(self) -> GroupVersionKind:
        return self._gvk

    @property
    def group(self) -> str:
        return self._gvk.group

    @property
    def version(self) -> str:
        return self._gvk.version

    @property
    def kind(self) -> str:
        return self._gvk.kind

    @property
    def metadata(self) -> Dict[str, Any]:
        return self._obj.setdefault('metadata', {})

    @property
    def namespace(self) -> str:
        return self._obj.get('metadata', {}).get('namespace') or ''

    @namespace.setter
    def namespace(self, value: str) -> None:
        if value:
            self.metadata['namespace'] = value
        else:
            self.metadata.pop('namespace', None)

    @property
    def name(self) -> str:
        """Object name, falling back to generateName"""
        metadata = self._obj.get('metadata', {})
        return metadata.get('name') or metadata.get('generateName') or ''

    @property
    def annotations(self) -> Dict[str, str]:
        return dict(self._obj.get('metadata', {}).get('annotations') or {})

    def set_annotations(self, annotations: Dict[str, str]) -> None:
        self.metadata['annotations'] = dict(annotations)

    @property
    def spec(self) -> Dict[str, Any]:
        """
        Return the object spec, creating it when absent

        Raises:
            DecodeError: If spec is present but not a mapping
        """
        spec = self._obj.setdefault('spec', {})
        if spec is None:
            spec = self._obj['spec'] = {}
        if not isinstance(spec, dict):
            raise DecodeError(f"spec of {self.kind} {self.name!r} must be a mapping")
        return spec

    def to_dict(self) -> Dict[str, Any]:
        """Return a deep copy of the underlying object"""
        return copy.deepcopy(self._obj)

    def to_manifest(self) -> str:
        """
        Serialize the object to its canonical text form

        Raises:
            DecodeError: If the object holds values that cannot be serialized
        """
        try:
            return canonical_json(self._obj)
        except (TypeError, ValueError) as e:
            raise DecodeError(
                ErrorMessages.DecodeError.NOT_SERIALIZABLE.format(kind=self.kind, name=self.name, error=e)
            ) from e

    def __repr__(self) -> str:
        return f"Resource({self._gvk.api_version}, {self.kind}, {self.namespace}/{self.name})"


class ManifestDecoder:
    """Decodes manifests using an injected, read-only TypeRegistry"""

    def __init__(self, registry: Optional[TypeRegistry] = None):
        """
        Initialize decoder

        Args:
            registry: Known types used to infer missing apiVersions (defaults to TypeRegistry.default())
        """
        self.registry = registry if registry is not None else TypeRegistry.default()

    def decode(self, text: str, expected_kind: Optional[str] = None) -> Resource:
        """
        Decode manifest text into a Resource

        Text starting with "{" is decoded as JSON, anything else as YAML. Only
        the first document of a multi-document stream is decoded.

        Args:
            text: YAML or JSON manifest text
            expected_kind: Kind assumed when the manifest omits one; a different
                declared kind is rejected

        Returns:
            Resource wrapping the decoded object

        Raises:
            DecodeError: If text is malformed or not an object
            MetadataError: If the kind or apiVersion cannot be determined
        """
        stripped = text.lstrip()
        if stripped.startswith('{'):
            # JSON is not always valid YAML (tab indentation, surrogate pair escapes)
            try:
                obj, _ = json.JSONDecoder().raw_decode(stripped)
            except ValueError as e:
                raise DecodeError(ErrorMessages.DecodeError.MALFORMED.format(error=e)) from e
            return self.from_object(obj, expected_kind)

        try:
            obj = next((doc for doc in yaml.load_all(text, Loader=ManifestLoader) if doc is not None), None)
        except yaml.YAMLError as e:
            raise DecodeError(ErrorMessages.DecodeError.MALFORMED.format(error=e)) from e

        if obj is None:
            raise DecodeError(str(ErrorMessages.DecodeError.EMPTY))

        return self.from_object(obj, expected_kind)

    def from_object(self, obj: Any, expected_kind: Optional[str] = None) -> Resource:
        """
        Wrap an already-decoded object mapping into a Resource

        The mapping is deep-copied so the caller's object is never modified.

        Raises:
            DecodeError: If obj is not a mapping
            MetadataError: If the kind or apiVersion cannot be determined
        """
        if not isinstance(obj, dict):
            raise DecodeError(ErrorMessages.DecodeError.NOT_AN_OBJECT.format(type_name=type(obj).__name__))

        obj = copy.deepcopy(obj)

        metadata = obj.get('metadata')
        if metadata is None:
            obj['metadata'] = {}
        elif not isinstance(metadata, dict):
            raise MetadataError(ErrorMessages.DecodeError.INVALID_METADATA.format(type_name=type(metadata).__name__))

        kind = obj.get('kind') or expected_kind
        if not kind or not isinstance(kind, str):
            raise MetadataError(str(ErrorMessages.DecodeError.MISSING_KIND))
        if expected_kind and kind != expected_kind:
            raise MetadataError(ErrorMessages.DecodeError.UNEXPECTED_KIND.format(expected=expected_kind, kind=kind))

        gvk = self._infer_group_version_kind(obj.get('apiVersion'), kind)
        obj['apiVersion'] = gvk.api_version
        obj['kind'] = gvk.kind

        logger.debug(f"Decoded {gvk.api_version} {kind} {obj['metadata'].get('name', '')!r}")
        return Resource(obj, gvk)

    def _infer_group_version_kind(self, api_version: Any, kind: str) -> GroupVersionKind:
        """Resolve the GroupVersionKind, consulting the registry when apiVersion is absent"""
        if api_version:
            if not isinstance(api_version, str):
                raise MetadataError(ErrorMessages.DecodeError.INVALID_API_VERSION.format(api_version=api_version))
            return GroupVersionKind.from_api_version(api_version, kind)

        registered = self.registry.lookup(kind)
        if registered is None:
            raise MetadataError(ErrorMessages.DecodeError.UNKNOWN_VERSION.format(kind=kind))
        return registered

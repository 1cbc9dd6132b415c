"""Shared result types and an in-memory view of cluster objects."""

from __future__ import annotations

import re
import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Mapping

_MASK_ALPHABET = string.ascii_letters + string.digits + "~!#$%^&*()_+-={}|[]:<>?,./"
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)
_SET_TERM = re.compile(r"^\s*([^\s!=(),]+)\s+(in|notin)\s+\(([^)]*)\)\s*$")


def mask_string(value: str) -> str:
    """Return a random string of the same length as ``value``."""
    return "".join(secrets.choice(_MASK_ALPHABET) for _ in value)


@dataclass
class Sensitive:
    """A value that may be replaced by its mask before leaving the host."""

    unmasked: str
    masked: str


def sensitive(value: str) -> Sensitive:
    """Pair ``value`` with a freshly generated mask."""
    return Sensitive(unmasked=value, masked=mask_string(value))


@dataclass
class Failure:
    """One problem found on an object."""

    text: str
    kubernetes_doc: str = ""
    sensitive: list[Sensitive] = field(default_factory=list)


@dataclass
class Result:
    """All problems found on one object."""

    kind: str
    name: str
    error: list[Failure] = field(default_factory=list)
    details: str = ""
    parent_object: str = ""


@dataclass
class AnalysisStats:
    """How long one analyzer took."""

    analyzer: str
    duration: timedelta


class NotFoundError(LookupError):
    """Raised when a requested object does not exist."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f'{kind} "{name}" not found')
        self.kind = kind
        self.name = name


def _split_terms(selector: str) -> list[str]:
    terms, depth, current = [], 0, []
    for char in selector:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if char == "," and depth == 0:
            terms.append("".join(current))
            current = []
        else:
            current.append(char)
    terms.append("".join(current))
    return [term.strip() for term in terms if term.strip()]


def _parse_selector(selector: str, *, allow_sets: bool) -> list[tuple[str, str, frozenset[str]]]:
    requirements = []
    for term in _split_terms(selector or ""):
        match = _SET_TERM.match(term) if allow_sets else None
        if match:
            values = frozenset(v.strip() for v in match.group(3).split(",") if v.strip())
            requirements.append((match.group(1), match.group(2), values))
            continue
        for op in ("!=", "==", "="):
            if op in term:
                key, _, value = term.partition(op)
                requirement = (key.strip(), "!=" if op == "!=" else "=", frozenset({value.strip()}))
                break
        else:
            if not allow_sets:
                raise ValueError(f"invalid field selector term: {term!r}")
            if term.startswith("!"):
                requirement = (term[1:].strip(), "!exists", frozenset())
            else:
                requirement = (term, "exists", frozenset())
        if not requirement[0]:
            raise ValueError(f"invalid selector term: {term!r}")
        requirements.append(requirement)
    return requirements


def _satisfies(requirements: Iterable[tuple[str, str, frozenset[str]]], lookup) -> bool:
    for key, op, values in requirements:
        present, value = lookup(key)
        if op in ("=", "in"):
            ok = present and value in values
        elif op in ("!=", "notin"):
            ok = not present or value not in values
        elif op == "exists":
            ok = present
        else:
            ok = not present
        if not ok:
            return False
    return True


def _field_lookup(obj: Mapping[str, Any]):
    def lookup(path: str) -> tuple[bool, str]:
        current: Any = obj
        for part in path.split("."):
            if not isinstance(current, Mapping) or part not in current:
                return True, ""
            current = current[part]
        return True, "" if current is None else str(current)

    return lookup


def _metadata(obj: Mapping[str, Any]) -> Mapping[str, Any]:
    return obj.get("metadata") or {}


def _event_time(event: Mapping[str, Any]) -> datetime:
    value = event.get("lastTimestamp")
    if not value:
        return _OLDEST
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


class ClusterClient:
    """Read access to a set of cluster objects held as manifest dictionaries."""

    def __init__(self, objects: Iterable[Mapping[str, Any]] = (), openapi_schema: Mapping[str, Any] | None = None) -> None:
        self._objects = list(objects)
        self._openapi_schema = openapi_schema

    def list(self, kind: str, namespace: str = "", label_selector: str = "", field_selector: str = "") -> list[Mapping[str, Any]]:
        """Objects of ``kind`` in ``namespace`` (all when empty) matching both selectors."""
        label_reqs = _parse_selector(label_selector, allow_sets=True)
        field_reqs = _parse_selector(field_selector, allow_sets=False)
        found = []
        for obj in self._objects:
            meta = _metadata(obj)
            if obj.get("kind") != kind:
                continue
            if namespace and meta.get("namespace", "") != namespace:
                continue
            labels = meta.get("labels") or {}
            if not _satisfies(label_reqs, lambda key: (key in labels, labels.get(key))):
                continue
            if not _satisfies(field_reqs, _field_lookup(obj)):
                continue
            found.append(obj)
        return found

    def get(self, kind: str, namespace: str, name: str) -> Mapping[str, Any]:
        """The named object; raises NotFoundError when it is absent."""
        for obj in self._objects:
            meta = _metadata(obj)
            if obj.get("kind") != kind or meta.get("name") != name:
                continue
            if namespace and meta.get("namespace", "") != namespace:
                continue
            return obj
        raise NotFoundError(kind, name)

    def latest_event(self, namespace: str, name: str) -> Mapping[str, Any] | None:
        """The most recent event about the object called ``name``, if any."""
        events = self.list("Event", namespace, field_selector=f"involvedObject.name={name}")
        return max(events, key=_event_time, default=None)

    def parent_of(self, metadata: Mapping[str, Any]) -> str | None:
        """``Kind/name`` of the topmost owner, or None when the object has no owner."""
        namespace = metadata.get("namespace", "")
        owners = metadata.get("ownerReferences") or []
        parent = None
        seen: set[tuple[str, str]] = set()
        while owners:
            kind, name = owners[0].get("kind", ""), owners[0].get("name", "")
            parent = f"{kind}/{name}"
            if (kind, name) in seen:
                break
            seen.add((kind, name))
            try:
                owner = self.get(kind, namespace, name)
            except NotFoundError:
                break
            owners = _metadata(owner).get("ownerReferences") or []
        return parent

    def api_doc(self, kind: str, group: str, version: str, field: str) -> str:
        """Description of a dotted field path from the OpenAPI schema, or ''."""
        if not self._openapi_schema:
            return ""
        definitions = self._openapi_schema.get("definitions") or {}
        current = definitions.get(f"io.k8s.api.{group or 'core'}.{version}.{kind}")
        description = ""
        for part in field.split("."):
            if current is None:
                return ""
            prop = (current.get("properties") or {}).get(part)
            if prop is None:
                return ""
            description = prop.get("description", "")
            ref = prop.get("$ref") or (prop.get("items") or {}).get("$ref")
            current = definitions.get(ref.rsplit("/", 1)[-1]) if ref else prop
        return description


@dataclass
class Analyzer:
    """What an analyzer is asked to look at."""

    client: ClusterClient
    namespace: str = ""
    label_selector: str = ""
    results: list[Result] = field(default_factory=list)
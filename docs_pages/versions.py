"""Resolve frontmatter version specifications into concrete version ids.

The registry lists every product plan (``fpt``, ``ghec``, ``ghes``...) with its
releases. A page's ``versions`` mapping names plans by short name and gives a
token per plan: ``'*'`` for every release, ``'latest'`` for the newest one, an
explicit list of releases, or a range such as ``'>=3.9'`` or ``'> 3.8 < 3.12'``.
The special key ``feature`` pulls in the versions of one or more named
feature flags.

Examples
--------
>>> registry = VersionRegistry(
...     plans={
...         "fpt": VersionPlan("fpt", "free-pro-team", "Free", ("latest",)),
...         "ghes": VersionPlan("ghes", "enterprise-server", "Server", ("3.9", "3.8")),
...     },
...     default_version="free-pro-team@latest",
... )
>>> VersionResolver(registry).resolve({"ghes": "*"}).versions
('enterprise-server@3.9', 'enterprise-server@3.8')
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import logging
import operator
import re
import typing as typ
from pathlib import Path

from packaging.version import InvalidVersion, Version
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ._constants import (
    DEFAULT_VERSION,
    FEATURE_KEY,
    LATEST_RELEASE,
    VERSION_ID_TEMPLATE,
)
from .errors import VersionRegistryError

logger = logging.getLogger(__name__)

ALL_RELEASES = "*"
_COMPARATOR = re.compile(r"\s*(>=|<=|!=|>|<|=)?\s*v?(\d+(?:\.\d+)*)\s*")
_OPERATORS: dict[str, cabc.Callable[[Version, Version], bool]] = {
    ">=": operator.ge,
    "<=": operator.le,
    ">": operator.gt,
    "<": operator.lt,
    "=": operator.eq,
    "!=": operator.ne,
}


@dc.dataclass(slots=True, frozen=True)
class VersionPlan:
    """A product line and its releases, newest first.

    Attributes
    ----------
    short_name : str
        Key used in frontmatter (for example ``ghes``).
    plan : str
        Plan segment used in version ids and URLs (``enterprise-server``).
    name : str
        Human-readable product name.
    releases : tuple[str, ...]
        Release identifiers, newest first. Unnumbered plans hold ``latest``.
    """

    short_name: str
    plan: str
    name: str
    releases: tuple[str, ...]

    @property
    def numbered(self) -> bool:
        """Return True when the plan has numbered releases."""
        return self.releases != (LATEST_RELEASE,)

    @property
    def latest_release(self) -> str:
        """Return the newest release identifier."""
        return self.releases[0]

    def version_id(self, release: str) -> str:
        """Return the ``plan@release`` identifier for ``release``."""
        return VERSION_ID_TEMPLATE.format(plan=self.plan, release=release)


@dc.dataclass(slots=True, frozen=True)
class VersionRegistry:
    """Static registry of plans, the default version, and feature flags."""

    plans: dict[str, VersionPlan]
    default_version: str = DEFAULT_VERSION
    features: dict[str, dict[str, typ.Any]] = dc.field(default_factory=dict)

    @property
    def versions(self) -> tuple[str, ...]:
        """Return every version id in registry order."""
        return tuple(
            plan.version_id(release)
            for plan in self.plans.values()
            for release in plan.releases
        )

    def plan_for(self, version_id: str) -> VersionPlan | None:
        """Return the plan owning ``version_id``, or None when unknown."""
        plan_name, _, _ = version_id.partition("@")
        for plan in self.plans.values():
            if plan.plan == plan_name:
                return plan
        return None


@dc.dataclass(slots=True, frozen=True)
class ResolvedVersions:
    """Outcome of resolving one ``versions`` mapping."""

    versions: tuple[str, ...]
    warnings: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()


class VersionResolver:
    """Expand ``versions`` mappings against a :class:`VersionRegistry`."""

    def __init__(self, registry: VersionRegistry) -> None:
        self.registry = registry

    def resolve(self, spec: typ.Mapping[str, typ.Any] | None) -> ResolvedVersions:
        """Return the concrete version ids selected by ``spec``.

        Parameters
        ----------
        spec : Mapping[str, Any] or None
            Frontmatter ``versions`` mapping of product line to version token.

        Returns
        -------
        ResolvedVersions
            Version ids in registry order. Unknown product lines are dropped
            with a warning; bad tokens and an empty result are errors.
        """
        selected: set[str] = set()
        warnings: list[str] = []
        errors: list[str] = []
        self._collect(spec or {}, selected, warnings, errors, seen_features=set())
        ordered = tuple(v for v in self.registry.versions if v in selected)
        if not ordered:
            errors.append("No applicable versions matched the versions mapping.")
        return ResolvedVersions(
            versions=ordered, warnings=tuple(warnings), errors=tuple(errors)
        )

    def _collect(
        self,
        spec: typ.Mapping[str, typ.Any],
        selected: set[str],
        warnings: list[str],
        errors: list[str],
        *,
        seen_features: set[str],
    ) -> None:
        """Add the version ids matched by ``spec`` into ``selected``."""
        for key, token in spec.items():
            if key == FEATURE_KEY:
                self._collect_features(
                    token, selected, warnings, errors, seen_features=seen_features
                )
                continue
            plan = self.registry.plans.get(key)
            if plan is None:
                message = f"Unknown product line '{key}' was dropped."
                logger.warning(message)
                warnings.append(message)
                continue
            try:
                releases = _match_releases(plan, token)
            except ValueError as exc:
                errors.append(str(exc))
                continue
            selected.update(plan.version_id(release) for release in releases)

    def _collect_features(
        self,
        token: object,
        selected: set[str],
        warnings: list[str],
        errors: list[str],
        *,
        seen_features: set[str],
    ) -> None:
        """Union the versions of each named feature flag."""
        names = [token] if isinstance(token, str) else token
        if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
            errors.append("'feature' must be a feature name or a list of names.")
            return
        for name in names:
            feature = self.registry.features.get(name)
            if feature is None:
                errors.append(f"Unknown feature '{name}'.")
                continue
            if name in seen_features:
                continue
            seen_features.add(name)
            self._collect(
                feature, selected, warnings, errors, seen_features=seen_features
            )


def _match_releases(plan: VersionPlan, token: object) -> tuple[str, ...]:
    """Return the releases of ``plan`` selected by ``token``."""
    match token:
        case str() if token.strip() == ALL_RELEASES:
            return plan.releases
        case str() if token.strip() == LATEST_RELEASE:
            return (plan.latest_release,)
        case bool() | None:
            pass
        case list() | tuple():
            requested = [str(item).strip() for item in token]
            unknown = [item for item in requested if item not in plan.releases]
            if unknown:
                listed = ", ".join(unknown)
                msg = f"Unknown {plan.short_name} release(s): {listed}."
                raise ValueError(msg)
            return tuple(r for r in plan.releases if r in requested)
        case str() | int() | float() if plan.numbered:
            expr = str(token)
            alternatives = _parse_range(expr)
            return tuple(
                release
                for release in plan.releases
                if any(
                    all(_OPERATORS[op](Version(release), bound) for op, bound in group)
                    for group in alternatives
                )
            )
    msg = f"Invalid version token {token!r} for '{plan.short_name}'."
    raise ValueError(msg)


def _parse_range(expr: str) -> list[list[tuple[str, Version]]]:
    """Parse ``'>=3.9 <3.12 || 3.7'`` into OR-ed groups of AND-ed comparators."""
    alternatives: list[list[tuple[str, Version]]] = []
    for part in expr.split("||"):
        text = part.strip()
        if not text:
            msg = f"Invalid version range '{expr}'."
            raise ValueError(msg)
        comparators: list[tuple[str, Version]] = []
        pos = 0
        while pos < len(text):
            match = _COMPARATOR.match(text, pos)
            if match is None:
                msg = f"Invalid version range '{expr}'."
                raise ValueError(msg)
            comparators.append((match.group(1) or "=", Version(match.group(2))))
            pos = match.end()
        alternatives.append(comparators)
    return alternatives


def load_version_registry(
    path: Path, features_dir: Path | None = None
) -> VersionRegistry:
    """Load the version registry YAML and any feature flag files.

    Parameters
    ----------
    path : Path
        Registry file with ``default`` and ``plans`` keys.
    features_dir : Path, optional
        Directory of ``<feature>.yml`` files each holding a ``versions``
        mapping. Missing directories are treated as empty.

    Returns
    -------
    VersionRegistry
        Plans in file order with numbered releases sorted newest first.

    Raises
    ------
    VersionRegistryError
        If the file is missing, unparsable, or structurally invalid.
    """
    if not path.is_file():
        msg = f"Version registry '{path}' not found."
        raise VersionRegistryError(msg)
    raw = _load_yaml_mapping(path)

    plans_raw = raw.get("plans")
    if not isinstance(plans_raw, dict) or not plans_raw:
        msg = f"Version registry '{path}' must define a non-empty 'plans' mapping."
        raise VersionRegistryError(msg)
    plans = {
        str(short): _build_plan(str(short), payload, path)
        for short, payload in plans_raw.items()
    }

    default_version = str(raw.get("default") or DEFAULT_VERSION)
    registry = VersionRegistry(
        plans=plans,
        default_version=default_version,
        features=_load_features(features_dir) if features_dir else {},
    )
    if default_version not in registry.versions:
        msg = f"Default version '{default_version}' is not a registered version."
        raise VersionRegistryError(msg)
    return registry


def _load_yaml_mapping(path: Path) -> dict[str, typ.Any]:
    """Read ``path`` as YAML and require a mapping at the top level."""
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        with path.open("r", encoding="utf-8") as handle:
            loaded = loader.load(handle) or {}
    except (OSError, YAMLError) as exc:
        msg = f"Unable to read '{path}': {exc}"
        raise VersionRegistryError(msg) from exc
    if not isinstance(loaded, dict):
        msg = f"Top-level YAML structure of '{path}' must be a mapping."
        raise VersionRegistryError(msg)
    return dict(loaded)


def _build_plan(short_name: str, payload: object, path: Path) -> VersionPlan:
    """Build one VersionPlan, sorting numbered releases newest first."""
    if not isinstance(payload, dict) or not payload.get("plan"):
        msg = f"Plan '{short_name}' in '{path}' must be a mapping with a 'plan' key."
        raise VersionRegistryError(msg)
    releases_raw = payload.get("releases") or [LATEST_RELEASE]
    if not isinstance(releases_raw, list):
        msg = f"Plan '{short_name}' releases must be a list."
        raise VersionRegistryError(msg)
    if any(isinstance(release, float) for release in releases_raw):
        msg = f"Plan '{short_name}' releases must be quoted strings (e.g. '3.10')."
        raise VersionRegistryError(msg)
    releases = [str(release).strip() for release in releases_raw]
    if releases != [LATEST_RELEASE]:
        try:
            releases.sort(key=Version, reverse=True)
        except InvalidVersion as exc:
            msg = f"Plan '{short_name}' has an invalid release: {exc}"
            raise VersionRegistryError(msg) from exc
    return VersionPlan(
        short_name=short_name,
        plan=str(payload["plan"]),
        name=str(payload.get("name") or short_name),
        releases=tuple(releases),
    )


def _load_features(directory: Path) -> dict[str, dict[str, typ.Any]]:
    """Read every ``*.yml`` feature flag file in ``directory``."""
    features: dict[str, dict[str, typ.Any]] = {}
    if not directory.is_dir():
        return features
    for feature_path in sorted(directory.glob("*.yml")):
        raw = _load_yaml_mapping(feature_path)
        versions = raw.get("versions")
        if not isinstance(versions, dict):
            msg = f"Feature '{feature_path.stem}' must define a 'versions' mapping."
            raise VersionRegistryError(msg)
        features[feature_path.stem] = dict(versions)
    return features


__all__ = [
    "ALL_RELEASES",
    "ResolvedVersions",
    "VersionPlan",
    "VersionRegistry",
    "VersionResolver",
    "load_version_registry",
]

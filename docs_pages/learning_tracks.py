"""Load per-product learning tracks and tie them to loaded pages.

A learning track is an ordered list of guide paths under a title, stored in
``data/learning-tracks/<product>.yml`` and keyed by track name. Tracks carry
a ``versions`` mapping like page frontmatter, so each one is resolved to the
versions it is shown under. Pages opt in by listing track keys in their
``learningTracks`` frontmatter.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

import msgspec
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .frontmatter import FrontmatterError
from .permalinks import join_url_path

if typ.TYPE_CHECKING:  # pragma: no cover - import for type hints only
    from pathlib import Path

    from .loader import PageCollection
    from .page import Page
    from .versions import VersionResolver


class _TrackEntry(
    msgspec.Struct, frozen=True, kw_only=True, forbid_unknown_fields=True
):
    title: str
    versions: dict[str, str | list[str]]
    guides: tuple[str, ...]
    description: str = ""


@dc.dataclass(slots=True, frozen=True)
class LearningTrack:
    """One resolved learning track."""

    product: str
    key: str
    title: str
    description: str
    versions: tuple[str, ...]
    guides: tuple[str, ...]


@dc.dataclass(slots=True, frozen=True)
class MissingGuide:
    """A track guide that matches no page under any of the track's versions."""

    product: str
    track: str
    guide: str


@dc.dataclass(slots=True, frozen=True)
class LearningTracks:
    """All tracks keyed by product then track key, plus load errors."""

    tracks: dict[str, dict[str, LearningTrack]]
    errors: tuple[FrontmatterError, ...] = ()

    def get(self, product: str, key: str) -> LearningTrack | None:
        return self.tracks.get(product, {}).get(key)

    def __iter__(self) -> cabc.Iterator[LearningTrack]:
        for product_tracks in self.tracks.values():
            yield from product_tracks.values()


def load_learning_tracks(directory: Path, resolver: VersionResolver) -> LearningTracks:
    """Read every ``<product>.yml`` file in ``directory``.

    Parameters
    ----------
    directory : Path
        Folder holding one YAML file per product. A missing folder yields no
        tracks.
    resolver : VersionResolver
        Resolver used to expand each track's ``versions`` mapping.

    Returns
    -------
    LearningTracks
        Tracks that validated, with one error per malformed file or entry.
    """
    tracks: dict[str, dict[str, LearningTrack]] = {}
    errors: list[FrontmatterError] = []
    if not directory.is_dir():
        return LearningTracks(tracks={})

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    for path in sorted(directory.glob("*.yml")):
        filepath = str(path)
        try:
            with path.open("r", encoding="utf-8") as handle:
                raw = loader.load(handle) or {}
        except (OSError, YAMLError) as exc:
            errors.append(
                FrontmatterError(filepath=filepath, message=str(exc), reason="yaml")
            )
            continue
        if not isinstance(raw, dict):
            errors.append(
                FrontmatterError(
                    filepath=filepath,
                    message="Learning track file must be a mapping of track keys.",
                    reason="type",
                )
            )
            continue
        product_tracks: dict[str, LearningTrack] = {}
        for key, payload in raw.items():
            track, track_errors = _build_track(
                path.stem, str(key), payload, filepath, resolver
            )
            errors.extend(track_errors)
            if track is not None:
                product_tracks[track.key] = track
        tracks[path.stem] = product_tracks
    return LearningTracks(tracks=tracks, errors=tuple(errors))


def _build_track(
    product: str,
    key: str,
    payload: object,
    filepath: str,
    resolver: VersionResolver,
) -> tuple[LearningTrack | None, list[FrontmatterError]]:
    """Validate one track entry and resolve its versions."""
    try:
        entry = msgspec.convert(payload, type=_TrackEntry)
    except msgspec.ValidationError as exc:
        message = f"Track '{key}': {exc}"
        error = FrontmatterError(filepath=filepath, message=message, reason="type")
        return None, [error]

    errors = [
        FrontmatterError(
            filepath=filepath,
            message=f"Track '{key}' guide '{guide}' must start with '/'.",
        )
        for guide in entry.guides
        if not guide.startswith("/")
    ]
    resolved = resolver.resolve(entry.versions)
    errors.extend(
        FrontmatterError(
            filepath=filepath, message=f"Track '{key}': {message}", reason="versions"
        )
        for message in resolved.errors
    )
    track = LearningTrack(
        product=product,
        key=key,
        title=entry.title,
        description=entry.description,
        versions=resolved.versions,
        guides=entry.guides,
    )
    return track, errors


def tracks_for_page(
    page: Page, tracks: LearningTracks, version: str
) -> list[LearningTrack]:
    """Return the tracks ``page`` lists that are shown under ``version``."""
    if page.parent_product is None:
        return []
    selected: list[LearningTrack] = []
    for key in page.learning_tracks:
        track = tracks.get(page.parent_product.id, key)
        if track is not None and version in track.versions:
            selected.append(track)
    return selected


def guide_pages(
    track: LearningTrack, pages: PageCollection, version: str
) -> list[Page]:
    """Return the pages a track links to under ``version``, skipping gaps."""
    found: list[Page] = []
    for guide in track.guides:
        page = pages.page_map.get(_guide_href(guide, pages, version))
        if page is not None:
            found.append(page)
    return found


def find_missing_guides(
    tracks: LearningTracks, pages: PageCollection
) -> list[MissingGuide]:
    """Return guides that match no page under any of their track's versions."""
    missing: list[MissingGuide] = []
    for track in tracks:
        for guide in track.guides:
            if not any(
                _guide_href(guide, pages, version) in pages.page_map
                for version in track.versions
            ):
                missing.append(MissingGuide(track.product, track.key, guide))
    return missing


def _guide_href(guide: str, pages: PageCollection, version: str) -> str:
    """Build the default-language href of ``guide`` under ``version``."""
    segment = "" if version == pages.default_version else version
    return join_url_path(pages.default_language, segment, guide)


__all__ = [
    "LearningTrack",
    "LearningTracks",
    "MissingGuide",
    "find_missing_guides",
    "guide_pages",
    "load_learning_tracks",
    "tracks_for_page",
]

"""
goal: compare one installed file (core, plugin or theme) against its known-good reference copy.

flow per request:
1. resolve the local folder and version for the resource type and slug
2. read the local file (missing or unreadable -> empty, a deleted file still gets a diff)
3. fetch the reference copy from the checksum service
4. report a failed fetch first, then "File not found" when both sides are empty,
   else render the diff

the only side effects are one local read and one outbound request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from checker.api_client import ApiClient, error_from_remote
from checker.errors import BadRequestError, MissingFileError, NotFoundError
from checker.resources import InstalledResourceLookup, ResourceLocation, ResourceType
from checker.text_diff import has_changes, render_text_diff

logger = logging.getLogger("integrity_checker.diff")

REMOTE_REMAIN_HEADER = "x-checksum-diff-remain"
LOCAL_REMAIN_HEADER = "x-integrity-checker-diff-remain"


@dataclass
class DiffEnvelope:
    html: str
    headers: dict[str, str] = field(default_factory=dict)


def _local_path(root: Path, relative_path: str) -> Path:
    # the file name comes from a request header, keep it inside the resource folder
    rel = relative_path.replace("\\", "/").lstrip("/")
    candidate = (root / rel).resolve()
    if candidate != root.resolve() and root.resolve() not in candidate.parents:
        raise BadRequestError("Invalid file name")
    return candidate


def _read_local(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        # unreadable and missing look the same to the caller
        logger.debug("local file %s unreadable: %s", path, e)
        return b""


class FileDiff:
    def __init__(
        self, api_client: ApiClient, lookups: dict[ResourceType, InstalledResourceLookup]
    ) -> None:
        self.api_client = api_client
        self.lookups = lookups

    def _locate(self, resource_type: ResourceType, slug: str) -> ResourceLocation:
        lookup = self.lookups[resource_type]
        location = lookup.locate(slug)
        if location is None:
            raise NotFoundError(lookup.not_found_message)
        return location

    def get_diff(self, resource_type: str, slug: str, relative_path: str) -> DiffEnvelope:
        kind = ResourceType.parse(resource_type)
        if kind is None:
            # nothing to compare for an unknown type
            raise MissingFileError()

        location = self._locate(kind, slug)
        local = _read_local(_local_path(location.root_path, relative_path))
        remote = self.api_client.get_file(
            kind.value, location.slug, location.version, relative_path
        )

        if remote.status_code != 200:
            logger.warning(
                "reference fetch for %s %s@%s %s returned %s",
                kind.value,
                location.slug,
                location.version,
                relative_path,
                remote.status_code,
            )
            raise error_from_remote(remote.status_code, remote.reason, remote.body)

        if not local and not remote.body:
            raise MissingFileError()

        html = render_text_diff(
            remote.body.decode("utf-8", errors="replace"),
            local.decode("utf-8", errors="replace"),
            title_left="Original",
            title_right="Local",
        )
        envelope = DiffEnvelope(html=html)
        remain = remote.headers.get(REMOTE_REMAIN_HEADER)
        if remain is not None:
            envelope.headers[LOCAL_REMAIN_HEADER] = remain

        logger.info(
            "diff %s %s %s: %s",
            kind.value,
            location.slug,
            relative_path,
            "changed" if has_changes(html) else "identical",
        )
        return envelope

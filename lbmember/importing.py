"""Composite import identifiers.

An existing member is adopted from a single string of four tokens:

    "{project_id}/{region_id}/{member_id}/{pool_id}"
"""

from __future__ import annotations

from dataclasses import dataclass

from lbmember.constants import IMPORT_ID_SEPARATOR
from lbmember.errors import CloudError, ErrorKind


@dataclass(frozen=True, slots=True)
class ImportID:
    project_id: int
    region_id: int
    member_id: str
    pool_id: str

    def __str__(self) -> str:
        return format_import_id(self.project_id, self.region_id, self.member_id, self.pool_id)


def _to_int(token: str, name: str, raw: str) -> int:
    try:
        return int(token)
    except ValueError:
        raise CloudError(
            kind=ErrorKind.VALIDATION,
            message=f"{name} must be an integer in import id {raw!r}, got: {token!r}",
        ) from None


def parse_import_id(raw: str) -> ImportID:
    """Decode ``raw`` into its project, region, member and pool coordinates.

    Raises:
        CloudError: VALIDATION when the token count is not four, a token is
            empty, or project/region are not integers.
    """
    tokens = raw.split(IMPORT_ID_SEPARATOR)
    if len(tokens) != 4 or not all(t.strip() for t in tokens):
        raise CloudError(
            kind=ErrorKind.VALIDATION,
            message=(
                f"import id must look like "
                f"'<project_id>{IMPORT_ID_SEPARATOR}<region_id>{IMPORT_ID_SEPARATOR}"
                f"<member_id>{IMPORT_ID_SEPARATOR}<pool_id>', got: {raw!r}"
            ),
        )
    project, region, member_id, pool_id = (t.strip() for t in tokens)
    return ImportID(
        project_id=_to_int(project, "project_id", raw),
        region_id=_to_int(region, "region_id", raw),
        member_id=member_id,
        pool_id=pool_id,
    )


def format_import_id(project_id: int, region_id: int, member_id: str, pool_id: str) -> str:
    return IMPORT_ID_SEPARATOR.join((str(project_id), str(region_id), member_id, pool_id))

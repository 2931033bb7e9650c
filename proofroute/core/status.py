"""Status tag resolution.

Status tags may be written the way the response builder names them
(``BadRequest``), as enum member names (``BAD_REQUEST``), as plain integers
or as ``HTTPStatus`` members. All of them resolve to an ``HTTPStatus``.
"""

from http import HTTPStatus

from proofroute.core.exceptions import UnknownStatusCodeError

StatusTag = HTTPStatus | int | str


def _normalize(name: str) -> str:
    return name.replace("_", "").replace("-", "").replace(" ", "").lower()


# Includes aliases such as UNPROCESSABLE_ENTITY next to their canonical names
_STATUS_BY_NAME: dict[str, HTTPStatus] = {
    _normalize(name): status for name, status in HTTPStatus.__members__.items()
}


def resolve_status(tag: StatusTag) -> HTTPStatus:
    """Resolve a status tag to an HTTPStatus.

    Args:
        tag: HTTPStatus member, integer code or status name

    Returns:
        The matching HTTPStatus

    Raises:
        UnknownStatusCodeError: If the tag names no known status
    """
    if isinstance(tag, HTTPStatus):
        return tag
    if isinstance(tag, bool):
        raise UnknownStatusCodeError(f"Unknown HTTP status code: {tag!r}")
    if isinstance(tag, int):
        try:
            return HTTPStatus(tag)
        except ValueError:
            raise UnknownStatusCodeError(
                f"Unknown HTTP status code: {tag}"
            ) from None
    if isinstance(tag, str):
        status = _STATUS_BY_NAME.get(_normalize(tag))
        if status is None:
            raise UnknownStatusCodeError(f"Unknown HTTP status code: {tag!r}")
        return status
    raise UnknownStatusCodeError(
        f"Status tag must be an HTTPStatus, int or str, got {type(tag).__name__}"
    )

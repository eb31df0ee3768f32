"""Multipart form construction.

The backend binds multipart fields by dotted and indexed names
(``Address.City``, ``Items[0].Title``), so nested payloads are flattened
field by field before being added to an :class:`aiohttp.FormData`. The
content type (and its boundary) is left for aiohttp to set.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import BinaryIO

import aiohttp
from typing_extensions import TypeIs


@dataclass(slots=True, frozen=True)
class FileUpload:
    """A file part of a multipart request.

    Attributes:
        filename: File name sent in the part's Content-Disposition
        content: Raw bytes or an open binary stream
        content_type: MIME type of the part
    """

    filename: str
    content: bytes | BinaryIO
    content_type: str = "application/octet-stream"


def _is_mapping(value: object) -> TypeIs[Mapping[str, object]]:
    return isinstance(value, Mapping)


def _is_sequence(value: object) -> TypeIs[Sequence[object]]:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _render_scalar(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def flatten_form_fields(fields: Mapping[str, object], prefix: str = "") -> list[tuple[str, str]]:
    """Flatten nested form data to ``(name, value)`` pairs.

    Nested mappings use dotted names, sequences use indexed names, ``None``
    values are skipped and booleans render as ``true``/``false``.

    Args:
        fields: Form fields, possibly nested
        prefix: Name prefix for recursive calls

    Returns:
        Flat list of name/value pairs in insertion order

    Examples:
        >>> flatten_form_fields({"title": "Intro", "tags": ["a", "b"], "meta": {"draft": True}})
        [('title', 'Intro'), ('tags[0]', 'a'), ('tags[1]', 'b'), ('meta.draft', 'true')]
        >>> flatten_form_fields({"items": [{"field": 1}]})
        [('items[0].field', '1')]
    """
    pairs: list[tuple[str, str]] = []
    for key, value in fields.items():
        name = f"{prefix}.{key}" if prefix else str(key)
        pairs.extend(_flatten_value(name, value))
    return pairs


def _flatten_value(name: str, value: object) -> Iterable[tuple[str, str]]:
    if value is None:
        return []
    if _is_mapping(value):
        return flatten_form_fields(value, name)
    if _is_sequence(value):
        pairs: list[tuple[str, str]] = []
        for index, item in enumerate(value):
            pairs.extend(_flatten_value(f"{name}[{index}]", item))
        return pairs
    return [(name, _render_scalar(value))]


def build_form_data(
    fields: Mapping[str, object] | None = None,
    files: Mapping[str, FileUpload | Sequence[FileUpload]] | None = None,
) -> aiohttp.FormData:
    """Build a multipart body from scalar fields and file parts.

    Args:
        fields: Form fields, flattened with :func:`flatten_form_fields`
        files: File parts keyed by field name; a sequence repeats the name

    Returns:
        FormData ready to pass as ``data=`` to aiohttp
    """
    form = aiohttp.FormData(default_to_multipart=True)
    for name, value in flatten_form_fields(fields or {}):
        form.add_field(name, value)
    for name, upload in (files or {}).items():
        uploads = [upload] if isinstance(upload, FileUpload) else list(upload)
        for item in uploads:
            if not isinstance(item.content, bytes) and item.content.seekable():
                _ = item.content.seek(0)
            form.add_field(
                name,
                item.content,
                filename=item.filename,
                content_type=item.content_type,
            )
    return form


@dataclass(slots=True, frozen=True)
class MultipartBody:
    """Recipe for a multipart body.

    ``aiohttp.FormData`` is consumed when sent, so requests that may be
    replayed (after a token refresh) carry this recipe and build a fresh
    form per attempt.
    """

    fields: Mapping[str, object] | None = None
    files: Mapping[str, FileUpload | Sequence[FileUpload]] | None = None

    def build(self) -> aiohttp.FormData:
        return build_form_data(self.fields, self.files)

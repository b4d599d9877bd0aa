"""JSON file I/O and document helpers shared by the store and config layers."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .errors import DependencyError, ValidationError

T = TypeVar('T', bound=BaseModel)
logger = logging.getLogger('fantasygolf.utils')

DATE_TAG = '$date'


def _encode(value: Any) -> Any:
    """JSON ``default`` hook: datetimes become ``{"$date": iso}``."""
    if isinstance(value, datetime):
        return {DATE_TAG: value.isoformat()}
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if isinstance(value, BaseModel):
        return value.model_dump()
    raise TypeError(f'Object of type {type(value).__name__} is not JSON serializable')


def _decode(obj: dict) -> Any:
    if len(obj) == 1 and DATE_TAG in obj:
        return datetime.fromisoformat(obj[DATE_TAG])
    return obj


def dumps(data: Any) -> str:
    """Serialize to compact JSON, tagging datetimes."""
    return json.dumps(data, default=_encode, separators=(',', ':'))


def loads(text: str) -> Any:
    """Inverse of :func:`dumps`."""
    return json.loads(text, object_hook=_decode)


def format_validation_errors(error: PydanticValidationError) -> list[str]:
    """Flatten a pydantic error into ``field: message`` strings."""
    messages = []
    for detail in error.errors():
        location = '.'.join(str(part) for part in detail.get('loc', ()))
        message = detail.get('msg', 'Invalid value')
        # pydantic prefixes ValueErrors raised inside validators
        if message.startswith('Value error, '):
            message = message[len('Value error, '):]
        messages.append(f'{location}: {message}' if location else message)
    return messages


def load_json(
    path: Path | str,
    schema: type[T] | None = None,
) -> Any | T:
    """
    Load a JSON file, decoding tagged datetimes, with optional schema validation.

    Args:
        path: Path to JSON file (str or Path object)
        schema: Optional Pydantic model to validate against

    Returns:
        Parsed JSON (validated if schema provided)

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If JSON is malformed
        ValidationError: If schema validation fails

    Example:
        from fantasygolf.schemas import LeagueConfig
        config = load_json('data/league_config.json', schema=LeagueConfig)
    """
    path = Path(path)

    logger.debug(f'Loading JSON from: {path}')

    if not path.exists():
        logger.error(f'File not found: {path}')
        raise FileNotFoundError(f'File not found: {path}')

    try:
        with open(path, encoding='utf-8') as f:
            data = json.load(f, object_hook=_decode)
    except json.JSONDecodeError as e:
        logger.error(f'Invalid JSON in {path}: {e.msg} at position {e.pos}')
        raise json.JSONDecodeError(f'Invalid JSON in {path}: {e.msg}', e.doc, e.pos) from e

    if schema:
        try:
            validated = schema.model_validate(data)
            logger.debug(f'Schema validation passed for: {path}')
            return validated
        except PydanticValidationError as e:
            logger.error(f'Schema validation failed for {path}: {e}')
            raise ValidationError(
                f'Schema validation failed for {path}',
                errors=format_validation_errors(e),
            ) from e

    return data


def save_json(
    path: Path | str,
    data: Any,
    indent: int = 2,
    create_dirs: bool = True,
) -> None:
    """
    Save data as a JSON file. Writes to a sibling temp file and renames it
    into place so readers never see a half-written collection.

    Args:
        path: Path to write to (str or Path object)
        data: Data to serialize (datetimes and Pydantic models are encoded)
        indent: Indentation level (default: 2 spaces)
        create_dirs: Create parent directories if they don't exist (default: True)

    Raises:
        DependencyError: If the file cannot be written
    """
    path = Path(path)

    logger.debug(f'Saving JSON to: {path}')

    try:
        if create_dirs:
            path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + '.tmp')
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=indent, ensure_ascii=False, default=_encode)
        tmp_path.replace(path)
    except OSError as e:
        logger.error(f'Failed to write file {path}: {e}')
        raise DependencyError(f'Failed to write {path}: {e}') from e


def full_name(doc: dict) -> str:
    """``"First Last"`` for a golfer or user document."""
    return f"{doc.get('first_name', '')} {doc.get('last_name', '')}".strip()

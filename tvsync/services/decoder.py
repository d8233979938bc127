"""
Response Decoder

Turns raw player_api.php response bodies into typed channel and category
records. Scalar fields tolerate the server's inconsistent JSON typing; the
top-level shape may be a bare array or an object wrapping the array.
"""
import json
import logging
from typing import Annotated, Any, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, StrictStr, TypeAdapter, ValidationError

from tvsync.services.errors import DecodeError
from tvsync.services.sync_types import ResponseDescription, SyncKind
from tvsync.utils.flexible import (
    parse_flexible_int,
    parse_flexible_int_list,
    parse_flexible_str,
    parse_optional_text,
)


logger = logging.getLogger(__name__)

FlexibleInt = Annotated[int, BeforeValidator(parse_flexible_int)]
FlexibleStr = Annotated[str, BeforeValidator(parse_flexible_str)]
FlexibleIntList = Annotated[list[int], BeforeValidator(parse_flexible_int_list)]
OptionalText = Annotated[str, BeforeValidator(parse_optional_text)]


class ChannelRecord(BaseModel):
    """Live stream record as served by get_live_streams"""
    model_config = ConfigDict(frozen=True, extra="ignore")

    num: FlexibleInt = 0
    name: StrictStr
    stream_type: OptionalText = ""
    stream_id: FlexibleInt = 0
    stream_icon: OptionalText = ""
    epg_channel_id: OptionalText = ""
    added: OptionalText = ""
    custom_sid: OptionalText = ""
    tv_archive: FlexibleInt = 0
    direct_source: OptionalText = ""
    tv_archive_duration: FlexibleInt = 0
    category_id: FlexibleStr = ""
    category_ids: FlexibleIntList = []
    thumbnail: OptionalText = ""


class CategoryRecord(BaseModel):
    """Category record as served by get_live_categories"""
    model_config = ConfigDict(frozen=True, extra="ignore")

    category_id: FlexibleStr = ""
    category_name: StrictStr
    parent_id: FlexibleInt = 0


RecordT = TypeVar("RecordT", ChannelRecord, CategoryRecord)

RECORD_MODELS: dict[SyncKind, type[ChannelRecord] | type[CategoryRecord]] = {
    SyncKind.CHANNELS: ChannelRecord,
    SyncKind.CATEGORIES: CategoryRecord,
}


def _is_array_of_objects(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, dict) for item in value)


def decode_records(body: bytes, model: type[RecordT]) -> list[RecordT]:
    """
    Decode a response body into records of the given model.

    Tries the body as a bare JSON array first. If that fails, the body is
    parsed as generic JSON and, when it is an object, its values are scanned
    in order for the first array of objects that decodes as a whole.

    Args:
        body: Raw response bytes (UTF-8 JSON)
        model: ChannelRecord or CategoryRecord

    Returns:
        Records in the order received

    Raises:
        DecodeError: If no strategy yields a fully decoded list
    """
    adapter = TypeAdapter(list[model])
    record_name = model.__name__

    try:
        records = adapter.validate_json(body)
        logger.info("Decoded %s %s records as direct array", len(records), record_name)
        return records
    except ValidationError as exc:
        logger.warning(
            "Failed to decode %s as direct array (%s error(s)): %s",
            record_name,
            exc.error_count(),
            exc.errors()[0]["msg"] if exc.error_count() else exc,
        )

    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError, RecursionError) as exc:
        logger.error("Response is not valid JSON: %s", exc)
        raise DecodeError(f"Failed to decode {record_name}: response is not valid JSON") from exc

    if isinstance(payload, list):
        raise DecodeError(f"Failed to decode {record_name}: array contains invalid records")
    if not isinstance(payload, dict):
        raise DecodeError(
            f"Failed to decode {record_name}: expected an array or object, got {type(payload).__name__}"
        )

    for key, value in payload.items():
        if not _is_array_of_objects(value):
            continue
        logger.info("Found candidate array under key '%s' (%s items)", key, len(value))
        try:
            records = adapter.validate_python(value)
        except ValidationError as exc:
            logger.warning(
                "Failed to decode nested array under key '%s': %s error(s)",
                key,
                exc.error_count(),
            )
            continue
        logger.info(
            "Decoded %s %s records from nested array under key '%s'",
            len(records),
            record_name,
            key,
        )
        return records

    api_error = payload.get("error")
    if isinstance(api_error, str) and api_error:
        logger.error("API returned error: %s", api_error)
        raise DecodeError(f"API Error: {api_error}")

    raise DecodeError(f"Failed to decode {record_name} with any known format")


def describe_response(body: bytes, sample_chars: int = 500) -> ResponseDescription:
    """
    Classify a response body and keep a truncated text sample.

    Args:
        body: Raw response bytes
        sample_chars: Maximum sample length

    Returns:
        ResponseDescription with type 'Array', 'Dictionary', 'Other JSON' or 'Invalid JSON'
    """
    sample = body.decode("utf-8", errors="replace")[:sample_chars]

    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError, RecursionError):
        # Nesting deeper than the interpreter stack is reported as invalid
        return ResponseDescription(response_type="Invalid JSON", sample=sample)

    if isinstance(payload, list):
        logger.debug("Response is an array with %s items", len(payload))
        response_type = "Array"
    elif isinstance(payload, dict):
        logger.debug("Response is a dictionary with keys: %s", ", ".join(payload.keys()))
        response_type = "Dictionary"
    else:
        response_type = f"Other JSON ({type(payload).__name__})"

    return ResponseDescription(response_type=response_type, sample=sample)


__all__ = [
    "ChannelRecord",
    "CategoryRecord",
    "RECORD_MODELS",
    "decode_records",
    "describe_response",
]

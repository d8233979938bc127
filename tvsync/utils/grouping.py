"""
Channel grouping utilities

Groups channels into labelled category buckets for display.
"""
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Generic, Protocol, TypeVar

logger = logging.getLogger(__name__)

UNCATEGORIZED_LABEL = "Uncategorized"
ALL_CHANNELS_LABEL = "All Channels"


class HasCategoryId(Protocol):
    category_id: str


ChannelT = TypeVar("ChannelT", bound=HasCategoryId)


@dataclass(slots=True)
class ChannelGrouping(Generic[ChannelT]):
    """Category labels in display order and the channels under each."""
    labels: list[str] = field(default_factory=list)
    channels_by_label: dict[str, list[ChannelT]] = field(default_factory=dict)


def category_label(category_id: str, category_names: Mapping[str, str] | None = None) -> str:
    """
    Resolve the display label of a category id.

    Args:
        category_id: Category id as stored on the channel
        category_names: Optional id -> name lookup

    Returns:
        'Uncategorized' for an empty id, the mapped name when known, else the id
    """
    if not category_id:
        return UNCATEGORIZED_LABEL
    if category_names:
        return category_names.get(category_id) or category_id
    return category_id


def group_channels_by_category(
    channels: Sequence[ChannelT],
    *,
    include_all: bool = False,
    category_names: Mapping[str, str] | None = None,
) -> ChannelGrouping[ChannelT]:
    """
    Group channels by category label.

    Channels keep their input order inside each bucket. Labels are sorted
    ascending; with include_all an 'All Channels' bucket holding every
    channel is pinned first.

    Args:
        channels: Channels in stored order
        include_all: Prepend the 'All Channels' bucket
        category_names: Optional id -> name lookup for labels

    Returns:
        ChannelGrouping with ordered labels and their channels
    """
    channels_by_label: dict[str, list[ChannelT]] = {}
    for channel in channels:
        label = category_label(channel.category_id, category_names)
        channels_by_label.setdefault(label, []).append(channel)

    labels = sorted(channels_by_label)

    if include_all:
        labels.insert(0, ALL_CHANNELS_LABEL)
        channels_by_label = {ALL_CHANNELS_LABEL: list(channels), **channels_by_label}

    logger.debug("Grouped %s channels into %s categories", len(channels), len(labels))
    return ChannelGrouping(labels=labels, channels_by_label=channels_by_label)

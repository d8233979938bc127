from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CredentialRequest(BaseModel):
    """Sign-in request"""
    server_url: str = Field(..., min_length=1, description="Server base URL (e.g., 'http://example.com:8080')")
    username: str = Field(..., min_length=1, description="Account username")
    password: str = Field(..., min_length=1, description="Account password")

    @field_validator('server_url')
    @classmethod
    def validate_server_url(cls, v: str) -> str:
        """Validate server URL is HTTP/HTTPS"""
        v = v.strip()
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError(f"Server URL must be HTTP/HTTPS: {v}")
        return v


class CredentialResponse(BaseModel):
    """Stored credential, password omitted"""
    model_config = ConfigDict(from_attributes=True)

    server_url: str
    username: str
    created_at: datetime


class Channel(BaseModel):
    """Channel data model"""
    model_config = ConfigDict(from_attributes=True)

    num: int
    name: str
    stream_type: str
    stream_id: int = Field(..., description="Stream identifier used for playback URLs")
    stream_icon: str
    epg_channel_id: str
    added: str
    custom_sid: str
    tv_archive: int
    direct_source: str
    tv_archive_duration: int
    category_id: str
    category_ids: list[int]
    thumbnail: str


class Category(BaseModel):
    """Category data model"""
    model_config = ConfigDict(from_attributes=True)

    category_id: str
    category_name: str
    parent_id: int


class ChannelGroup(BaseModel):
    """Channels under one category label"""
    label: str
    channels: list[Channel]


class GroupedChannelsResponse(BaseModel):
    """Channels grouped by category"""
    total_channels: int
    labels: list[str] = Field(..., description="Category labels in display order")
    groups: list[ChannelGroup]


class StreamUrlResponse(BaseModel):
    """Playback URL for a channel"""
    stream_id: int
    name: str
    url: str


class ReachabilityResponse(BaseModel):
    """Reachability probe result"""
    reachable: bool
    detail: str | None = None


class ErrorDetail(BaseModel):
    """Standard error detail"""
    code: str = Field(..., description="Error code (e.g., 'SERVER_ERROR', 'DECODE_ERROR')")
    message: str = Field(..., description="Human-readable error message")
    context: dict | None = Field(None, description="Additional context about the error")


class StandardErrorResponse(BaseModel):
    """Standardized error response for all endpoints"""
    status: str = Field("error", description="Status indicator")
    timestamp: str = Field(..., description="ISO8601 timestamp of error")
    error: ErrorDetail = Field(..., description="Error details")

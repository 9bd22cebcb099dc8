"""
metadata fetch + normalization for supported platforms

one provider call per platform (tikhub-compatible api, bearer token),
then a pure per-platform mapping from the provider payload onto
CanonicalMetadata. provider payloads are deeply nested and inconsistent,
so every field is read from a list of alternate paths in priority order.
"""
import requests
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlparse, parse_qs
from videolens.core.config import settings
from videolens.core.errors import CredentialError, MetadataUnavailable, StageTimeout, UnsupportedPlatform
from videolens.core.logging_config import get_logger
from videolens.models import CanonicalMetadata
from videolens.services.platforms import Platform

logger = get_logger(__name__)

# (endpoint, query parameter carrying the url or id)
ENDPOINTS = {
    Platform.DOUYIN: ("/api/v1/douyin/app/v3/fetch_one_video_by_share_url", "share_url"),
    Platform.TIKTOK: ("/api/v1/tiktok/app/v3/fetch_one_video_by_share_url", "share_url"),
    Platform.YOUTUBE: ("/api/v1/youtube/web/get_video_info", "video_id"),
    Platform.XIAOHONGSHU: ("/api/v1/xiaohongshu/app/get_note_info", "url"),
    Platform.BILIBILI: ("/api/v1/bilibili/app/fetch_one_video", "url"),
}

YOUTUBE_SUBTITLES_ENDPOINT = "/api/v1/youtube/web/get_video_subtitles"


def _dig(data: Any, path: str) -> Any:
    """walk a dotted path through dicts and lists ("video.url_list.0")"""
    current = data
    for part in path.split("."):
        if isinstance(current, dict):
            current = current.get(part)
        elif isinstance(current, list) and part.isdigit():
            index = int(part)
            current = current[index] if index < len(current) else None
        else:
            return None
        if current is None:
            return None
    return current


def _first(data: Any, *paths: str, default: Any = "") -> Any:
    """value at the first path that is present and non-empty"""
    for path in paths:
        value = _dig(data, path)
        if value not in (None, "", [], {}):
            return value
    return default


def _to_int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _to_str(value: Any) -> str:
    return "" if value is None else str(value)


def extract_youtube_id(url: str) -> Optional[str]:
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    if host.endswith("youtu.be"):
        video_id = parsed.path.strip("/").split("/")[0]
        return video_id or None
    if "youtube.com" in host:
        query_id = parse_qs(parsed.query).get("v", [None])[0]
        if query_id:
            return query_id
        parts = [p for p in parsed.path.split("/") if p]
        if len(parts) >= 2 and parts[0] in ("shorts", "embed", "live", "v"):
            return parts[1]
    return None


def normalize_aweme(payload: dict) -> CanonicalMetadata:
    """douyin and tiktok share the aweme shape"""
    aweme = payload.get("aweme_detail") or payload
    return CanonicalMetadata(
        video_id=_to_str(_first(aweme, "aweme_id")),
        title=_to_str(_first(aweme, "desc")),
        description=_to_str(_first(aweme, "desc")),
        author=_to_str(_first(aweme, "author.nickname")),
        author_id=_to_str(_first(aweme, "author.unique_id", "author.short_id", "author.uid")),
        cover_url=_to_str(_first(aweme, "video.cover.url_list.0", "video.origin_cover.url_list.0")),
        play_url=_to_str(_first(aweme, "video.play_addr.url_list.0", "video.download_addr.url_list.0")),
        # provider reports milliseconds
        duration=_to_int(_first(aweme, "video.duration", "duration", default=0)) // 1000,
        hashtags=[t["hashtag_name"] for t in (aweme.get("text_extra") or []) if isinstance(t, dict) and t.get("hashtag_name")],
        view_count=_to_int(_first(aweme, "statistics.play_count", default=0)),
        like_count=_to_int(_first(aweme, "statistics.digg_count", default=0)),
        comment_count=_to_int(_first(aweme, "statistics.comment_count", default=0)),
        share_count=_to_int(_first(aweme, "statistics.share_count", default=0)),
    )


def normalize_youtube(payload: dict) -> CanonicalMetadata:
    details = payload.get("videoDetails") or {}
    return CanonicalMetadata(
        video_id=_to_str(_first(details, "videoId")),
        title=_to_str(_first(details, "title")),
        description=_to_str(_first(details, "shortDescription")),
        author=_to_str(_first(details, "author")),
        author_id=_to_str(_first(details, "channelId")),
        cover_url=_to_str(_first(details, "thumbnail.thumbnails.0.url")),
        play_url=_to_str(_first(payload, "streamingData.formats.0.url")),
        duration=_to_int(_first(details, "lengthSeconds", default=0)),
        hashtags=[k for k in (details.get("keywords") or []) if isinstance(k, str)],
        view_count=_to_int(_first(details, "viewCount", default=0)),
    )


def normalize_xiaohongshu(payload: dict) -> CanonicalMetadata:
    note = _first(payload, "note_info", "data.note_info", "data.0.note_list.0", "data.0", default=None)
    if not isinstance(note, dict):
        note = payload
    return CanonicalMetadata(
        video_id=_to_str(_first(note, "note_id", "id")),
        title=_to_str(_first(note, "title", "desc", "description")),
        description=_to_str(_first(note, "desc", "description")),
        author=_to_str(_first(note, "user.nickname", "user.nick_name", "author.nickname")),
        author_id=_to_str(_first(note, "user.user_id", "user.id", "user.userid")),
        cover_url=_to_str(_first(note, "image_list.0.url_default", "images_list.0.url", "cover.url_default", "images.0")),
        play_url=_to_str(_first(
            note,
            "video.media.stream.h264.0.master_url",
            "video.media.stream.h264.0.backup_urls.0",
            "video.consumer.origin_video_key",
            "video.url",
        )),
        # milliseconds
        duration=_to_int(_first(note, "video.consumer.video_duration", "video.duration", default=0)) // 1000,
        hashtags=[
            t.get("name") or t.get("tag_name")
            for t in (note.get("tag_list") or [])
            if isinstance(t, dict) and (t.get("name") or t.get("tag_name"))
        ],
        view_count=_to_int(_first(note, "interact_info.view_count", "view_count", default=0)),
        like_count=_to_int(_first(note, "interact_info.liked_count", "liked_count", "like_count", default=0)),
        comment_count=_to_int(_first(note, "interact_info.comment_count", "comments_count", "comment_count", default=0)),
        share_count=_to_int(_first(note, "interact_info.share_count", "shared_count", "share_count", default=0)),
    )


def normalize_bilibili(payload: dict) -> CanonicalMetadata:
    video = _first(payload, "View", "data.View", default=None)
    if not isinstance(video, dict):
        video = payload
    tags = _first(video, "tag", default="")
    return CanonicalMetadata(
        video_id=_to_str(_first(video, "bvid", "aid")),
        title=_to_str(_first(video, "title")),
        description=_to_str(_first(video, "desc", "dynamic")),
        author=_to_str(_first(video, "owner.name", "author")),
        author_id=_to_str(_first(video, "owner.mid")),
        cover_url=_to_str(_first(video, "pic", "cover")),
        play_url=_to_str(_first(video, "durl.0.url", "dash.video.0.baseUrl", "dash.video.0.base_url")),
        duration=_to_int(_first(video, "duration", default=0)),
        hashtags=[t for t in tags.split(",") if t] if isinstance(tags, str) else [],
        view_count=_to_int(_first(video, "stat.view", "view", default=0)),
        like_count=_to_int(_first(video, "stat.like", "like", default=0)),
        comment_count=_to_int(_first(video, "stat.reply", "reply", default=0)),
        share_count=_to_int(_first(video, "stat.share", "share", default=0)),
    )


NORMALIZERS: Dict[Platform, Callable[[dict], CanonicalMetadata]] = {
    Platform.DOUYIN: normalize_aweme,
    Platform.TIKTOK: normalize_aweme,
    Platform.YOUTUBE: normalize_youtube,
    Platform.XIAOHONGSHU: normalize_xiaohongshu,
    Platform.BILIBILI: normalize_bilibili,
}


def normalize(platform: Platform, payload: dict) -> CanonicalMetadata:
    normalizer = NORMALIZERS.get(platform)
    if normalizer is None:
        raise UnsupportedPlatform(f"Platform {platform.value} is not yet implemented")
    return normalizer(payload)


def _provider_get(path: str, params: dict, token: str) -> Any:
    """one authenticated provider call; returns the envelope's data"""
    try:
        response = requests.get(
            f"{settings.TIKHUB_BASE_URL}{path}",
            params=params,
            headers={"Authorization": f"Bearer {token}"},
            timeout=settings.METADATA_TIMEOUT_SEC,
        )
    except requests.exceptions.Timeout as e:
        raise StageTimeout(f"Metadata request timed out after {settings.METADATA_TIMEOUT_SEC:.0f}s") from e
    except requests.exceptions.RequestException as e:
        raise MetadataUnavailable(f"Metadata request failed: {e}") from e

    if response.status_code in (401, 403):
        raise CredentialError("Metadata provider rejected the API token")
    if response.status_code == 404:
        raise MetadataUnavailable("Video not found")
    if response.status_code >= 400:
        raise MetadataUnavailable(f"Metadata provider returned HTTP {response.status_code}")

    try:
        body = response.json()
    except ValueError as e:
        raise MetadataUnavailable("Metadata provider returned a malformed response") from e

    if not isinstance(body, dict) or body.get("code") != 200:
        message = body.get("message") if isinstance(body, dict) else None
        raise MetadataUnavailable(message or "Failed to fetch video metadata")
    return body.get("data")


def fetch_payload(platform: Platform, url: str, token: str) -> dict:
    if platform not in ENDPOINTS:
        raise UnsupportedPlatform(f"Platform {platform.value} is not yet implemented")
    if not token:
        raise CredentialError("Metadata provider token not configured")

    path, param = ENDPOINTS[platform]
    if platform == Platform.YOUTUBE:
        value = extract_youtube_id(url)
        if not value:
            raise MetadataUnavailable("Invalid YouTube URL")
    else:
        value = url

    logger.info(f"fetching {platform.value} metadata for {url}")
    data = _provider_get(path, {param: value}, token)
    if not isinstance(data, dict) or not data:
        raise MetadataUnavailable(f"Empty metadata payload from {platform.value}")
    return data


def fetch_metadata(platform: Platform, url: str, token: str) -> CanonicalMetadata:
    payload = fetch_payload(platform, url, token)
    metadata = normalize(platform, payload)
    logger.info(f"normalized {platform.value} metadata: title={metadata.title[:60]!r} duration={metadata.duration}s")
    return metadata


def fetch_youtube_subtitles(video_id: str, token: str) -> Optional[str]:
    """best-effort subtitle text for a youtube video, None if unavailable"""
    try:
        data = _provider_get(YOUTUBE_SUBTITLES_ENDPOINT, {"video_id": video_id}, token)
    except Exception as e:
        logger.info(f"subtitles unavailable for {video_id}: {e}")
        return None

    if isinstance(data, str):
        return data.strip() or None
    entries = _first(data, "subtitles", "captions", "items", default=None) if isinstance(data, dict) else data
    if isinstance(entries, list):
        lines = [_to_str(e.get("text")).strip() for e in entries if isinstance(e, dict)]
        text = "\n".join(line for line in lines if line)
        return text or None
    if isinstance(entries, str):
        return entries.strip() or None
    return None

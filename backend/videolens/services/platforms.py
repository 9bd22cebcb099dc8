from enum import Enum
from typing import Optional
from videolens.core.errors import UnsupportedPlatform


class Platform(str, Enum):
    DOUYIN = "douyin"
    TIKTOK = "tiktok"
    YOUTUBE = "youtube"
    XIAOHONGSHU = "xiaohongshu"
    BILIBILI = "bilibili"
    KUAISHOU = "kuaishou"
    WEIBO = "weibo"
    INSTAGRAM = "instagram"
    TWITTER = "twitter"


# checked in order, first match wins
PLATFORM_DOMAINS = [
    (Platform.DOUYIN, ("douyin.com", "iesdouyin.com")),
    (Platform.TIKTOK, ("tiktok.com",)),
    (Platform.YOUTUBE, ("youtube.com", "youtu.be")),
    (Platform.XIAOHONGSHU, ("xiaohongshu.com", "xhslink.com")),
    (Platform.BILIBILI, ("bilibili.com", "b23.tv")),
    (Platform.KUAISHOU, ("kuaishou.com",)),
    (Platform.WEIBO, ("weibo.com", "weibo.cn")),
    (Platform.INSTAGRAM, ("instagram.com",)),
    # bare "x.com" would also match box.com, dropbox.com, ...
    (Platform.TWITTER, ("twitter.com", "://x.com", ".x.com")),
]


def resolve_platform(url: str) -> Optional[Platform]:
    """classify a url by case-insensitive domain fragment match; None if unknown"""
    url_lower = (url or "").lower()
    for platform, fragments in PLATFORM_DOMAINS:
        if any(fragment in url_lower for fragment in fragments):
            return platform
    return None


def require_platform(url: str) -> Platform:
    platform = resolve_platform(url)
    if platform is None:
        raise UnsupportedPlatform("Unsupported platform or invalid URL")
    return platform

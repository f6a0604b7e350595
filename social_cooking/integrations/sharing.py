"""
共有メッセージ生成

イベントから招待用のメッセージとリンクを組み立てます（副作用なし）。
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel

from ..models.event import SocialEvent, SocialEventType

EVENT_TYPE_LABELS = {
    SocialEventType.ROAST: "Sunday Roast",
    SocialEventType.PARTY: "Party Mode",
    SocialEventType.POTLUCK: "Dutch Prep",
}

DEFAULT_PUBLIC_WEB_HOST = "nosh.social"
DEFAULT_DEEP_LINK_SCHEME = "app"


class ShareMessage(BaseModel):
    """共有メッセージ"""
    message: str
    url: str
    title: str


def get_event_type_label(event_type: Union[SocialEventType, str]) -> str:
    """イベントタイプの表示名"""
    return EVENT_TYPE_LABELS[SocialEventType(event_type)]


def format_event_date(date_time: Optional[datetime]) -> str:
    """開催日時の表示形式（例: Sun 26 Oct, 13:00）"""
    if date_time is None:
        return "TBC"
    return f"{date_time:%a} {date_time.day} {date_time:%b}, {date_time:%H:%M}"


def build_event_url(
    event: SocialEvent,
    public_web_host: str = DEFAULT_PUBLIC_WEB_HOST,
    deep_link_scheme: str = DEFAULT_DEEP_LINK_SCHEME
) -> str:
    """イベントタイプに応じたリンク（potluck は公開Webページ、それ以外はアプリ内リンク）"""
    if SocialEventType(event.event_type) == SocialEventType.POTLUCK:
        return f"https://{public_web_host}/potluck/{event.event_id}"
    return f"{deep_link_scheme}://social/{event.event_id}"


def build_share_message(
    event: SocialEvent,
    public_web_host: str = DEFAULT_PUBLIC_WEB_HOST,
    deep_link_scheme: str = DEFAULT_DEEP_LINK_SCHEME
) -> ShareMessage:
    """共有メッセージを生成"""
    event_type = SocialEventType(event.event_type)
    url = build_event_url(event, public_web_host, deep_link_scheme)
    when = format_event_date(event.date_time)

    if event_type == SocialEventType.ROAST:
        message = f"You're invited to {event.title} on {when}! Vote for what we're roasting: {url}"
    elif event_type == SocialEventType.PARTY:
        message = f"{event.title} is happening on {when}. Check the menu and grab your role: {url}"
    else:
        message = f"Join my potluck {event.title} on {when}! Pick a dish to bring: {url}"

    return ShareMessage(
        message=message,
        url=url,
        title=f"{get_event_type_label(event_type)}: {event.title}",
    )

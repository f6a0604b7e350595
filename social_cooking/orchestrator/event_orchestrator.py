"""
イベントオーケストレーター

1人のアクター（ホストまたはゲスト）が1つのアクティブイベントを操作するための状態機械。
ゲストの操作（投票・料理の担当・出欠など）を検証し、リポジトリへの差分書き込みと
プロジェクションの更新を行います。

公開操作はすべて OperationResult を返し、想定内の失敗で例外を送出しません。
楽観的更新の方針:
- 追加系（ゲスト・投票・役割・料理）は書き込み成功後にプロジェクションへ反映
- 削除・担当・担当解除・料理ステータス・出欠・ステータス更新は書き込み前に反映し、
  書き込み失敗時も巻き戻さない（結果は REPOSITORY エラー）
"""

import functools
import inspect
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ..config import ClaimMode, SocialCookingConfig
from ..engine.status import can_lock, can_transition, is_terminal, progression_for, status_order
from ..engine.tally import (
    build_dish_board_summary,
    build_vote_menu,
    candidate_options,
    override_winners,
    tally_votes,
)
from ..engine.view_router import ScreenKey, landing_screen, screen_for
from ..exceptions import (
    ClaimConflictError,
    ConditionFailedError,
    IllegalTransitionError,
    InvalidPhaseError,
    NoActiveEventError,
    RecordNotFoundError,
    RepositoryError,
    SocialCookingError,
    ValidationError,
)
from ..integrations.collaborators import CollaboratorPorts, SideEffectDispatcher
from ..integrations.sharing import build_share_message
from ..models.dish import DishStatus, SocialDish
from ..models.event import EventDraft, SocialEvent, SocialEventStatus, SocialEventType
from ..models.guest import RsvpStatus, SocialGuest
from ..models.repository import SocialCookingRepository
from ..models.role import EventMembership, SocialRole
from ..models.vote import SocialVote
from .projection import EventProjection
from .results import ErrorKind, OperationResult

logger = logging.getLogger(__name__)

VOTES_LOCKED_MESSAGE = "Votes are in! Dinner is decided."
DINNER_SERVED_MESSAGE = "Dinner is served! Nice one."

_VOTING_TYPES = (SocialEventType.ROAST, SocialEventType.PARTY)


def _operation(func: Callable) -> Callable:
    """業務例外を OperationResult に変換する操作境界"""

    def _to_failure(self: "EventOrchestrator", error: Exception) -> OperationResult:
        if isinstance(error, SocialCookingError):
            result = OperationResult.from_exception(error)
        else:
            result = OperationResult.failure(ErrorKind.VALIDATION, str(error))

        if result.error == ErrorKind.REPOSITORY:
            logger.error(f"{func.__name__} 永続化エラー: {error}")
        else:
            logger.warning(f"{func.__name__} を拒否: {result.error.value} - {error}")
        return result

    def _to_success(value: Any) -> OperationResult:
        return value if isinstance(value, OperationResult) else OperationResult.success(value)

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def async_wrapper(self, *args, **kwargs) -> OperationResult:
            try:
                return _to_success(await func(self, *args, **kwargs))
            except (SocialCookingError, ValueError, TypeError) as e:
                return _to_failure(self, e)
        return async_wrapper

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs) -> OperationResult:
        try:
            return _to_success(func(self, *args, **kwargs))
        except (SocialCookingError, ValueError, TypeError) as e:
            return _to_failure(self, e)
    return wrapper


class EventOrchestrator:
    """
    イベントオーケストレーター

    アクター（user_id）ごとに1インスタンス。アクティブなイベントは常に高々1つです。
    """

    def __init__(
        self,
        repository: SocialCookingRepository,
        user_id: str,
        display_name: str = "You",
        ports: Optional[CollaboratorPorts] = None,
        config: Optional[SocialCookingConfig] = None
    ):
        """
        オーケストレーターを初期化

        Args:
            repository: イベント関連コレクションのリポジトリ
            user_id: 操作するアクターのユーザーID
            display_name: 投票・担当時に使う表示名
            ports: フィード・通知・分析のコラボレーター
            config: 実行設定（遷移検証・担当競合モード・共有リンク）
        """
        self.repository = repository
        self.user_id = user_id
        self.display_name = display_name
        self.ports = ports or CollaboratorPorts()
        self.config = config or SocialCookingConfig()

        self.projection = EventProjection()
        self.side_effects = SideEffectDispatcher()

    # ── 参照 ─────────────────────────────────────────────────────

    @property
    def active_event(self) -> Optional[SocialEvent]:
        return self.projection.active_event

    @property
    def guests(self) -> List[SocialGuest]:
        return self.projection.guests

    @property
    def votes(self) -> List[SocialVote]:
        return self.projection.votes

    @property
    def dishes(self) -> List[SocialDish]:
        return self.projection.dishes

    @property
    def roles(self) -> List[SocialRole]:
        return self.projection.roles

    @property
    def draft(self) -> Optional[EventDraft]:
        return self.projection.draft

    @property
    def my_events(self) -> List[SocialEvent]:
        return self.projection.my_events

    @property
    def current_screen(self) -> ScreenKey:
        return self.projection.current_screen

    @property
    def state_pair(self) -> Tuple[Optional[str], Optional[str]]:
        """(イベントタイプ, ステータス)。アクティブなイベントがなければ (None, None)"""
        return self.projection.state_pair

    def routed_screen(self) -> ScreenKey:
        """現在の (タイプ, ステータス) から画面キーを導出"""
        event = self.projection.active_event
        if event is None:
            return ScreenKey.PICKER
        return screen_for(event.event_type, event.status, event.has_decider())

    async def flush_side_effects(self) -> None:
        """バックグラウンドの副作用（フィード・分析・通知）を待機"""
        await self.side_effects.flush()

    # ── 内部ヘルパー ─────────────────────────────────────────────

    def _require_active(self) -> SocialEvent:
        event = self.projection.active_event
        if event is None:
            raise NoActiveEventError("アクティブなイベントがありません")
        return event

    def _require_open_event(self) -> SocialEvent:
        """サブレコードを変更できるアクティブイベント（done / cancelled は不可）"""
        event = self._require_active()
        if is_terminal(event.status):
            raise InvalidPhaseError(f"終了済みのイベントは変更できません（現在: {event.status}）")
        return event

    def _require_type(self, event: SocialEvent, *event_types: SocialEventType) -> None:
        if SocialEventType(event.event_type) not in event_types:
            allowed = ", ".join(t.value for t in event_types)
            raise InvalidPhaseError(f"この操作は {allowed} イベントのみ可能です（現在: {event.event_type}）")

    def _require_before_lock(self, event: SocialEvent, action: str) -> None:
        if not can_lock(event.event_type, event.status):
            raise InvalidPhaseError(f"{action}はメニュー確定前のみ可能です（現在: {event.status}）")

    def _require_host(self, event: SocialEvent, action: str) -> None:
        if event.host_user_id != self.user_id:
            raise InvalidPhaseError(f"{action}は主催者のみ可能です")

    def _find_dish(self, dish_id: str) -> SocialDish:
        dish = self.projection.find_dish(dish_id)
        if dish is None:
            raise RecordNotFoundError(f"料理が見つかりません: {dish_id}")
        return dish

    def _notify(self, text: str) -> None:
        self.side_effects.dispatch("notifier", getattr(self.ports.notifier, "show_message", None), text)

    async def _write_event(self, event: SocialEvent, patch: Dict[str, Any]) -> None:
        await self.repository.events.update_fields(event.event_id, patch)

    async def _lock_event(self, event: SocialEvent, menu: Dict[str, Any], screen: ScreenKey) -> None:
        """menu_selected を保存して locked へ進める（書き込み成功後に反映）"""
        now = datetime.utcnow()
        await self._write_event(event, {
            "status": SocialEventStatus.LOCKED.value,
            "menu_selected": menu,
            "updated_at": now.isoformat(),
        })
        event.menu_selected = menu
        event.status = SocialEventStatus.LOCKED
        event.updated_at = now
        self.projection.current_screen = screen
        logger.info(f"メニュー確定: {event.event_id} ({event.event_type})")

    async def _add_membership(self, event_id: str, user_id: str, is_host: bool) -> None:
        # 所属の書き込み失敗はイベント操作自体を失敗させない（一覧取得に出ないだけ）
        try:
            await self.repository.memberships.create(
                EventMembership(event_id=event_id, user_id=user_id, is_host=is_host)
            )
        except RepositoryError as e:
            logger.error(f"所属レコードの作成に失敗しました: {event_id}/{user_id} - {e}")

    async def _remove_membership(self, event_id: str, user_id: str) -> None:
        # 主催者の所属は残す
        try:
            memberships = await self.repository.memberships.find_where(
                {"event_id": event_id, "user_id": user_id, "is_host": False}
            )
            for membership in memberships:
                await self.repository.memberships.delete(membership.membership_id)
        except RepositoryError as e:
            logger.error(f"所属レコードの削除に失敗しました: {event_id}/{user_id} - {e}")

    def _require_dish_owner(self, event: SocialEvent, dish: SocialDish, action: str) -> None:
        if self.user_id not in (dish.assigned_to_user_id, event.host_user_id):
            raise InvalidPhaseError(f"{action}は担当者または主催者のみ可能です: {dish.dish_name}")

    # ── 下書き・作成 ─────────────────────────────────────────────

    @_operation
    def create_draft(self, event_type: SocialEventType) -> EventDraft:
        """アクティブなイベントを破棄し、新しい下書きを開始"""
        draft = EventDraft(event_type=SocialEventType(event_type))
        self.projection.clear()
        self.projection.draft = draft
        self.projection.current_screen = ScreenKey.SETUP
        logger.debug(f"下書き作成: {draft.event_type}")
        return draft

    @_operation
    def update_draft(self, **fields: Any) -> EventDraft:
        """下書きのフィールドを更新（event_type は変更不可）"""
        draft = self.projection.draft
        if draft is None:
            raise NoActiveEventError("下書きがありません")

        if "event_type" in fields and SocialEventType(fields["event_type"]) != SocialEventType(draft.event_type):
            raise ValidationError("イベントタイプは下書き作成後に変更できません")
        unknown = sorted(set(fields) - set(EventDraft.__fields__))
        if unknown:
            raise ValidationError(f"不明なフィールド: {', '.join(unknown)}")

        updated = EventDraft(**{**draft.dict(), **fields})
        self.projection.draft = updated
        return updated

    @_operation
    async def commit_draft(self) -> str:
        """
        下書きを planning 状態のイベントとして保存し、アクティブにする

        成功時はフィードカードと分析シグナルを送信します（失敗しても結果に影響しません）。

        Returns:
            作成されたイベントID
        """
        draft = self.projection.draft
        if draft is None:
            raise ValidationError("下書きがありません")

        missing = draft.missing_required()
        if missing:
            raise ValidationError(f"必須項目が未入力です: {', '.join(missing)}")

        event = await self.repository.events.create(draft.to_event(self.user_id))
        await self._add_membership(event.event_id, self.user_id, is_host=True)

        self.projection.clear()
        self.projection.active_event = event
        self.projection.current_screen = ScreenKey.INVITE
        logger.info(f"イベント作成: {event.event_id} ({event.event_type}) {event.title}")

        self.side_effects.dispatch(
            "feed", getattr(self.ports.feed, "prepend_card", None), self._feed_card(event)
        )
        self.side_effects.dispatch(
            "analytics",
            getattr(self.ports.analytics, "log_signal", None),
            "social_event_created",
            {"eventType": event.event_type, "guestCount": event.expected_guests or 0},
        )
        return event.event_id

    def _feed_card(self, event: SocialEvent) -> Dict[str, Any]:
        return {
            "id": f"social-{event.event_id}",
            "type": "social_event",
            "data": {
                "eventId": event.event_id,
                "eventType": event.event_type,
                "title": event.title,
                "hostName": "You",
                "isHost": True,
                "dateTime": event.date_time.isoformat(),
                "status": event.status,
                "guestCount": 0,
            },
        }

    # ── 読み込み ─────────────────────────────────────────────────

    @_operation
    async def load_event(self, event_id: str) -> SocialEvent:
        """
        イベント本体と全サブレコードを並行取得してアクティブにする

        取得に失敗した場合はアクティブなイベントなしの状態になり、
        一部だけ読み込まれたプロジェクションは公開しません。
        """
        try:
            bundle = await self.repository.load_bundle(event_id)
        except RepositoryError:
            self.projection.clear()
            raise

        if bundle is None:
            self.projection.clear()
            raise RecordNotFoundError(f"イベントが見つかりません: {event_id}")

        self.projection.apply_bundle(bundle, landing_screen(bundle.event.status))
        logger.debug(
            f"イベント読み込み: {event_id} guests={len(bundle.guests)} votes={len(bundle.votes)} "
            f"dishes={len(bundle.dishes)} roles={len(bundle.roles)}"
        )
        return bundle.event

    @_operation
    async def fetch_my_events(self) -> List[SocialEvent]:
        """主催・招待されている進行中のイベント一覧（開催日時順）"""
        hosted = await self.repository.events.find_by_field("host_user_id", self.user_id)
        member_ids = await self.repository.event_ids_for_user(self.user_id)

        hosted_ids = {event.event_id for event in hosted}
        invited_ids = [event_id for event_id in member_ids if event_id not in hosted_ids]
        invited = await self.repository.events.find_where({"event_id": invited_ids}) if invited_ids else []

        seen = set()
        events = []
        for event in hosted + invited:
            if event.event_id in seen or is_terminal(event.status):
                continue
            seen.add(event.event_id)
            events.append(event)
        events.sort(key=lambda e: e.date_time)

        self.projection.my_events = events
        return events

    # ── ゲスト ───────────────────────────────────────────────────

    @_operation
    async def add_guest(
        self,
        name: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        user_id: Optional[str] = None,
        dietary_requirements: Optional[Sequence[str]] = None
    ) -> SocialGuest:
        """ゲストを追加（書き込み成功後に一覧へ反映）"""
        event = self._require_open_event()
        guest = SocialGuest(
            event_id=event.event_id,
            name=name,
            email=email,
            phone=phone,
            user_id=user_id,
            is_app_user=user_id is not None,
            dietary_requirements=list(dietary_requirements or []),
        )

        stored = await self.repository.guests.create(guest)
        if user_id:
            await self._add_membership(event.event_id, user_id, is_host=False)

        self.projection.guests.append(stored)
        return stored

    @_operation
    async def remove_guest(self, guest_id: str) -> str:
        """ゲストを削除（連携アカウントの所属も削除）"""
        event = self._require_open_event()
        guest = self.projection.find_guest(guest_id)
        if guest is None:
            raise RecordNotFoundError(f"ゲストが見つかりません: {guest_id}")

        self.projection.guests.remove(guest)
        await self.repository.guests.delete(guest_id)
        if guest.user_id:
            await self._remove_membership(event.event_id, guest.user_id)
        return guest_id

    @_operation
    async def update_rsvp(self, guest_id: str, rsvp_status: RsvpStatus) -> SocialGuest:
        """ゲストの出欠を更新"""
        self._require_open_event()
        rsvp_status = RsvpStatus(rsvp_status)
        guest = self.projection.find_guest(guest_id)
        if guest is None:
            raise RecordNotFoundError(f"ゲストが見つかりません: {guest_id}")

        guest.rsvp_status = rsvp_status
        await self.repository.guests.update_fields(guest_id, {"rsvp_status": rsvp_status.value})
        return guest

    # ── 投票（Sunday Roast / Party Mode） ────────────────────────

    @_operation
    async def cast_vote(self, category: str, value: str, voter_name: Optional[str] = None) -> SocialVote:
        """
        投票を追加

        重複票（同じ投票者・カテゴリ・値）も拒否せず、すべて集計対象になります。
        投票はメニュー確定（locked）前のステータスでのみ受け付けます。
        """
        event = self._require_active()
        self._require_type(event, *_VOTING_TYPES)
        self._require_before_lock(event, "投票")

        vote = SocialVote(
            event_id=event.event_id,
            voter_user_id=self.user_id,
            voter_name=voter_name or self.display_name,
            vote_category=category,
            vote_value=value,
        )
        stored = await self.repository.votes.create(vote)
        self.projection.votes.append(stored)
        return stored

    @_operation
    async def lock_voting(self) -> Dict[str, Any]:
        """投票を締め切り、集計結果を menu_selected として保存して locked へ進める"""
        event = self._require_active()
        self._require_type(event, *_VOTING_TYPES)
        self._require_before_lock(event, "投票の締め切り")

        menu = build_vote_menu(tally_votes(self.projection.votes), datetime.utcnow())
        await self._lock_event(event, menu, ScreenKey.DASHBOARD)
        self._notify(VOTES_LOCKED_MESSAGE)
        return menu

    @_operation
    async def decide(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """
        決定者によるメニュー確定

        集計は行わず、渡されたペイロードをそのまま menu_selected に保存します。
        決定者が設定されている場合は、決定者または主催者のみ実行できます。
        """
        event = self._require_active()
        self._require_before_lock(event, "メニューの決定")
        if event.has_decider() and self.user_id not in (event.decider_user_id, event.host_user_id):
            raise InvalidPhaseError("メニューの決定権がありません")

        menu = dict(payload)
        await self._lock_event(event, menu, ScreenKey.DASHBOARD)
        return menu

    def decision_options(
        self,
        category: str,
        defaults: Optional[Mapping[str, Sequence[str]]] = None
    ) -> List[str]:
        """決定者に提示する選択肢（投票済みの値、なければ既定の選択肢）"""
        return candidate_options(self.projection.votes, category, defaults)

    @_operation
    async def decide_winners(
        self,
        picks: Mapping[str, str],
        defaults: Optional[Mapping[str, Sequence[str]]] = None
    ) -> Dict[str, Any]:
        """決定者の指定値を集計結果と同じ形式で保存して locked へ進める"""
        event = self._require_active()
        self._require_type(event, *_VOTING_TYPES)
        self._require_before_lock(event, "メニューの決定")
        if event.has_decider() and self.user_id not in (event.decider_user_id, event.host_user_id):
            raise InvalidPhaseError("メニューの決定権がありません")

        results = override_winners(picks, self.projection.votes, defaults)
        menu = build_vote_menu(results, datetime.utcnow())
        await self._lock_event(event, menu, ScreenKey.DASHBOARD)
        return menu

    # ── Party Mode ───────────────────────────────────────────────

    @_operation
    async def set_menu_option(self, option: Mapping[str, Any]) -> Dict[str, Any]:
        """メニュー案を確定して locked へ進め、担当割り当て画面へ"""
        event = self._require_active()
        self._require_type(event, SocialEventType.PARTY)
        self._require_before_lock(event, "メニューの選択")

        menu = dict(option)
        await self._lock_event(event, menu, ScreenKey.ROLE_ASSIGN)
        return menu

    def _require_roles_editable(self, event: SocialEvent) -> None:
        self._require_type(event, SocialEventType.PARTY)
        position = status_order(event.event_type, event.status)
        if position < 0 or position >= status_order(event.event_type, SocialEventStatus.SHOPPING):
            raise InvalidPhaseError(f"担当の変更は買い出し前のみ可能です（現在: {event.status}）")

    @_operation
    async def assign_role(
        self,
        person_name: str,
        role_name: str,
        tasks: Optional[Sequence[str]] = None,
        user_id: Optional[str] = None
    ) -> SocialRole:
        event = self._require_active()
        self._require_roles_editable(event)

        role = SocialRole(
            event_id=event.event_id,
            user_id=user_id,
            person_name=person_name,
            role_name=role_name,
            tasks=list(tasks or []),
        )
        stored = await self.repository.roles.create(role)
        self.projection.roles.append(stored)
        return stored

    @_operation
    async def remove_role(self, role_id: str) -> str:
        event = self._require_active()
        self._require_roles_editable(event)
        role = self.projection.find_role(role_id)
        if role is None:
            raise RecordNotFoundError(f"担当が見つかりません: {role_id}")

        self.projection.roles.remove(role)
        await self.repository.roles.delete(role_id)
        return role_id

    # ── Potluck 料理ボード ───────────────────────────────────────

    @_operation
    async def add_dish(
        self,
        category: str,
        name: str,
        recipe_id: Optional[str] = None,
        recipe_data: Optional[Dict[str, Any]] = None
    ) -> SocialDish:
        """主催者が料理ボードに料理を追加（status は open）"""
        event = self._require_active()
        self._require_type(event, SocialEventType.POTLUCK)
        self._require_host(event, "料理の追加")
        self._require_before_lock(event, "料理の追加")

        dish = SocialDish(
            event_id=event.event_id,
            dish_category=category,
            dish_name=name,
            recipe_id=recipe_id,
            recipe_data=recipe_data,
            status=DishStatus.OPEN,
        )
        stored = await self.repository.dishes.create(dish)
        self.projection.dishes.append(stored)
        return stored

    @_operation
    async def claim_dish(self, dish_id: str, claimant_name: Optional[str] = None) -> SocialDish:
        """
        料理の担当を引き受ける

        手元のプロジェクションで open でない料理は CONFLICT。
        last_write_wins モードでは同時に担当した場合は後から書き込んだ方が残ります。
        conditional モードではストア上で open の場合のみ更新し、負けた側は CONFLICT になります。
        """
        event = self._require_active()
        self._require_type(event, SocialEventType.POTLUCK)
        self._require_before_lock(event, "料理の担当")
        dish = self._find_dish(dish_id)
        if not dish.is_open():
            raise ClaimConflictError(f"この料理は既に担当が決まっています: {dish.dish_name} ({dish.assigned_to_name})")

        name = claimant_name or self.display_name
        patch = {
            "assigned_to_user_id": self.user_id,
            "assigned_to_name": name,
            "status": DishStatus.CLAIMED.value,
        }

        if self.config.claim_mode == ClaimMode.CONDITIONAL:
            # ストアで確定してから反映
            try:
                await self.repository.dishes.update_fields(
                    dish_id, patch, expected={"status": DishStatus.OPEN.value}
                )
            except ConditionFailedError as e:
                raise ClaimConflictError(f"他のゲストが先に担当しました: {dish.dish_name}") from e
            self._apply_dish_patch(dish, patch)
        else:
            self._apply_dish_patch(dish, patch)
            await self.repository.dishes.update_fields(dish_id, patch)

        logger.info(f"料理の担当: {dish.dish_name} -> {name}")
        return dish

    @_operation
    async def unclaim_dish(self, dish_id: str) -> SocialDish:
        """料理の担当を外し open に戻す"""
        event = self._require_open_event()
        dish = self._find_dish(dish_id)
        self._require_dish_owner(event, dish, "担当の解除")

        patch = {"assigned_to_user_id": None, "assigned_to_name": None, "status": DishStatus.OPEN.value}
        self._apply_dish_patch(dish, patch)
        await self.repository.dishes.update_fields(dish_id, patch)
        return dish

    @_operation
    async def update_dish_status(self, dish_id: str, status: DishStatus) -> SocialDish:
        """担当者による準備状況の更新（open を指定した場合は担当解除と同じ）"""
        event = self._require_open_event()
        status = DishStatus(status)
        dish = self._find_dish(dish_id)
        self._require_dish_owner(event, dish, "準備状況の更新")
        if status != DishStatus.OPEN and dish.is_open():
            raise InvalidPhaseError(f"担当者のいない料理の状況は更新できません: {dish.dish_name}")

        if status == DishStatus.OPEN:
            patch = {"assigned_to_user_id": None, "assigned_to_name": None, "status": status.value}
        else:
            patch = {"status": status.value}
        self._apply_dish_patch(dish, patch)
        await self.repository.dishes.update_fields(dish_id, patch)
        return dish

    @staticmethod
    def _apply_dish_patch(dish: SocialDish, patch: Dict[str, Any]) -> None:
        for field, value in patch.items():
            setattr(dish, field, value)

    @_operation
    async def lock_dish_board(self) -> Dict[str, Any]:
        """料理ボードを締め切り、担当状況を menu_selected として保存して locked へ進める"""
        event = self._require_active()
        self._require_type(event, SocialEventType.POTLUCK)
        self._require_before_lock(event, "料理ボードの締め切り")

        summary = build_dish_board_summary(self.projection.dishes, datetime.utcnow())
        await self._lock_event(event, summary, ScreenKey.DASHBOARD)
        return summary

    # ── ステータス ───────────────────────────────────────────────

    @_operation
    async def update_status(self, status: SocialEventStatus) -> SocialEvent:
        """
        ステータスを更新

        strict_transitions が有効な場合は遷移表で検証し、不正な遷移は ILLEGAL_TRANSITION。
        done への遷移成功時は通知を表示します。
        """
        event = self._require_active()
        status = SocialEventStatus(status)
        if self.config.strict_transitions and not can_transition(event.event_type, event.status, status):
            raise IllegalTransitionError(f"{event.event_type} イベントは {event.status} から {status.value} に遷移できません")

        previous = event.status
        event.status = status
        event.update_timestamp()
        self.projection.current_screen = self.routed_screen()

        await self._write_event(event, {"status": status.value, "updated_at": event.updated_at.isoformat()})
        logger.info(f"ステータス更新: {event.event_id} {previous} -> {status.value}")

        if status == SocialEventStatus.DONE:
            self._notify(DINNER_SERVED_MESSAGE)
        return event

    @_operation
    async def advance_status(self) -> SocialEvent:
        """前進シーケンスの次のステータスへ進める"""
        event = self._require_active()
        sequence = progression_for(event.event_type)
        if event.status not in sequence or is_terminal(event.status):
            raise IllegalTransitionError(f"{event.status} から先へは進めません")
        following = sequence[sequence.index(event.status) + 1]
        return await self.update_status(following)

    @_operation
    async def cancel_event(self) -> str:
        """イベントを中止してプロジェクションを破棄"""
        event = self._require_active()
        if is_terminal(event.status):
            raise IllegalTransitionError(f"終了済みのイベントは中止できません（現在: {event.status}）")

        await self._write_event(event, {
            "status": SocialEventStatus.CANCELLED.value,
            "updated_at": datetime.utcnow().isoformat(),
        })
        self.projection.clear()
        logger.info(f"イベント中止: {event.event_id}")
        return event.event_id

    # ── 共有・リセット ───────────────────────────────────────────

    @_operation
    def share_event(self):
        event = self._require_active()
        return build_share_message(event, self.config.public_web_host, self.config.deep_link_scheme)

    @_operation
    def reset(self) -> None:
        self.projection.clear()

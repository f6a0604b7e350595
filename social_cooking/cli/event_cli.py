"""
Social Cooking CLI - イベントシナリオのシミュレーション・動作確認用CLI
"""

import asyncio
import json
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import ClaimMode, SocialCookingConfig, build_document_store
from ..engine.status import STATUS_PROGRESSIONS, allowed_transitions, next_status_label
from ..engine.view_router import screen_for
from ..integrations.collaborators import CollaboratorPorts, InMemoryFeed, RecordingAnalytics
from ..models.event import SocialEventType
from ..models.repository import EncryptionManager, SocialCookingRepository
from ..orchestrator import EventOrchestrator, OperationResult

console = Console()
app = typer.Typer(help="Social Cooking CLI - イベントシナリオ確認ツール")

logger = logging.getLogger(__name__)


def _next_sunday(hour: int = 13) -> datetime:
    now = datetime.now()
    days = (6 - now.weekday()) % 7 or 7
    return (now + timedelta(days=days)).replace(hour=hour, minute=0, second=0, microsecond=0)


class ConsoleNotifier:
    """コンパニオン通知をコンソールに表示"""

    def show_message(self, text: str) -> None:
        console.print(Panel.fit(text, title="Companion"), style="magenta")


class SocialCookingCLI:
    """
    シナリオ実行CLI
    - 1つのストアを共有する複数アクター（ホスト・ゲスト）のオーケストレーター生成
    - 各シナリオの実行ログ収集
    """

    def __init__(self, config: Optional[SocialCookingConfig] = None, claim_mode: Optional[str] = None):
        self.config = config or SocialCookingConfig.from_env()
        if claim_mode:
            self.config = self.config.copy(update={"claim_mode": ClaimMode(claim_mode).value})

        logging.basicConfig(level=getattr(logging, self.config.log_level))

        self.store = build_document_store(self.config)
        self.repository = SocialCookingRepository(
            self.store, EncryptionManager(self.config.encryption_key)
        )
        self.feed = InMemoryFeed()
        self.analytics = RecordingAnalytics()
        self.steps: List[Dict[str, Any]] = []

    def actor(self, user_id: str, display_name: str) -> EventOrchestrator:
        """アクターごとのオーケストレーターを生成"""
        ports = CollaboratorPorts(feed=self.feed, notifier=ConsoleNotifier(), analytics=self.analytics)
        return EventOrchestrator(self.repository, user_id, display_name, ports=ports, config=self.config)

    def record(self, actor: str, action: str, result: OperationResult) -> OperationResult:
        """ステップ結果を記録"""
        self.steps.append({
            "actor": actor,
            "action": action,
            "ok": result.ok,
            "error": result.error.value if result.error else None,
            "message": result.message,
        })
        return result

    async def run_roast(self, title: str, guests: List[str], votes: List[str]) -> Dict[str, Any]:
        """Sunday Roast: 作成 → 招待 → 投票 → 締め切り"""
        host = self.actor("host", "Host")
        self.record("host", "create_draft", host.create_draft(SocialEventType.ROAST))
        self.record("host", "update_draft", host.update_draft(title=title, date_time=_next_sunday()))
        committed = self.record("host", "commit_draft", await host.commit_draft())
        if not committed.ok:
            return {"success": False, "steps": self.steps}

        for name in guests:
            self.record("host", f"add_guest {name}", await host.add_guest(name))
        for value in votes:
            self.record("host", f"cast_vote protein={value}", await host.cast_vote("protein", value))

        locked = self.record("host", "lock_voting", await host.lock_voting())
        await host.flush_side_effects()
        return {
            "success": locked.ok,
            "event_id": committed.value,
            "status": host.active_event.status if host.active_event else None,
            "menu_selected": locked.value,
            "steps": self.steps,
        }

    async def run_potluck(self, title: str, dishes: List[Dict[str, str]], guest_name: str) -> Dict[str, Any]:
        """Dutch Prep: 作成 → 料理追加 → ゲストが担当 → 準備 → 締め切り"""
        host = self.actor("host", "Host")
        self.record("host", "create_draft", host.create_draft(SocialEventType.POTLUCK))
        self.record("host", "update_draft", host.update_draft(title=title, date_time=_next_sunday(18)))
        committed = self.record("host", "commit_draft", await host.commit_draft())
        if not committed.ok:
            return {"success": False, "steps": self.steps}
        event_id = committed.value

        await host.add_guest(guest_name, user_id="guest-1")
        for dish in dishes:
            self.record("host", f"add_dish {dish['name']}", await host.add_dish(dish["category"], dish["name"]))

        guest = self.actor("guest-1", guest_name)
        self.record("guest-1", "load_event", await guest.load_event(event_id))
        if guest.dishes:
            first = guest.dishes[0]
            self.record("guest-1", f"claim_dish {first.dish_name}", await guest.claim_dish(first.dish_id))
            self.record("guest-1", "update_dish_status prepping", await guest.update_dish_status(first.dish_id, "prepping"))

        self.record("host", "load_event", await host.load_event(event_id))
        locked = self.record("host", "lock_dish_board", await host.lock_dish_board())
        await host.flush_side_effects()
        return {
            "success": locked.ok,
            "event_id": event_id,
            "menu_selected": locked.value,
            "steps": self.steps,
        }

    async def run_claim_race(self, dish_name: str) -> Dict[str, Any]:
        """2人のゲストが同じ料理を同時に担当"""
        host = self.actor("host", "Host")
        host.create_draft(SocialEventType.POTLUCK)
        host.update_draft(title="Claim Race", date_time=_next_sunday(18))
        committed = await host.commit_draft()
        dish = (await host.add_dish("Main", dish_name)).value

        alice = self.actor("guest-a", "Alice")
        bob = self.actor("guest-b", "Bob")
        await asyncio.gather(alice.load_event(committed.value), bob.load_event(committed.value))

        first, second = await asyncio.gather(alice.claim_dish(dish.dish_id), bob.claim_dish(dish.dish_id))
        self.record("guest-a", "claim_dish", first)
        self.record("guest-b", "claim_dish", second)

        stored = await self.repository.dishes.get_by_id(dish.dish_id)
        return {
            "success": stored is not None and stored.status == "claimed",
            "claim_mode": self.config.claim_mode,
            "assigned_to": stored.assigned_to_name if stored else None,
            "steps": self.steps,
        }


# CLI コマンド定義
@app.command()
def roast(
    title: str = typer.Option("Family Dinner", help="イベントタイトル"),
    guests: List[str] = typer.Option(["Alice", "Bob"], "--guest", help="ゲスト名"),
    votes: List[str] = typer.Option(["Chicken", "Chicken", "Beef"], "--vote", help="protein への投票"),
    output_file: Optional[str] = typer.Option(None, help="結果出力ファイル")
):
    """Sunday Roast シナリオ実行"""
    cli = SocialCookingCLI()
    results = asyncio.run(cli.run_roast(title, guests, votes))
    _display_results("Sunday Roast", results)
    _write_output(results, output_file)


@app.command()
def potluck(
    title: str = typer.Option("Street Potluck", help="イベントタイトル"),
    guest_name: str = typer.Option("Sam", help="料理を担当するゲスト"),
    output_file: Optional[str] = typer.Option(None, help="結果出力ファイル")
):
    """Dutch Prep シナリオ実行"""
    dishes = [
        {"category": "Main", "name": "Lasagna"},
        {"category": "Side", "name": "Garlic Bread"},
        {"category": "Dessert", "name": "Tiramisu"},
    ]
    cli = SocialCookingCLI()
    results = asyncio.run(cli.run_potluck(title, dishes, guest_name))
    _display_results("Dutch Prep", results)
    _write_output(results, output_file)


@app.command("claim-race")
def claim_race(
    dish_name: str = typer.Option("Lasagna", help="料理名"),
    claim_mode: str = typer.Option(ClaimMode.LAST_WRITE_WINS.value, help="last_write_wins / conditional")
):
    """同一料理への同時担当シミュレーション"""
    cli = SocialCookingCLI(claim_mode=claim_mode)
    results = asyncio.run(cli.run_claim_race(dish_name))
    _display_results("Claim Race", results)
    console.print(f"担当者: {results['assigned_to']} (mode={results['claim_mode']})", style="cyan")


@app.command()
def share(
    event_type: SocialEventType = typer.Argument(..., help="イベントタイプ (roast/party/potluck)"),
    title: str = typer.Option("Sunday Lunch", help="イベントタイトル")
):
    """共有メッセージ表示"""

    async def _share() -> OperationResult:
        cli = SocialCookingCLI()
        host = cli.actor("host", "Host")
        host.create_draft(event_type)
        host.update_draft(title=title, date_time=_next_sunday())
        await host.commit_draft()
        return host.share_event()

    result = asyncio.run(_share())
    if not result.ok:
        console.print(f"❌ {result.message}", style="red")
        raise typer.Exit(code=1)

    message = result.value
    console.print(Panel.fit(f"{message.message}\n\n{message.url}", title=message.title))


@app.command()
def batch(
    config_file: str = typer.Argument(..., help="シナリオ設定ファイル (YAML)"),
    output_dir: str = typer.Option("./scenario_results", help="結果出力ディレクトリ")
):
    """バッチシナリオ実行"""
    with open(config_file, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f) or {}

    Path(output_dir).mkdir(parents=True, exist_ok=True)
    all_results = []

    for scenario in config.get('scenarios', []):
        name = scenario.get('name', 'unnamed')
        kind = scenario.get('type', 'roast')
        console.print(f"\n🧪 シナリオ: {name} ({kind})")

        cli = SocialCookingCLI(claim_mode=scenario.get('claim_mode'))
        if kind == 'roast':
            results = asyncio.run(cli.run_roast(
                scenario.get('title', 'Batch Roast'),
                scenario.get('guests', []),
                scenario.get('votes', []),
            ))
        elif kind == 'potluck':
            results = asyncio.run(cli.run_potluck(
                scenario.get('title', 'Batch Potluck'),
                scenario.get('dishes', []),
                scenario.get('guest_name', 'Guest'),
            ))
        elif kind == 'claim_race':
            results = asyncio.run(cli.run_claim_race(scenario.get('dish_name', 'Lasagna')))
        else:
            console.print(f"⚠️ 未知のシナリオタイプ: {kind}", style="yellow")
            continue

        results['scenario_name'] = name
        all_results.append(results)
        _write_output(results, str(Path(output_dir) / f"{name}.json"))

    _display_batch_summary(all_results)


@app.command("status-flow")
def status_flow():
    """イベントタイプごとのステータス遷移表示"""
    for event_type, sequence in STATUS_PROGRESSIONS.items():
        table = Table(title=f"{event_type.value} progression")
        table.add_column("Status", style="cyan")
        table.add_column("Screen")
        table.add_column("Allowed next")
        table.add_column("Dashboard CTA")

        for status in sequence:
            allowed = sorted(s.value for s in allowed_transitions(event_type, status))
            table.add_row(
                status.value,
                screen_for(event_type, status).value,
                ", ".join(allowed) or "-",
                next_status_label(status) or "",
            )
        console.print(table)


def _write_output(results: Dict[str, Any], output_file: Optional[str]) -> None:
    if not output_file:
        return
    with open(output_file, 'w', encoding='utf-8') as f:
        json.dump(results, f, ensure_ascii=False, indent=2, default=str)
    console.print(f"📁 結果を {output_file} に保存しました", style="green")


def _display_results(title: str, results: Dict[str, Any]):
    """結果表示"""
    status_style = "green" if results["success"] else "red"
    status_icon = "✅" if results["success"] else "❌"
    console.print(f"\n{status_icon} {title} 完了", style=status_style)

    table = Table(title="Steps")
    table.add_column("Actor", style="cyan")
    table.add_column("Action")
    table.add_column("Result")

    for step in results["steps"]:
        outcome = "✅" if step["ok"] else f"❌ {step['error']}: {step['message']}"
        table.add_row(step["actor"], step["action"], outcome)
    console.print(table)

    if results.get("menu_selected"):
        console.print_json(json.dumps(results["menu_selected"], default=str))


def _display_batch_summary(all_results: List[Dict[str, Any]]):
    """バッチ実行要約表示"""
    total = len(all_results)
    succeeded = sum(1 for r in all_results if r["success"])

    console.print(f"\n📊 バッチ実行要約")
    console.print(f"総シナリオ数: {total}")
    console.print(f"成功: {succeeded}")
    console.print(f"失敗: {total - succeeded}")

    table = Table(title="Scenario Results")
    table.add_column("Scenario", style="cyan")
    table.add_column("Status")
    table.add_column("Failed steps")

    for result in all_results:
        failed = [step["action"] for step in result["steps"] if not step["ok"]]
        table.add_row(
            result.get('scenario_name', 'unnamed'),
            "✅" if result["success"] else "❌",
            ", ".join(failed) or "-",
        )
    console.print(table)


if __name__ == "__main__":
    app()

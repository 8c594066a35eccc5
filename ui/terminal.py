"""INTELIGENT MUNGA Terminal Client - rich console front end"""

import json
import sys
import webbrowser
from pathlib import Path
from typing import Callable, Dict, Optional

from rich import box
from rich.align import Align
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table
from rich.text import Text

from munga.app import MungaApp
from munga.features.market import MARKET_INDICATORS
from munga.features.vault import EXPORT_FORMATS
from munga.models import ChatMessage, FeedbackDraft
from munga.router import Screen, ViewMode
from munga.utils.exceptions import AuthError, IncompleteFormError, MungaError

console = Console()

BAND_STYLES = {"high": "bold green", "medium": "bold yellow", "low": "bold red"}
LEVEL_STYLES = {"ERROR": "red", "WARNING": "yellow", "INFO": "cyan"}

MENU_ITEMS = [
    ("1", ViewMode.RESEARCH, "Research Desk - Global intel synthesis"),
    ("2", ViewMode.MARKET, "Market Intel - Sector scans"),
    ("3", ViewMode.ROADMAP, "Strategic Roadmap - Phased execution plans"),
    ("4", ViewMode.ANALYTICS, "Predictions - Outcome analysis"),
    ("5", ViewMode.DOCUMENTS, "Document Vault - Author and export"),
    ("6", ViewMode.COMMUNICATION, "Communication - Feedback to command"),
]


class MungaTerminal:
    """Interactive terminal over the shared MungaApp core"""

    def __init__(self, app: Optional[MungaApp] = None):
        self.app = app
        self.running = True

    def initialize_app(self) -> bool:
        try:
            console.print("[bold blue]Initializing INTELIGENT MUNGA...[/bold blue]")
            if self.app is None:
                self.app = MungaApp().initialize()
            self.app.start_background()
            console.print("[bold green]✓ Core online[/bold green]\n")
            return True
        except MungaError as e:
            console.print(f"[bold red]✗ Initialization failed: {e}[/bold red]\n")
            return False

    # --- input helpers ---

    def ask(self, prompt: str, **kwargs) -> str:
        """Prompt and report the input as operator activity"""
        answer = Prompt.ask(prompt, **kwargs)
        self._after_input()
        return answer

    def confirm(self, prompt: str, default: bool = False) -> bool:
        answer = Confirm.ask(prompt, default=default)
        self._after_input()
        return answer

    def _after_input(self) -> None:
        was_live = self.app.session is not None
        if not self.app.record_activity("terminal") and was_live:
            console.print("[bold red]SESSION TERMINATED: INACTIVITY THRESHOLD EXCEEDED.[/bold red]")

    def pause(self) -> None:
        self.ask("\nPress Enter to continue", default="", show_default=False)

    # --- screens ---

    def header(self, subtitle: str) -> None:
        console.clear()
        session = self.app.session
        operator = session.username.upper() if session else "UNAUTHENTICATED"
        console.print(
            Panel(
                Align.center(Text(f"INTELIGENT MUNGA  v{self.app.settings.app.version}", style="bold white")),
                subtitle=f"{subtitle} | OPERATOR: {operator}",
                style="bold blue",
                box=box.DOUBLE,
            )
        )
        console.print()

    def show_landing(self) -> None:
        self.header("LANDING")
        console.print(
            Panel(
                "Tactical research, market intelligence and strategy forecasting "
                "in a single analyst terminal.",
                title="Strategic Intelligence Terminal",
                border_style="cyan",
            )
        )
        choice = self.ask("[S]tart  [Q]uit", choices=["s", "q"], default="s")
        if choice == "q":
            self.running = False
            return
        self.app.select_view(ViewMode.RESEARCH)

    def show_auth(self) -> None:
        self.header("ACCESS CONTROL")
        register = self.ask("[L]ogin or [R]egister", choices=["l", "r"], default="l") == "r"
        email = self.ask("Operator email")
        username = self.ask("Operator handle") if register else None
        try:
            with console.status("[bold blue]TRANSMITTING VERIFICATION HASH...[/bold blue]"):
                result = self.app.submit_credentials(email, username=username, register=register)
        except AuthError as e:
            console.print(f"[bold red]{e}[/bold red]")
            if not self.confirm("Retry?", default=True):
                self.app.select_view(ViewMode.LANDING)
            return

        console.print(f"[green]✓ Verification code dispatched via {result.channel}[/green] {result.detail}")
        while self.app.session is None:
            code = self.ask("Enter 6-digit code ([B]ack to credentials)")
            if code.lower() == "b":
                self.app.reset_auth()
                return
            try:
                session = self.app.verify_code(code)
            except AuthError as e:
                console.print(f"[bold red]{e}[/bold red]")
                continue
            console.print(f"[bold green]ACCESS GRANTED. WELCOME, {session.username.upper()}.[/bold green]")
            self.pause()

    def show_menu(self) -> None:
        table = Table(box=box.SIMPLE, show_header=False)
        table.add_column("Key", style="cyan", width=4)
        table.add_column("View", style="white")
        current = self.app.router.mode
        for key, mode, label in MENU_ITEMS:
            marker = " [bold green]◀[/bold green]" if mode == current else ""
            table.add_row(f"[{key}]", label + marker)
        table.add_row("[G]", "Activity Logs")
        table.add_row("[L]", "Logout (purges session data)")
        table.add_row("[Q]", "Quit")
        console.print(Panel(table, title="Navigation", border_style="cyan"))

        keys = [key for key, _, _ in MENU_ITEMS]
        choice = self.ask("Select view", choices=keys + ["g", "l", "q", "r"], default="r")
        if choice == "q":
            self.running = False
        elif choice == "g":
            self.view_logs()
        elif choice == "l":
            if self.confirm("Terminate session and purge local intel?", default=False):
                self.app.logout()
                console.print("[yellow]Session purged.[/yellow]")
        elif choice in keys:
            mode = next(m for k, m, _ in MENU_ITEMS if k == choice)
            self.app.select_view(mode)

    def show_research(self) -> None:
        self.header("RESEARCH DESK")
        for message in self.app.research.history()[-10:]:
            self._print_message(message)
        query = self.ask("\nObjective ([M]enu)", default="m")
        if query.lower() == "m":
            self.show_menu()
            return
        with console.status("[bold blue]SYNTHESIZING GLOBAL INTEL...[/bold blue]"):
            reply = self.app.research.send(query)
        if reply is None and query.strip():
            console.print("[yellow]Reply discarded.[/yellow]")

    def _print_message(self, message: ChatMessage) -> None:
        if message.role == "user":
            console.print(f"[bold cyan]> {message.content}[/bold cyan]")
            return
        console.print(Panel(Markdown(message.content), border_style="green", box=box.ROUNDED))
        for source in message.sources:
            console.print(f"  [dim]↳ {source.title}: {source.uri}[/dim]")
        if message.image_url:
            console.print("  [dim]↳ conceptual image attached[/dim]")

    def show_market(self) -> None:
        self.header("MARKET INTEL")
        sector = self.ask("Sector to scan ([M]enu)", default="m")
        if sector.lower() == "m":
            self.show_menu()
            return
        with console.status(f"[bold blue]SCANNING {sector.upper()}...[/bold blue]"):
            intel = self.app.market.scan(sector)
        if intel is None:
            console.print("[yellow]No market intel available.[/yellow]")
        else:
            console.print(Panel(Markdown(intel.text), title=sector.upper(), border_style="green"))
            for source in intel.sources:
                console.print(f"  [dim]↳ {source.title}: {source.uri}[/dim]")
            console.print("Indicators: " + " | ".join(MARKET_INDICATORS))
        self.pause()

    def show_roadmap(self) -> None:
        self.header("STRATEGIC ROADMAP")
        objective = self.ask("Objective to plan ([M]enu)", default="m")
        if objective.lower() == "m":
            self.show_menu()
            return
        with console.status("[bold blue]GENERATING ROADMAP...[/bold blue]"):
            roadmap = self.app.roadmap.plan(objective)
        if roadmap is None:
            console.print("[yellow]No roadmap available.[/yellow]")
            self.pause()
            return
        table = Table(title=roadmap.title or objective, box=box.ROUNDED)
        table.add_column("#", style="cyan", width=4)
        table.add_column("Phase", style="white")
        table.add_column("Duration", style="yellow")
        table.add_column("Tasks", style="green")
        for idx, phase in enumerate(roadmap.phases, 1):
            table.add_row(str(idx), phase.name, phase.duration, "\n".join(f"• {t}" for t in phase.tasks))
        console.print(table)
        if roadmap.risk_assessment:
            console.print(Panel(roadmap.risk_assessment, title="Risk Assessment", border_style="red"))
        self.pause()

    def show_predictions(self) -> None:
        self.header("PREDICTIONS")
        stats = self.ask("Situation / statistics to analyze ([M]enu)", default="m")
        if stats.lower() == "m":
            self.show_menu()
            return
        with console.status("[bold blue]RUNNING OUTCOME MODELS...[/bold blue]"):
            analysis = self.app.predictions.analyze(stats)
        if analysis is None:
            console.print("[yellow]No prediction available.[/yellow]")
            self.pause()
            return
        report = analysis.report
        style = BAND_STYLES.get(analysis.band, "white")
        console.print(f"Viability: [{style}]{report.viability_rating:.0f}%[/{style}]")
        for point in analysis.chart:
            bar = "█" * int(point.value / 5)
            console.print(f"  {point.name:<10} {bar} {point.value:.0f}")
        console.print(Panel(report.recap, title="Recap", border_style="cyan"))
        for title, items in (("Predictions", report.predictions), ("Recommendations", report.recommendations)):
            console.print(f"[bold]{title}[/bold]")
            for item in items:
                console.print(f"  • {item}")
        self.pause()

    def show_documents(self) -> None:
        self.header("DOCUMENT VAULT")
        document = self.app.vault.load()
        console.print(Panel(document.content or "[dim]empty[/dim]", title=document.title or "untitled"))
        choice = self.ask("[E]dit  [X]port  [M]enu", choices=["e", "x", "m"], default="m")
        if choice == "m":
            self.show_menu()
        elif choice == "e":
            title = self.ask("Title", default=document.title)
            console.print("Content (finish with a single '.' line):")
            lines = []
            while True:
                line = self.ask("", default="", show_default=False)
                if line == ".":
                    break
                lines.append(line)
            self.app.vault.save(title, "\n".join(lines))
            console.print("[green]✓ Vault updated[/green]")
        else:
            fmt = self.ask("Format", choices=list(EXPORT_FORMATS), default="pdf")
            try:
                path = self.app.vault.export(fmt)
            except MungaError as e:
                console.print(f"[bold red]Export failed: {e}[/bold red]")
            else:
                console.print(f"[green]✓ Exported to {path}[/green]")
            self.pause()

    def show_communication(self) -> None:
        self.header("COMMUNICATION")
        draft = self.app.communication.load_draft() or FeedbackDraft()
        category = self.ask("Category", choices=["feedback", "intel", "issue"], default=draft.category)
        subject = self.ask("Subject", default=draft.subject)
        body = self.ask("Message", default=draft.body)
        rating = IntPrompt.ask("Rating (0-5)", choices=[str(i) for i in range(6)], default=draft.rating)
        self._after_input()
        draft = FeedbackDraft(subject=subject, body=body, category=category, rating=rating)
        self.app.communication.autosave(draft)
        if not self.confirm("Transmit now?", default=True):
            self.app.select_view(ViewMode.RESEARCH)
            return
        try:
            mail = self.app.communication.compose(draft)
        except IncompleteFormError as e:
            console.print(f"[bold red]{e}[/bold red]")
            self.pause()
            return
        console.print(Panel(mail.body, title=f"To: {mail.recipient} | {mail.subject}", border_style="green"))
        webbrowser.open(mail.mailto)
        console.print("[green]✓ Handed off to your mail client[/green]")
        self.pause()

    def view_logs(self, lines: int = 30) -> None:
        """Recent entries from the JSON-line log file"""
        self.header("ACTIVITY LOG")
        log_path = Path(self.app.settings.logging.file_path)
        if not log_path.exists():
            console.print(f"[yellow]No log file found at {log_path}[/yellow]")
            self.pause()
            return

        try:
            with open(log_path, "r", encoding="utf-8") as f:
                recent_lines = f.readlines()[-lines:]
        except OSError as e:
            console.print(f"[red]Error reading logs: {e}[/red]")
            self.pause()
            return

        log_table = Table(box=box.SIMPLE, show_header=False)
        log_table.add_column("Log Entry", style="white")
        for line in recent_lines:
            try:
                log_data = json.loads(line)
            except ValueError:
                log_table.add_row(line.strip()[:100])
                continue
            level = str(log_data.get("level", "info")).upper()
            style = LEVEL_STYLES.get(level, "white")
            timestamp = str(log_data.get("timestamp", ""))[:19]
            action = log_data.get("action", "")
            log_table.add_row(f"[{style}]{timestamp} [{level}] {log_data.get('event', 'Unknown')} {action}[/{style}]")
        console.print(log_table)
        self.pause()

    def render(self) -> None:
        """Draw the screen the router resolves to and handle one interaction"""
        screen = self.app.screen()
        handlers: Dict[Screen, Callable[[], None]] = {
            Screen.LANDING: self.show_landing,
            Screen.AUTH: self.show_auth,
            Screen.RESEARCH: self.show_research,
            Screen.MARKET: self.show_market,
            Screen.ROADMAP: self.show_roadmap,
            Screen.ANALYTICS: self.show_predictions,
            Screen.DOCUMENTS: self.show_documents,
            Screen.COMMUNICATION: self.show_communication,
        }
        handlers[screen]()

    def shutdown(self) -> None:
        if self.app is not None:
            self.app.stop_background()


def main():
    """Main entry point for the terminal client"""
    terminal = MungaTerminal()
    if not terminal.initialize_app():
        sys.exit(1)
    try:
        while terminal.running:
            terminal.render()
    except KeyboardInterrupt:
        console.print("\n[yellow]Exiting terminal...[/yellow]")
    finally:
        terminal.shutdown()


if __name__ == "__main__":
    main()

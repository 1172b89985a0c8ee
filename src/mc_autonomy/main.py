"""CLI startup entrypoint for the autonomous agent."""

from __future__ import annotations

import asyncio

import typer
from rich import print
from rich.table import Table

from mc_autonomy.adapters import MineflayerConnector, MineflayerUnavailableError
from mc_autonomy.config import settings
from mc_autonomy.context import AgentContext
from mc_autonomy.learning import load_skill_file, skill_file_path
from mc_autonomy.models import SkillRecord
from mc_autonomy.session import AgentSession, default_agent_factory
from mc_autonomy.telemetry import configure_logging

app = typer.Typer(help="Autonomous Minecraft agent")


def _build_session(
    *,
    username: str,
    host: str,
    port: int,
    skills_dir: str,
    max_sessions: int | None,
) -> AgentSession:
    context = AgentContext.create(username, skills_dir=skills_dir, history_size=settings.history_size)
    connector = MineflayerConnector(
        host=host,
        port=port,
        username=username,
        version=settings.minecraft_version,
        auth=settings.auth,
    )
    return AgentSession(
        context,
        connector,
        agent_factory=default_agent_factory(
            tick_interval_seconds=settings.tick_interval_seconds,
            save_every=settings.save_every,
            block_scan_radius=settings.block_scan_radius,
            entity_scan_radius=settings.entity_scan_radius,
        ),
        startup_delay_seconds=settings.startup_delay_seconds,
        reconnect_delay_seconds=settings.reconnect_delay_seconds,
        max_sessions=max_sessions,
    )


def _skills_table(skills: dict[str, SkillRecord]) -> Table:
    table = Table(title="Learned skills")
    table.add_column("Context")
    table.add_column("Attempts", justify="right")
    table.add_column("Successes", justify="right")
    table.add_column("Rate", justify="right")
    for key in sorted(skills):
        skill = skills[key]
        table.add_row(key, str(skill.attempts), str(skill.successes), f"{skill.success_rate * 100:.1f}%")
    return table


@app.command()
def run(
    username: str = typer.Option(None, help="Agent username / skill file identity"),
    host: str = typer.Option(None, help="Server host"),
    port: int = typer.Option(None, help="Server port"),
    skills_dir: str = typer.Option(None, help="Directory for <username>_skills.json"),
    max_sessions: int = typer.Option(None, help="Stop after this many connections"),
) -> None:
    """Connect to a server and play autonomously, reconnecting on disconnect."""
    configure_logging(settings.log_level)
    session = _build_session(
        username=username or settings.username,
        host=host or settings.host,
        port=port or settings.port,
        skills_dir=skills_dir or settings.skills_dir,
        max_sessions=max_sessions,
    )

    try:
        asyncio.run(session.run_forever())
    except MineflayerUnavailableError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        print({"agent": "stopped"})


@app.command("config")
def show_config() -> None:
    """Show effective runtime configuration."""
    print(settings.model_dump())


@app.command()
def skills(
    username: str = typer.Option(None, help="Agent username"),
    skills_dir: str = typer.Option(None, help="Directory holding skill files"),
) -> None:
    """Show the persisted skill statistics for an agent."""
    path = skill_file_path(skills_dir or settings.skills_dir, username or settings.username)
    try:
        learned = load_skill_file(path)
    except FileNotFoundError:
        print({"skills_file": str(path), "status": "missing"})
        learned = {}
    except (OSError, TypeError, ValueError) as exc:
        print({"skills_file": str(path), "status": "unreadable", "error": str(exc)})
        learned = {}
    print(_skills_table(learned))


if __name__ == "__main__":
    app()

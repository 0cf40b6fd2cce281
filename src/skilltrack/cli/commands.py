"""CLI commands for SkillTrack.

Operator commands:
- init-db: Create the database schema
- create-user: Provision an instructor or admin account
- serve: Run the Web API
- import-questions: Attach CSV questions to a skill form
- preview-form: Render a skill form in the terminal
- template: Print the sample question CSV
- export-report: Write an instructor's skill-log report as CSV
- expire-assignments: Mark overdue assignments expired
"""

from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from skilltrack.core.assignments import expire_overdue_assignments
from skilltrack.core.auth import CurrentUser, create_profile
from skilltrack.core.errors import SkillTrackError
from skilltrack.core.form_schema import render_form
from skilltrack.core.question_importer import SAMPLE_TEMPLATE_CSV, import_questions_file
from skilltrack.core.reports import export_logs_csv, skill_log_report
from skilltrack.core.skills import get_skill_form, store_questions
from skilltrack.db import profiles_repository
from skilltrack.db.database import current_db_path, init_db as do_init_db

app = typer.Typer(
    name="skilltrack",
    help="Skill assignment, verification and progress tracking.",
    no_args_is_help=True,
)

console = Console()


def _fail(error: Exception) -> NoReturn:
    console.print(f"[red]✗ {error}[/red]")
    raise typer.Exit(code=1)


@app.command(name="init-db")
def init_db(
    db: str | None = typer.Option(None, "--db", help="Database file (defaults to config)"),
) -> None:
    """Create the database schema."""
    db_path = Path(db).expanduser().resolve() if db else current_db_path()
    do_init_db(db_path)
    console.print(f"[green]✓ Database ready[/green] [dim]{db_path}[/dim]")


@app.command(name="create-user")
def create_user(
    email: str = typer.Argument(..., help="Login email"),
    name: str = typer.Argument(..., help="Full name"),
    role: str = typer.Option("instructor", "--role", "-r", help="Role: instructor, admin"),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, confirmation_prompt=True
    ),
) -> None:
    """Provision an instructor or admin account."""
    if role not in ("instructor", "admin"):
        console.print("[red]✗ Role must be 'instructor' or 'admin'[/red]")
        raise typer.Exit(code=1)

    do_init_db(current_db_path())
    try:
        profile = create_profile(email=email, password=password, full_name=name, role=role)
    except SkillTrackError as e:
        _fail(e)

    console.print(f"[green]✓ Created {profile.role} {profile.email}[/green]")
    console.print(f"  [dim]id:[/dim]   {profile.id}")
    if profile.instructor_code:
        console.print(f"  [dim]code:[/dim] {profile.instructor_code}")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the Web API with uvicorn."""
    import uvicorn

    uvicorn.run("skilltrack.web.api:app", host=host, port=port, reload=reload)


@app.command(name="import-questions")
def import_questions(
    file: str = typer.Argument(..., help="Path to question CSV"),
    skill: str = typer.Option(..., "--skill", "-s", help="Target skill id"),
    append: bool = typer.Option(False, "--append", "-a", help="Keep existing questions"),
) -> None:
    """Attach questions from a CSV file to a skill's form."""
    file_path = Path(file).expanduser().resolve()
    if not file_path.exists():
        console.print(f"[red]✗ File not found: {file_path}[/red]")
        raise typer.Exit(code=1)

    try:
        questions = import_questions_file(file_path)
        schema = store_questions(skill, questions, append=append)
    except SkillTrackError as e:
        _fail(e)

    console.print(f"[green]✓ Imported {len(questions)} question(s)[/green]")
    console.print(f"  [dim]skill:[/dim] {skill}")
    console.print(f"  [dim]total:[/dim] {len(schema.questions)}")


@app.command(name="preview-form")
def preview_form(
    skill_id: str = typer.Argument(..., help="Skill id"),
) -> None:
    """Render a skill's verification form."""
    try:
        skill, schema = get_skill_form(skill_id)
    except SkillTrackError as e:
        _fail(e)

    console.print(
        Panel(
            f"[bold]{skill.name}[/bold]\n"
            f"Category: {skill.category_name} | Verification: {skill.verification_type}",
            expand=False,
        )
    )

    fields = render_form(schema)
    if not fields:
        console.print("[yellow]⚠ This skill has no questions[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right", width=4)
    table.add_column("Question", width=50)
    table.add_column("Control", style="cyan")
    table.add_column("Options")

    for index, form_field in enumerate(fields, start=1):
        table.add_row(
            str(index),
            form_field.display_label,
            form_field.control,
            ", ".join(form_field.options),
        )
    console.print(table)


@app.command()
def template(
    output: str | None = typer.Option(None, "--output", "-o", help="Write to file"),
) -> None:
    """Print the sample question CSV template."""
    if output is None:
        typer.echo(SAMPLE_TEMPLATE_CSV, nl=False)
        return

    out_path = Path(output).expanduser()
    out_path.write_text(SAMPLE_TEMPLATE_CSV, encoding="utf-8")
    console.print(f"[green]✓ Template written to {out_path}[/green]")


@app.command(name="export-report")
def export_report(
    instructor_id: str = typer.Argument(..., help="Instructor profile id"),
    output: str | None = typer.Option(None, "--output", "-o", help="Write to file"),
) -> None:
    """Export the skill-log report of an instructor's students."""
    profile = profiles_repository.get_profile_by_id(instructor_id)
    if profile is None or not profile.is_instructor:
        console.print(f"[red]✗ Instructor '{instructor_id}' not found[/red]")
        raise typer.Exit(code=1)

    try:
        logs = skill_log_report(CurrentUser(profile=profile, token=""))
    except SkillTrackError as e:
        _fail(e)

    content = export_logs_csv(logs)
    if output is None:
        typer.echo(content, nl=False)
        return

    out_path = Path(output).expanduser()
    out_path.write_text(content, encoding="utf-8")
    console.print(f"[green]✓ Exported {len(logs)} log(s) to {out_path}[/green]")


@app.command(name="expire-assignments")
def expire_assignments() -> None:
    """Mark pending assignments past their due date as expired."""
    count = expire_overdue_assignments()
    console.print(f"[green]✓ Expired {count} assignment(s)[/green]")


if __name__ == "__main__":
    app()

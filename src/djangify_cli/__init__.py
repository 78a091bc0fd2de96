#!/usr/bin/env python3
"""
Djangify CLI - Setup tool for Django projects

Usage:
    djangify project create <project-name>
    djangify check

Creates <project-name>/ in the current directory, builds a virtualenv inside it,
runs `django-admin startproject <project-name> .` and overlays the bundled
templates (settings, urls, .env, requirements, Docker files, users app).
"""

import os
import subprocess
import sys
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, Optional, Protocol

import typer
import platformdirs
from rich.console import Console
from rich.panel import Panel
from rich.text import Text
from rich.live import Live
from rich.align import Align
from rich.table import Table
from rich.tree import Tree
from typer.core import TyperGroup

# Constants
APP_NAME = "djangify"
DEFAULT_PYTHON = "python3"
ISOLATION_TOOL = "virtualenv"
GENERATOR_TOOL = "django-admin"
VENV_DIRNAME = "venv"
STARTER_APP = "users"

# Settings template markers
APPS_MARKER = "##django apps##"
PROJECT_NAME_PLACEHOLDER = "project_name"

BUNDLED_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

# Copied into the project root before the generator runs
STATIC_ASSETS = ("Dockerfile", "docker-compose.yml", "requirements.txt")

# Extra modules layered into the starter app after its directory is copied
STARTER_APP_EXTRAS = ("serializers.py", "urls.py", "filters.py")

# Bytecode left next to the bundled templates by the installer
TEMPLATE_IGNORE_DIRS = ("__pycache__",)
TEMPLATE_IGNORE_SUFFIXES = (".pyc", ".pyo")

CHECK_TOOLS = {
    DEFAULT_PYTHON: "Python interpreter",
    ISOLATION_TOOL: "virtualenv",
    GENERATOR_TOOL: "Django admin",
    "docker": "Docker",
}

BANNER = """
╔╦╗ ╦╔═╗╔╗╔╔═╗╔═╗╦╔═╗╦ ╦
 ║║ ║╠═╣║║║║ ╦║ ║║╠╣ ╚╦╝
═╩╝╚╝╩ ╩╝╚╝╚═╝╚═╝╩╚   ╩
"""

TAGLINE = "Django project scaffolding in one command"

console = Console()
err_console = Console(stderr=True)


class StepTracker:
    """Track and render pipeline steps as a tree.
    Supports live auto-refresh via an attached refresh callback.
    """
    def __init__(self, title: str):
        self.title = title
        self.steps = []  # list of dicts: {key, label, status, detail}
        self._refresh_cb = None  # callable to trigger UI refresh

    def attach_refresh(self, cb):
        self._refresh_cb = cb

    def add(self, key: str, label: str):
        if key not in [s["key"] for s in self.steps]:
            self.steps.append({"key": key, "label": label, "status": "pending", "detail": ""})
            self._maybe_refresh()

    def start(self, key: str, detail: str = ""):
        self._update(key, status="running", detail=detail)

    def complete(self, key: str, detail: str = ""):
        self._update(key, status="done", detail=detail)

    def error(self, key: str, detail: str = ""):
        self._update(key, status="error", detail=detail)

    def skip(self, key: str, detail: str = ""):
        self._update(key, status="skipped", detail=detail)

    def status_of(self, key: str) -> Optional[str]:
        for s in self.steps:
            if s["key"] == key:
                return s["status"]
        return None

    def _update(self, key: str, status: str, detail: str):
        for s in self.steps:
            if s["key"] == key:
                s["status"] = status
                if detail:
                    s["detail"] = detail
                self._maybe_refresh()
                return
        # If not present, add it
        self.steps.append({"key": key, "label": key, "status": status, "detail": detail})
        self._maybe_refresh()

    def _maybe_refresh(self):
        if self._refresh_cb:
            try:
                self._refresh_cb()
            except Exception:
                pass

    def render(self):
        tree = Tree(f"[cyan]{self.title}[/cyan]", guide_style="grey50")
        for step in self.steps:
            label = step["label"]
            detail_text = step["detail"].strip() if step["detail"] else ""

            status = step["status"]
            if status == "done":
                symbol = "[green]●[/green]"
            elif status == "pending":
                symbol = "[green dim]○[/green dim]"
            elif status == "running":
                symbol = "[cyan]○[/cyan]"
            elif status == "error":
                symbol = "[red]●[/red]"
            elif status == "skipped":
                symbol = "[yellow]○[/yellow]"
            else:
                symbol = " "

            if status == "pending":
                if detail_text:
                    line = f"{symbol} [bright_black]{label} ({detail_text})[/bright_black]"
                else:
                    line = f"{symbol} [bright_black]{label}[/bright_black]"
            else:
                if detail_text:
                    line = f"{symbol} [white]{label}[/white] [bright_black]({detail_text})[/bright_black]"
                else:
                    line = f"{symbol} [white]{label}[/white]"

            tree.add(line)
        return tree


# ---------------------------------------------------------------------------
# Project context and step results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProjectContext:
    """Everything a pipeline step needs to know about the project being created.

    All paths derive from ``base_dir`` (the directory the tool was started in),
    so no step depends on the process working directory.
    """

    name: str
    base_dir: Path
    templates_dir: Path = BUNDLED_TEMPLATES_DIR
    python: str = DEFAULT_PYTHON
    app_name: str = STARTER_APP

    @property
    def root(self) -> Path:
        return self.base_dir / self.name

    @property
    def package_dir(self) -> Path:
        """The inner package django-admin lays down (holds settings.py and urls.py)."""
        return self.root / self.name

    @property
    def venv_dir(self) -> Path:
        return self.root / VENV_DIRNAME

    def template(self, *parts: str) -> Path:
        return self.templates_dir.joinpath(*parts)


@dataclass
class StepResult:
    key: str
    status: str  # done | skipped | error
    detail: str = ""

    @property
    def failed(self) -> bool:
        return self.status == "error"


class EnvOutcome(Enum):
    CREATED = "created"
    EXISTS = "exists"
    FAILED = "failed"


class Stage(Enum):
    PROBE_INTERPRETER = "probe-python"
    PROBE_ISOLATION_TOOL = "probe-virtualenv"
    INSTALL_ISOLATION_TOOL = "install-virtualenv"
    STAGE_DIRECTORY = "mkdir"
    COPY_STATIC_ASSETS = "assets"
    ENTER_DIRECTORY = "enter"
    BUILD_ENVIRONMENT = "venv"
    INVOKE_GENERATOR = "startproject"
    OVERLAY_SETTINGS = "settings"
    OVERLAY_URLS = "urls"
    OVERLAY_ENV = "env"
    OVERLAY_APP = "users-app"


STAGE_LABELS = {
    Stage.PROBE_INTERPRETER: "Check Python interpreter",
    Stage.PROBE_ISOLATION_TOOL: "Check virtualenv",
    Stage.INSTALL_ISOLATION_TOOL: "Install virtualenv",
    Stage.STAGE_DIRECTORY: "Create project folder",
    Stage.COPY_STATIC_ASSETS: "Copy Docker files and requirements",
    Stage.ENTER_DIRECTORY: "Enter project folder",
    Stage.BUILD_ENVIRONMENT: "Create virtual environment",
    Stage.INVOKE_GENERATOR: "Run django-admin startproject",
    Stage.OVERLAY_SETTINGS: "Add settings.py",
    Stage.OVERLAY_URLS: "Add urls.py",
    Stage.OVERLAY_ENV: "Add .env",
    Stage.OVERLAY_APP: "Add users app",
}


@dataclass
class PipelineReport:
    project: ProjectContext
    steps: list[StepResult] = field(default_factory=list)

    def record(self, result: StepResult) -> StepResult:
        self.steps.append(result)
        return result

    def get(self, key: str) -> Optional[StepResult]:
        for step in self.steps:
            if step.key == key:
                return step
        return None

    @property
    def failures(self) -> list[StepResult]:
        return [s for s in self.steps if s.failed]

    @property
    def ok(self) -> bool:
        return not self.failures


class PipelineError(Exception):
    """Raised when a step fails in a way the pipeline cannot continue from."""

    def __init__(self, stage: Stage, message: str) -> None:
        self.stage = stage
        self.message = message
        super().__init__(f"{STAGE_LABELS[stage]}: {message}")


# ---------------------------------------------------------------------------
# Running external tools
# ---------------------------------------------------------------------------


@dataclass
class CommandOutcome:
    cmd: list[str]
    returncode: Optional[int]
    stdout: str = ""
    stderr: str = ""
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def describe(self) -> str:
        if self.returncode is None:
            return self.error or "could not be started"
        return f"exit code {self.returncode}"


class CommandRunner(Protocol):
    def run(self, cmd: list[str], cwd: Optional[Path] = None) -> CommandOutcome:
        ...


class SubprocessRunner:
    """Run commands synchronously; a command that cannot start is a failed outcome, not an exception."""

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = timeout

    def run(self, cmd: list[str], cwd: Optional[Path] = None) -> CommandOutcome:
        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            return CommandOutcome(cmd, None, error=f"timed out after {self.timeout}s")
        except OSError as e:
            return CommandOutcome(cmd, None, error=str(e))
        return CommandOutcome(cmd, result.returncode, result.stdout, result.stderr)


def report_failure(message: str, outcome: Optional[CommandOutcome] = None) -> None:
    """Print a diagnostic for a failed step to stderr."""
    err_console.print(f"[red]Error:[/red] {message}")
    if outcome is not None:
        err_console.print(f"[red]Command:[/red] {' '.join(outcome.cmd)} ({outcome.describe()})")
        if outcome.stderr.strip():
            err_console.print(f"[red]Error output:[/red] {outcome.stderr.strip()}")


def probe(tool: str, runner: CommandRunner) -> bool:
    """Return True if `tool` resolves on the search path. Only the exit status is used."""
    return runner.run(["which", tool]).ok


def probe_module(python: str, module: str, runner: CommandRunner) -> bool:
    """Return True if `module` runs under `python` (`<python> -m <module> --version`)."""
    return runner.run([python, "-m", module, "--version"]).ok


def install_tool(package: str, runner: CommandRunner, python: str = DEFAULT_PYTHON) -> bool:
    """Install `package` with the interpreter's pip. Callers check for it first."""
    outcome = runner.run([python, "-m", "pip", "install", package])
    if not outcome.ok:
        report_failure(f"Something went wrong while installing {package}", outcome)
        return False
    return True


# ---------------------------------------------------------------------------
# Filesystem staging
# ---------------------------------------------------------------------------


def create_project_directory(ctx: ProjectContext) -> StepResult:
    key = Stage.STAGE_DIRECTORY.value
    if ctx.root.exists():
        return StepResult(key, "skipped", f"{ctx.name} already exists")
    try:
        ctx.root.mkdir()
    except FileExistsError:
        return StepResult(key, "skipped", f"{ctx.name} already exists")
    except OSError as e:
        raise PipelineError(Stage.STAGE_DIRECTORY, f"Failed to create project folder {ctx.root}: {e}") from e
    return StepResult(key, "done", str(ctx.root))


def copy_asset(source: Path, destination: Path) -> bool:
    """Copy one template file over `destination`, logging instead of raising."""
    try:
        shutil.copyfile(source, destination)
    except OSError as e:
        report_failure(f"Failed to copy {source.name} to {destination}: {e}")
        return False
    return True


def copy_static_assets(ctx: ProjectContext) -> list[StepResult]:
    results = []
    for name in STATIC_ASSETS:
        key = f"{Stage.COPY_STATIC_ASSETS.value}:{name}"
        if copy_asset(ctx.template(name), ctx.root / name):
            results.append(StepResult(key, "done", name))
        else:
            results.append(StepResult(key, "error", f"failed to copy {name}"))
    return results


def enter_project_directory(ctx: ProjectContext) -> Path:
    """Resolve the project root every later step runs in."""
    try:
        root = ctx.root.resolve(strict=True)
    except OSError as e:
        raise PipelineError(Stage.ENTER_DIRECTORY, f"Couldn't change directory to the project: {e}") from e
    if not root.is_dir() or not os.access(root, os.R_OK | os.W_OK | os.X_OK):
        raise PipelineError(Stage.ENTER_DIRECTORY, f"Couldn't change directory to the project: {root}")
    return root


# ---------------------------------------------------------------------------
# Virtual environment and django-admin
# ---------------------------------------------------------------------------


def build_virtualenv(ctx: ProjectContext, runner: CommandRunner) -> EnvOutcome:
    """Create ``venv`` in the project root. An existing one is left alone."""
    if ctx.venv_dir.exists():
        return EnvOutcome.EXISTS
    outcome = runner.run([ctx.python, "-m", ISOLATION_TOOL, VENV_DIRNAME], cwd=ctx.root)
    if not outcome.ok:
        report_failure("Something went wrong while creating the virtual environment", outcome)
        return EnvOutcome.FAILED
    return EnvOutcome.CREATED


def generate_project(ctx: ProjectContext, runner: CommandRunner) -> bool:
    outcome = runner.run([GENERATOR_TOOL, "startproject", ctx.name, "."], cwd=ctx.root)
    if not outcome.ok:
        report_failure(f"Something went wrong while creating the django project {ctx.name}", outcome)
    return outcome.ok


# ---------------------------------------------------------------------------
# Template overlays
# ---------------------------------------------------------------------------


def remove_file(path: Path) -> bool:
    """Remove `path`. A file that is already gone counts as removed."""
    try:
        path.unlink()
    except FileNotFoundError:
        return True
    except OSError as e:
        report_failure(f"Failed to remove {path}: {e}")
        return False
    return True


def patch_settings_lines(lines: Iterable[str], project_name: str, app_name: str = STARTER_APP) -> Iterator[str]:
    """Yield the settings template with the starter app registered and the project name filled in.

    A line holding the installed-apps marker gets ``'<app_name>',`` in place of
    the marker, and the marker moves to the following line at the same
    indentation so later apps can be inserted the same way. Any other line has
    every occurrence of the project name placeholder replaced. Marker lines are
    not searched for the placeholder.
    """
    for line in lines:
        line = line.rstrip("\r\n")
        if APPS_MARKER in line:
            indent = line[:len(line) - len(line.lstrip())]
            yield line.replace(APPS_MARKER, f"'{app_name}',\n{indent}{APPS_MARKER}")
            continue
        if PROJECT_NAME_PLACEHOLDER in line:
            yield line.replace(PROJECT_NAME_PLACEHOLDER, project_name)
            continue
        yield line


def write_settings_file(template: Path, destination: Path, project_name: str, app_name: str = STARTER_APP) -> bool:
    """Stream `template` through the settings patch into `destination`."""
    try:
        with template.open("r", encoding="utf-8") as src, destination.open("w", encoding="utf-8") as dst:
            for line in patch_settings_lines(src, project_name, app_name):
                dst.write(line + "\n")
            dst.flush()
    except (OSError, UnicodeDecodeError) as e:
        report_failure(f"Error occurred while editing settings file {destination}: {e}")
        return False
    return True


def add_settings_file(ctx: ProjectContext) -> StepResult:
    key = Stage.OVERLAY_SETTINGS.value
    destination = ctx.package_dir / "settings.py"
    if not remove_file(destination):
        return StepResult(key, "error", "could not remove default settings.py")
    if not write_settings_file(ctx.template("settings.py"), destination, ctx.name, ctx.app_name):
        return StepResult(key, "error", "could not write settings.py")
    return StepResult(key, "done", f"{ctx.name}/settings.py")


def add_project_urls_file(ctx: ProjectContext) -> StepResult:
    key = Stage.OVERLAY_URLS.value
    destination = ctx.package_dir / "urls.py"
    if not remove_file(destination):
        return StepResult(key, "error", "could not remove default urls.py")
    if not copy_asset(ctx.template("proj_urls.py"), destination):
        return StepResult(key, "error", "could not copy urls.py")
    return StepResult(key, "done", f"{ctx.name}/urls.py")


def add_dot_env_file(ctx: ProjectContext) -> StepResult:
    key = Stage.OVERLAY_ENV.value
    if not copy_asset(ctx.template("my_env"), ctx.root / ".env"):
        return StepResult(key, "error", "could not copy .env")
    return StepResult(key, "done", ".env")


def is_ignored_template(relative: Path) -> bool:
    return (
        any(part in TEMPLATE_IGNORE_DIRS for part in relative.parts)
        or relative.suffix in TEMPLATE_IGNORE_SUFFIXES
    )


def add_users_app(ctx: ProjectContext) -> StepResult:
    key = Stage.OVERLAY_APP.value
    source_dir = ctx.template(ctx.app_name)
    destination_dir = ctx.root / ctx.app_name

    if not source_dir.is_dir():
        report_failure(f"Ensure that the {ctx.app_name} app templates exist at {source_dir}")
        return StepResult(key, "error", f"{source_dir} not found")
    try:
        destination_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        report_failure(f"Couldn't create {destination_dir}: {e}")
        return StepResult(key, "error", str(e))

    failed: list[str] = []
    copied = 0
    for entry in sorted(source_dir.rglob("*")):
        if not entry.is_file() or is_ignored_template(entry.relative_to(source_dir)):
            continue
        target = destination_dir / entry.relative_to(source_dir)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            report_failure(f"Couldn't create {target.parent}: {e}")
            failed.append(str(entry.relative_to(source_dir)))
            continue
        if copy_asset(entry, target):
            copied += 1
        else:
            failed.append(str(entry.relative_to(source_dir)))

    for name in STARTER_APP_EXTRAS:
        if copy_asset(ctx.template(name), destination_dir / name):
            copied += 1
        else:
            failed.append(name)

    if failed:
        return StepResult(key, "error", f"failed to copy {', '.join(failed)}")
    return StepResult(key, "done", f"{copied} files")


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def create_project(ctx: ProjectContext, runner: CommandRunner, tracker: StepTracker | None = None) -> PipelineReport:
    """Provision the project described by `ctx`.

    Raises PipelineError on the first fatal step. Overlay failures are recorded
    in the returned report and never stop the run. Nothing is rolled back.
    """
    report = PipelineReport(ctx)

    def track(result: StepResult) -> StepResult:
        if tracker:
            tracker.add(result.key, STAGE_LABELS.get(_stage_for(result.key), result.key))
            {"done": tracker.complete, "skipped": tracker.skip, "error": tracker.error}[result.status](result.key, result.detail)
        return report.record(result)

    def fail(stage: Stage, message: str) -> PipelineError:
        if tracker:
            tracker.error(stage.value, message)
        return PipelineError(stage, message)

    def begin(stage: Stage, detail: str = "") -> None:
        if tracker:
            tracker.start(stage.value, detail)

    begin(Stage.PROBE_INTERPRETER, ctx.python)
    if not probe(ctx.python, runner):
        raise fail(Stage.PROBE_INTERPRETER, "Install Python in your device to continue")
    track(StepResult(Stage.PROBE_INTERPRETER.value, "done", "available"))

    begin(Stage.PROBE_ISOLATION_TOOL)
    # A non-default interpreter may not see the virtualenv found on PATH
    if ctx.python == DEFAULT_PYTHON:
        isolation_tool_found = probe(ISOLATION_TOOL, runner)
    else:
        isolation_tool_found = probe_module(ctx.python, ISOLATION_TOOL, runner)
    if isolation_tool_found:
        track(StepResult(Stage.PROBE_ISOLATION_TOOL.value, "done", "available"))
        track(StepResult(Stage.INSTALL_ISOLATION_TOOL.value, "skipped", "already installed"))
    else:
        track(StepResult(Stage.PROBE_ISOLATION_TOOL.value, "skipped", "not found"))
        begin(Stage.INSTALL_ISOLATION_TOOL, f"{ctx.python} -m pip install {ISOLATION_TOOL}")
        if not install_tool(ISOLATION_TOOL, runner, ctx.python):
            raise fail(Stage.INSTALL_ISOLATION_TOOL, f"Could not install {ISOLATION_TOOL}")
        track(StepResult(Stage.INSTALL_ISOLATION_TOOL.value, "done", "installed"))

    begin(Stage.STAGE_DIRECTORY)
    try:
        track(create_project_directory(ctx))
    except PipelineError as e:
        raise fail(e.stage, e.message) from e

    begin(Stage.COPY_STATIC_ASSETS)
    asset_results = copy_static_assets(ctx)
    for result in asset_results:
        report.record(result)
    copied = [r.detail for r in asset_results if not r.failed]
    missing = [r.key.split(":", 1)[1] for r in asset_results if r.failed]
    if tracker:
        if missing:
            tracker.error(Stage.COPY_STATIC_ASSETS.value, f"failed: {', '.join(missing)}")
        else:
            tracker.complete(Stage.COPY_STATIC_ASSETS.value, ", ".join(copied))

    begin(Stage.ENTER_DIRECTORY)
    try:
        root = enter_project_directory(ctx)
    except PipelineError as e:
        raise fail(e.stage, e.message) from e
    track(StepResult(Stage.ENTER_DIRECTORY.value, "done", str(root)))

    begin(Stage.BUILD_ENVIRONMENT)
    env = build_virtualenv(ctx, runner)
    if env is EnvOutcome.FAILED:
        raise fail(Stage.BUILD_ENVIRONMENT, "Something went wrong while creating the virtual environment")
    if env is EnvOutcome.EXISTS:
        track(StepResult(Stage.BUILD_ENVIRONMENT.value, "skipped", "virtual environment folder exists"))
    else:
        track(StepResult(Stage.BUILD_ENVIRONMENT.value, "done", VENV_DIRNAME))

    begin(Stage.INVOKE_GENERATOR)
    if not generate_project(ctx, runner):
        raise fail(Stage.INVOKE_GENERATOR, f"{GENERATOR_TOOL} startproject {ctx.name} failed")
    track(StepResult(Stage.INVOKE_GENERATOR.value, "done", ctx.name))

    for stage, overlay in (
        (Stage.OVERLAY_SETTINGS, add_settings_file),
        (Stage.OVERLAY_URLS, add_project_urls_file),
        (Stage.OVERLAY_ENV, add_dot_env_file),
        (Stage.OVERLAY_APP, add_users_app),
    ):
        begin(stage)
        track(overlay(ctx))

    return report


def _stage_for(key: str) -> Optional[Stage]:
    for stage in Stage:
        if stage.value == key:
            return stage
    return None


def resolve_templates_dir(override: Optional[str] = None) -> Path:
    """Pick the template directory: explicit override, then the user data dir, then the bundled copy."""
    if override:
        return Path(override).expanduser().resolve()
    user_templates = platformdirs.user_data_path(APP_NAME) / "templates"
    if user_templates.is_dir():
        return user_templates
    return BUNDLED_TEMPLATES_DIR


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


class BannerGroup(TyperGroup):
    """Custom group that shows banner before help."""

    def format_help(self, ctx, formatter):
        # Show banner before help
        show_banner()
        super().format_help(ctx, formatter)


app = typer.Typer(
    name=APP_NAME,
    help="Setup tool for Django projects",
    add_completion=False,
    invoke_without_command=True,
    cls=BannerGroup,
)

project_app = typer.Typer(help="Create and manage Django projects")
app.add_typer(project_app, name="project")


def show_banner():
    """Display the ASCII art banner."""
    banner_lines = BANNER.strip("\n").split('\n')
    colors = ["bright_green", "green", "bright_cyan"]

    styled_banner = Text()
    for i, line in enumerate(banner_lines):
        color = colors[i % len(colors)]
        styled_banner.append(line + "\n", style=color)

    console.print(Align.center(styled_banner))
    console.print(Align.center(Text(TAGLINE, style="italic bright_yellow")))
    console.print()


@app.callback()
def callback(ctx: typer.Context):
    """Show banner when no subcommand is provided."""
    if ctx.invoked_subcommand is None and "--help" not in sys.argv and "-h" not in sys.argv:
        show_banner()
        console.print(Align.center("[dim]Run 'djangify --help' for usage information[/dim]"))
        console.print()


def running_on_windows() -> bool:
    return os.name == "nt"


def validate_project_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise typer.BadParameter("Project name must not be empty.")
    if not name.isidentifier():
        raise typer.BadParameter(
            f"'{name}' is not a valid project name. Use letters, digits and underscores, not starting with a digit."
        )
    return name


def step_label(key: str) -> str:
    stage = _stage_for(key)
    if stage is not None:
        return STAGE_LABELS[stage]
    if key.startswith(f"{Stage.COPY_STATIC_ASSETS.value}:"):
        return f"Copy {key.split(':', 1)[1]}"
    return key


def render_failures(report: PipelineReport) -> Panel:
    table = Table.grid(padding=(0, 1))
    table.add_column(justify="left", style="yellow", no_wrap=True)
    table.add_column(justify="left", style="white")
    for step in report.failures:
        table.add_row(step_label(step.key), step.detail)
    return Panel(table, title=f"[yellow]Completed with errors: {report.project.name}[/yellow]", border_style="yellow", padding=(1, 2))


@project_app.command("create")
def create(
    project_name: str = typer.Argument(..., callback=validate_project_name, help="Name of the project directory and Django package"),
    python: str = typer.Option(DEFAULT_PYTHON, "--python", envvar="DJANGIFY_PYTHON", help="Python interpreter used for pip and virtualenv"),
    templates: Optional[str] = typer.Option(None, "--templates", envvar="DJANGIFY_TEMPLATES", help="Use a local templates directory instead of the bundled one"),
    timeout: Optional[float] = typer.Option(None, "--timeout", min=1, help="Give up on any external command after this many seconds"),
    strict: bool = typer.Option(False, "--strict", help="Exit with status 1 if any template overlay failed"),
    debug: bool = typer.Option(False, "--debug", help="Show verbose diagnostic output on failure"),
):
    """
    Create a new Django project.

    This command will:
    1. Check that python3 is installed, installing virtualenv if needed
    2. Create the project folder with Dockerfile, docker-compose.yml and requirements.txt
    3. Create a virtual environment in it
    4. Run django-admin startproject
    5. Replace settings.py and urls.py and add .env and the users app

    Examples:
        djangify project create blog
        djangify project create blog --python python3.12
        djangify project create blog --templates ./my-templates --strict
    """
    show_banner()

    if running_on_windows():
        console.print("[red]Error:[/red] This command works on Linux and macOS only")
        raise typer.Exit(1)

    ctx = ProjectContext(
        name=project_name,
        base_dir=Path.cwd(),
        templates_dir=resolve_templates_dir(templates),
        python=python,
    )

    setup_lines = [
        "[cyan]Django Project Setup[/cyan]",
        "",
        f"{'Project':<15} [green]{ctx.name}[/green]",
        f"{'Working Path':<15} [dim]{ctx.base_dir}[/dim]",
        f"{'Target Path':<15} [dim]{ctx.root}[/dim]",
        f"{'Templates':<15} [dim]{ctx.templates_dir}[/dim]",
    ]
    console.print(Panel("\n".join(setup_lines), border_style="cyan", padding=(1, 2)))

    tracker = StepTracker("Create Django Project")
    for stage in Stage:
        tracker.add(stage.value, STAGE_LABELS[stage])

    runner = SubprocessRunner(timeout=timeout)
    with Live(tracker.render(), console=console, refresh_per_second=8, transient=True) as live:
        tracker.attach_refresh(lambda: live.update(tracker.render()))
        try:
            report = create_project(ctx, runner, tracker)
        except PipelineError as e:
            live.stop()
            console.print(tracker.render())
            console.print(Panel(e.message, title=f"[red]{STAGE_LABELS[e.stage]} failed[/red]", border_style="red"))
            if debug:
                _env_pairs = [
                    ("Python", sys.version.split()[0]),
                    ("Platform", sys.platform),
                    ("CWD", str(Path.cwd())),
                    ("Templates", str(ctx.templates_dir)),
                ]
                _label_width = max(len(k) for k, _ in _env_pairs)
                env_lines = [f"{k.ljust(_label_width)} → [bright_black]{v}[/bright_black]" for k, v in _env_pairs]
                console.print(Panel("\n".join(env_lines), title="Debug Environment", border_style="magenta"))
            raise typer.Exit(1)

    console.print(tracker.render())

    if not report.ok:
        console.print()
        console.print(render_failures(report))
        if strict:
            raise typer.Exit(1)
    else:
        console.print("\n[bold green]Project ready.[/bold green]")

    steps_lines = [
        f"1. Go to the project folder: [cyan]cd {ctx.name}[/cyan]",
        f"2. Activate the virtual environment: [cyan]source {VENV_DIRNAME}/bin/activate[/cyan]",
        "3. Install dependencies: [cyan]pip install -r requirements.txt[/cyan]",
        "4. Start the server: [cyan]python manage.py runserver[/cyan] or [cyan]docker compose up[/cyan]",
    ]
    steps_panel = Panel("\n".join(steps_lines), title="Next Steps", border_style="cyan", padding=(1, 2))
    console.print()
    console.print(steps_panel)


@app.command()
def check():
    """Check that all required tools are installed."""
    show_banner()
    console.print("[bold]Checking for installed tools...[/bold]\n")

    tracker = StepTracker("Check Available Tools")
    runner = SubprocessRunner()
    for tool, label in CHECK_TOOLS.items():
        tracker.add(tool, label)
    for tool in CHECK_TOOLS:
        if probe(tool, runner):
            tracker.complete(tool, "available")
        else:
            tracker.error(tool, "not found")

    console.print(tracker.render())

    if tracker.status_of(DEFAULT_PYTHON) != "done":
        console.print("\n[dim]Tip: Install Python 3 to create projects[/dim]")
    elif tracker.status_of(ISOLATION_TOOL) != "done":
        console.print("\n[dim]Tip: virtualenv will be installed automatically by 'djangify project create'[/dim]")
    else:
        console.print("\n[bold green]Djangify CLI is ready to use![/bold green]")


def main():
    app()


if __name__ == "__main__":
    main()

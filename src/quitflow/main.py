"""
QuitFlow - CLI Entry Point.

Usage:
    quitflow onboard         Walk through onboarding in the terminal
    quitflow stats           Compute habit cost statistics
    quitflow draft           Show (or --clear) the saved draft
    quitflow health          Check configuration
    quitflow --help          Show help
"""

import asyncio
import logging
import sys

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

app = typer.Typer(
    name="quitflow",
    help="QuitFlow - onboarding funnel for quitting nicotine.",
    add_completion=False,
)
console = Console()

BACK = "back"


def setup_logging(level: str) -> None:
    """Log to stderr so prompts on stdout stay readable."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    # Quiet down noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# =============================================================================
# Interactive wizard
# =============================================================================


async def _ask(prompt: str, password: bool = False) -> str:
    """console.input in a worker thread so offer timers keep ticking."""
    answer = await asyncio.to_thread(console.input, prompt, password=password)
    return answer.strip()


async def _ask_choice(prompt: str, choices: list[str], allow_back: bool = False) -> str:
    valid = list(choices) + ([BACK] if allow_back else [])
    while True:
        answer = await _ask(f"{prompt} [dim]({' / '.join(valid)})[/dim]: ")
        if answer in valid:
            return answer
        console.print(f"[red]Please enter one of: {', '.join(valid)}[/red]")


def _render_header(controller) -> None:
    from onboarding.labels import step_description

    percent = int(controller.progress_fraction * 100)
    console.print(f"\n[dim]Step {controller.step_number} of 7 ({percent}%)[/dim]")
    if controller.title:
        console.print(f"[bold]{controller.title}[/bold]")
    description = step_description(controller.state)
    if description:
        console.print(f"[dim]{description}[/dim]")
    if controller.error:
        console.print(f"[red]{controller.error}[/red]")


def _render_stats_table(stats, headline: str) -> Table:
    table = Table(title=headline, show_header=False)
    table.add_row(f"{stats.label.plural.capitalize()} per year", f"{stats.yearly_usage:,} {stats.label.unit}")
    table.add_row("Spent per year", f"${stats.yearly_spending:,}")
    table.add_row("Spent so far", f"${stats.total_spent_lifetime:,}")
    return table


def _render_offer(controller) -> None:
    from onboarding.labels import cost_headline, offer_price, seats_message, INITIAL_PRICE

    state = controller.state
    timer = controller.timer
    stats = controller.stats

    if timer is not None:
        console.print(f"[yellow]Offer expires in {timer.display_time}[/yellow]")
    if state.flash_sale:
        console.print(f"[bold red]75% OFF![/bold red] [strike]{INITIAL_PRICE}[/strike] -> [bold]{offer_price(state)}[/bold]")
        if timer is not None:
            console.print(seats_message(timer.seats_left))
    else:
        console.print(f"[bold]ONE TIME OFFER: {offer_price(state)}[/bold]")
    console.print(_render_stats_table(stats, cost_headline(controller.draft.product_type)))


async def _run_wizard(controller) -> None:
    from onboarding.labels import DAILY_USAGE_OPTIONS, DURATION_OPTIONS, PRODUCT_OPTIONS, UNIT_COST_OPTIONS
    from onboarding.state import (
        ChooseDailyUsage,
        ChooseDuration,
        ChooseProduct,
        ChooseUnitCost,
        CreateCredentials,
        EnterIdentity,
        Offer,
    )

    while not controller.is_provisioned:
        _render_header(controller)
        state = controller.state

        if isinstance(state, ChooseProduct):
            for option in PRODUCT_OPTIONS:
                console.print(f"  [cyan]{option['id']}[/cyan] - {option['label']}: {option['description']}")
            await controller.select_product(await _ask_choice("Product", [o["id"] for o in PRODUCT_OPTIONS]))

        elif isinstance(state, (ChooseDailyUsage, ChooseUnitCost)):
            options = DAILY_USAGE_OPTIONS if isinstance(state, ChooseDailyUsage) else UNIT_COST_OPTIONS
            answer = await _ask_choice("Choose", [str(n) for n in options], allow_back=True)
            if answer == BACK:
                controller.back()
            elif isinstance(state, ChooseDailyUsage):
                await controller.select_daily_usage(answer)
            else:
                await controller.select_unit_cost(answer)

        elif isinstance(state, ChooseDuration):
            for option in DURATION_OPTIONS:
                console.print(f"  [cyan]{option['id']}[/cyan] - {option['label']}")
            answer = await _ask_choice("Duration", [o["id"] for o in DURATION_OPTIONS], allow_back=True)
            if answer == BACK:
                controller.back()
            else:
                await controller.select_duration(answer)

        elif isinstance(state, EnterIdentity):
            identity = controller.draft.identity
            controller.update_identity(
                first_name=await _ask(f"First name [{identity.first_name}]: ") or identity.first_name,
                last_name=await _ask(f"Last name [{identity.last_name}]: ") or identity.last_name,
                email=await _ask(f"Email [{identity.email}]: ") or identity.email,
                phone=await _ask(f"Phone (optional) [{identity.phone}]: ") or identity.phone,
            )
            if controller.draft.identity.phone:
                opt_in = await _ask_choice("Opt in to receive text messages?", ["y", "n"])
                controller.update_identity(opt_in_messages=opt_in == "y")
            if await _ask_choice("Continue?", ["y"], allow_back=True) == BACK:
                controller.back()
            else:
                with console.status("Checking..."):
                    await controller.submit_identity()

        elif isinstance(state, Offer):
            _render_offer(controller)
            if state.flash_sale:
                answer = await _ask_choice("Claim the discount?", ["yes", "full-price"])
                if answer == "yes":
                    controller.accept_discount()
                else:
                    controller.decline_discount()
            else:
                answer = await _ask_choice("Start now?", ["yes", "no"])
                if answer == "yes":
                    controller.accept_offer()
                else:
                    controller.decline_offer()

        elif isinstance(state, CreateCredentials):
            controller.update_credentials(
                password=await _ask("Create a password: ", password=True),
                confirm_password=await _ask("Confirm password: ", password=True),
            )
            for hint in controller.credential_errors:
                console.print(f"[yellow]{hint}[/yellow]")
            if not controller.can_finalize:
                continue
            with console.status("Creating your account..."):
                await controller.finalize()


@app.command()
def onboard(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Walk through onboarding against the configured account registry."""
    from quitflow.config import get_settings
    from quitflow.session import onboarding_session

    settings = get_settings()
    setup_logging("DEBUG" if verbose else settings.log_level)

    console.print(
        Panel.fit(
            "[bold green]QuitFlow[/bold green]\n"
            "Seven quick steps to your quit plan.\n\n"
            "[dim]Your answers are saved as you go. Ctrl+C to stop.[/dim]",
            title="Welcome",
            border_style="green",
        )
    )

    async def run() -> None:
        async with onboarding_session(settings) as controller:
            await _run_wizard(controller)
            record = controller.state.habit_record
            console.print(
                "\n[bold green]Your journey begins![/bold green] "
                "You've taken the first step. We're here with you, one day at a time."
            )
            if record is not None and record.id:
                console.print(f"[dim]Quit plan {record.id} created.[/dim]")

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        console.print("\n\n[dim]Progress saved. Run `quitflow onboard` to pick up again.[/dim]")


# =============================================================================
# Utilities
# =============================================================================


@app.command()
def stats(
    daily: str = typer.Option("0", "--daily", "-d", help="Units used per day"),
    cost: str = typer.Option("0", "--cost", "-c", help="Cost per unit"),
    duration: str = typer.Option("", "--duration", help="under_5y, 5_to_10y, 10_to_20y or over_20y"),
    product: str = typer.Option("cigarettes", "--product", "-p", help="Product type"),
) -> None:
    """Compute the yearly and lifetime cost of a habit."""
    from onboarding.habits import compute_stats
    from onboarding.labels import cost_headline
    from onboarding.state import ProductType

    result = compute_stats(daily, cost, duration, product)
    try:
        headline = cost_headline(ProductType(product))
    except ValueError:
        headline = cost_headline(None)
    console.print(_render_stats_table(result, headline))


@app.command()
def draft(
    clear: bool = typer.Option(False, "--clear", help="Delete the saved draft"),
) -> None:
    """Show the saved onboarding draft (credentials masked)."""
    from quitflow.config import get_settings
    from quitflow.session import create_draft_store

    store = create_draft_store(get_settings())

    if clear:
        store.clear()
        console.print(f"[green]Cleared {store.path}[/green]")
        return

    if not store.path.exists():
        console.print(f"[dim]No draft at {store.path}[/dim]")
        return

    data = store.load().to_dict()
    creds = data.get("credentials", {})
    for key, value in creds.items():
        creds[key] = "*" * len(value) if value else ""

    table = Table(title=str(store.path), show_header=False)
    for key, value in data.items():
        table.add_row(key, str(value))
    console.print(table)


@app.command()
def health() -> None:
    """Check configuration."""
    from quitflow.config import get_settings

    console.print("\n[bold]QuitFlow Health Check[/bold]\n")

    try:
        settings = get_settings()
        console.print("✅ Configuration loaded")
        console.print(f"   Environment: {settings.quitflow_env}")
        console.print(f"   Log level: {settings.log_level}")

        if settings.api_base_url.startswith(("http://", "https://")):
            console.print(f"✅ Registry URL: {settings.api_base_url}")
        else:
            console.print("❌ API_BASE_URL missing or invalid")
            raise typer.Exit(1)

        console.print(f"ℹ️  Draft file: {settings.draft_dir / (settings.draft_key + '.json')}")

        if settings.funnel_log_enabled:
            console.print(f"✅ Funnel logging to {settings.funnel_log_dir}/")
        else:
            console.print("ℹ️  Funnel logging disabled")

        console.print("\n[green]All checks passed![/green]")

    except ValueError as e:
        console.print(f"\n[red]❌ Configuration error: {e}[/red]")
        console.print("[dim]Check your .env file.[/dim]")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    from quitflow import __version__

    console.print(f"QuitFlow version {__version__}")


if __name__ == "__main__":
    app()

import asyncio
import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

import config
from domain.api import ApiService
from domain.components import Component, ErrorFallback, RecipeCard, SuggestionsView, VibeCard
from domain.context import AppContext
from domain.dom import Event, Touch
from domain.llm_service import LLMService
from domain.session import Presenter, RecipeSession, detect_presenter


CONFIG = config.Config()


console = Console()

logger = logging.getLogger("swipechef")


class ConsolePresenter(Presenter):
    """Paints screens to the terminal instead of a page."""

    def __init__(self, device: type[Presenter]) -> None:
        super().__init__()
        self.touch = device.touch
        self.card_class = device.card_class

    def screen_changed(self, screen: str, component: Component | None) -> None:
        match component:
            case VibeCard(vibe=vibe, round=n):
                console.print(
                    Panel(
                        vibe.description,
                        title=f"{vibe.emoji} {vibe.name}",
                        subtitle=f"round {n}/{CONFIG.max_vibe_rounds}",
                        border_style=vibe.color,
                    )
                )
            case SuggestionsView(suggestions=suggestions):
                table = Table("#", "Idea", "")
                for s in suggestions:
                    table.add_row(str(s.index), s.title, s.description)
                console.print(table)
            case RecipeCard(title=title, formatted=formatted):
                console.rule(f"[bold]{title}")
                for line in formatted.intro_lines:
                    console.print(line)
                if formatted.ingredient_lines:
                    console.print("\n[bold]Ingredients")
                    for line in formatted.ingredient_lines:
                        console.print(f"  • {line}")
                if formatted.instruction_lines:
                    console.print("\n[bold]Instructions")
                    for i, line in enumerate(formatted.instruction_lines, start=1):
                        console.print(f"  {i}. {line}")
                console.rule()
            case ErrorFallback(message=message, fatal=True):
                console.print(f"[bold red]Something went wrong.[/] {message}")
            case ErrorFallback(message=message):
                console.print(f"[red]{message}")
            case _ if screen == "loading":
                console.print("[dim]Cooking up ideas...")


def swipe(session: RecipeSession, direction: str) -> None:
    """Drive the card's swipe handler the way a finger or mouse would."""
    card = session.presenter.containers["card"]
    document = session.context.document
    dx = CONFIG.swipe_threshold * 2 * (1 if direction == "right" else -1)
    if session.presenter.touch:
        card.dispatch_event(Event("touchstart", touches=[Touch(0, 0)]))
        for x in (dx / 4, dx / 2, dx):
            card.dispatch_event(Event("touchmove", touches=[Touch(x, 0)]))
        card.dispatch_event(Event("touchend"))
        return
    card.dispatch_event(Event("mousedown", client_x=0, client_y=0))
    for x in (dx / 4, dx / 2, dx):
        document.dispatch_event(Event("mousemove", client_x=x, client_y=0))
    document.dispatch_event(Event("mouseup", client_x=dx, client_y=0))


async def ask(prompt: str, **kwargs: Any) -> str:
    return await asyncio.to_thread(Prompt.ask, prompt, console=console, **kwargs)


async def confirm(prompt: str) -> bool:
    return await asyncio.to_thread(Confirm.ask, prompt, console=console)


async def play(session: RecipeSession) -> None:
    while session.phase == "swiping":
        choice = await ask("Swipe right (r) to like, left (l) to pass", choices=["r", "l", "q"])
        if choice == "q":
            return
        swipe(session, "right" if choice == "r" else "left")

    ingredients = await ask("Anything at home to use up? (comma separated)", default="")
    if not ingredients.strip():
        session.skip_ingredients()
    elif not session.set_ingredients(ingredients):
        session.skip_ingredients()

    suggestions = await session.request_suggestions()
    while True:
        choices = [str(s.index) for s in suggestions] + ["g", "q"]
        choice = await ask("Pick an idea, or g for new ones", choices=choices)
        if choice == "q":
            return
        if choice == "g":
            suggestions = await session.regenerate()
            continue

        suggestion = suggestions[int(choice) - 1]
        recipe = await session.choose_suggestion(suggestion.id)
        while recipe is None and await confirm("Try again?"):
            recipe = await session.retry()
            if isinstance(recipe, list):
                suggestions = recipe
                recipe = None
                break
        if recipe is not None:
            break

    if await confirm("Save to favorites?"):
        favorite = await session.save_current_recipe()
        if favorite is not None:
            console.print(f"[green]Saved {favorite.title}")
        else:
            console.print(f"[yellow]{session.state.get('error')}")


async def main() -> None:
    logging.basicConfig(
        level=CONFIG.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )

    context = AppContext(config=CONFIG)
    presenter = ConsolePresenter(
        detect_presenter(CONFIG.user_agent, CONFIG.max_touch_points)
    )
    api = ApiService(CONFIG.api_base_url, bus=context.bus)
    generator = LLMService() if CONFIG.direct_llm else None
    session = RecipeSession(
        context=context, presenter=presenter, api=api, generator=generator
    )

    def handle_exception(loop: asyncio.AbstractEventLoop, ctx: dict[str, Any]) -> None:
        logger.error("Unhandled: %s", ctx.get("message"), exc_info=ctx.get("exception"))
        session.show_fatal()

    asyncio.get_running_loop().set_exception_handler(handle_exception)

    async with api:
        try:
            await session.guard(session.start())
            while True:
                await session.guard(play(session))
                if not await confirm("Play again?"):
                    break
                session.start_game()
        finally:
            session.close()
            if generator is not None:
                await generator.close()


if __name__ == "__main__":
    asyncio.run(main())
